import os
from dotenv import load_dotenv

load_dotenv()

# Security config
SECRET_KEY = (os.getenv("SECRET_KEY") or "").strip()
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY is not set")

ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tasks.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

DEFAULT_PER_PAGE = int(os.getenv("DEFAULT_PER_PAGE", "20"))

# API client
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
CLIENT_CACHE_SECONDS = int(os.getenv("CLIENT_CACHE_SECONDS", "300"))
