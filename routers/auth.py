from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from routers import respond
from schemas import UserLogin
from security import oauth2_scheme
from services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


# Login
@router.post("/login")
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    result = auth_service.authenticate(db, credentials.email, credentials.password)
    if not result.success:
        return respond(result)
    result.message = "Login successful"
    return respond(result, token=result.data["token"], user=result.data["user"])


@router.get("/profile")
def get_profile(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization token required")
    return respond(auth_service.get_authenticated_user(db, token), "user")
