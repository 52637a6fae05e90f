import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import User
from schemas import UserOut, serialize
from security import create_user_token, verify_password, verify_token
from services import ServiceResult, ok, fail

logger = logging.getLogger(__name__)


def authenticate(db: Session, email, password) -> ServiceResult:
    """Exchange credentials for a bearer token."""
    if not email or not password:
        return fail("Email and password are required", 400)

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError:
        logger.exception("Login error")
        return fail("Login failed", 500)

    if not user or not verify_password(password, user.password):
        return fail("Invalid email or password", 401)

    token = create_user_token(user)
    logger.info("User %s logged in", user.id)
    return ok({"token": token, "user": serialize(UserOut, user)})


def get_authenticated_user(db: Session, token) -> ServiceResult:
    payload = verify_token(token)
    if not payload:
        return fail("Invalid or expired token", 401)

    try:
        user = db.get(User, payload["userId"])
    except SQLAlchemyError:
        logger.exception("Get authenticated user error")
        return fail("Authentication failed", 401)

    if not user:
        return fail("User not found", 404)
    return ok(serialize(UserOut, user))
