"""User accounts. Passwords are stored hashed and never leave this module."""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import User
from schemas import UserCreate, UserOut, serialize
from security import get_password_hash
from services import ServiceResult, ok, fail, parse_id

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "User with this email already exists"


def list_users(db: Session) -> ServiceResult:
    try:
        users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Error listing users")
        return fail(str(e))
    return ok([serialize(UserOut, u) for u in users])


def get_user(db: Session, user_id) -> ServiceResult:
    uid = parse_id(user_id)
    if uid is None:
        return fail("Invalid user ID", 400)
    try:
        user = db.get(User, uid)
    except SQLAlchemyError as e:
        logger.exception("Error getting user")
        return fail(str(e))
    if not user:
        return fail("User not found", 404)
    return ok(serialize(UserOut, user))


def create_user(db: Session, data: UserCreate) -> ServiceResult:
    if not data.name or not data.email or not data.password:
        return fail("Name, email, and password are required", 400)

    try:
        if db.query(User).filter(User.email == data.email).first():
            return fail(EMAIL_TAKEN, 409)

        user = User(
            name=data.name,
            email=data.email,
            password=get_password_hash(data.password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return fail(EMAIL_TAKEN, 409)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error creating user")
        return fail(str(e))

    logger.info("Created user %s", user.id)
    return ok(serialize(UserOut, user), status_code=201)


def update_user(db: Session, user_id, changes: dict, acting_user_id: int) -> ServiceResult:
    """Apply the provided fields only. A user may only edit their own account."""
    uid = parse_id(user_id)
    if uid is None:
        return fail("Invalid user ID", 400)

    try:
        user = db.get(User, uid)
        if not user:
            return fail("User not found", 404)
        if user.id != acting_user_id:
            return fail("Unauthorized: You can only update your own account", 403)

        if changes.get("name") is not None:
            user.name = changes["name"]
        email = changes.get("email")
        if email and email != user.email:
            if db.query(User).filter(User.email == email).first():
                return fail(EMAIL_TAKEN, 409)
            user.email = email
        if changes.get("password"):
            user.password = get_password_hash(changes["password"])

        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return fail(EMAIL_TAKEN, 409)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error updating user")
        return fail(str(e))

    return ok(serialize(UserOut, user))
