from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from routers import respond
from schemas import UserCreate, UserUpdate
from security import require_user_id
from services import users as user_service

router = APIRouter(prefix="/user", tags=["users"])


@router.get("")
def list_users(db: Session = Depends(get_db)):
    return respond(user_service.list_users(db), "users")


# Register
@router.post("/create")
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    return respond(user_service.create_user(db, user), "user")


@router.get("/{user_id:int}")
def get_user(user_id: int, db: Session = Depends(get_db)):
    return respond(user_service.get_user(db, user_id), "user")


@router.post("/{user_id:int}/update")
def update_user(
    user_id: int,
    user: UserUpdate,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(require_user_id),
):
    changes = user.model_dump(exclude_unset=True)
    return respond(user_service.update_user(db, user_id, changes, current_user_id), "user")
