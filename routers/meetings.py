from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from routers import respond
from schemas import MeetingCreate, MeetingUpdate
from security import get_optional_user_id, require_user_id
from services import fail, parse_id
from services import meetings as meeting_service

router = APIRouter(prefix="/meeting", tags=["meetings"])


@router.get("/analytics")
def meeting_analytics(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(meeting_service.get_meeting_analytics(db, user_id), "meetings")


@router.get("")
def list_meetings(
    project_id: Optional[str] = None,
    creator: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
):
    filters = {}
    for key, raw in (("project_id", project_id), ("creator", creator)):
        if raw is None:
            continue
        value = parse_id(raw)
        if value is None:
            return respond(fail(f"{key} must be an integer", 400))
        filters[key] = value

    # a project's meetings are shared; otherwise default to the caller's own
    if "creator" not in filters and "project_id" not in filters and user_id:
        filters["creator"] = user_id
    return respond(meeting_service.list_meetings(db, **filters), "meetings")


@router.post("/create")
def create_meeting(meeting: MeetingCreate, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    return respond(meeting_service.create_meeting(db, meeting, creator=user_id), "meeting")


@router.get("/slug/{slug}")
def get_meeting_by_slug(slug: str, db: Session = Depends(get_db)):
    return respond(meeting_service.get_meeting_by_slug(db, slug), "meeting")


@router.get("/{meeting_id:int}")
def get_meeting(meeting_id: int, db: Session = Depends(get_db)):
    return respond(meeting_service.get_meeting(db, meeting_id), "meeting")


@router.post("/{meeting_id:int}/update")
def update_meeting(
    meeting_id: int,
    meeting: MeetingUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(require_user_id),
):
    changes = meeting.model_dump(exclude_unset=True)
    return respond(meeting_service.update_meeting(db, meeting_id, changes, user_id), "meeting")


@router.post("/{meeting_id:int}/delete")
def delete_meeting(meeting_id: int, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    return respond(meeting_service.delete_meeting(db, meeting_id, user_id))
