import logging
import re
import uuid
from typing import Optional

from sqlalchemy import func, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import Meeting, Project, Task, User, ACTIVE
from schemas import MeetingCreate, MeetingOut, serialize
from services import ServiceResult, ok, fail, parse_id

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_TAKEN = "Meeting slug already in use"


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug[:200] or "meeting"


def _slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Meeting.id).filter(Meeting.slug == slug)
    if exclude_id is not None:
        query = query.filter(Meeting.id != exclude_id)
    return query.first() is not None


def unique_slug(db: Session, title: str) -> str:
    base = slugify(title)
    slug = base
    while _slug_exists(db, slug):
        slug = f"{base}-{uuid.uuid4().hex[:6]}"
    return slug


def list_meetings(db: Session, project_id: Optional[int] = None, creator: Optional[int] = None) -> ServiceResult:
    try:
        query = db.query(Meeting)
        if project_id is not None:
            query = query.filter(Meeting.project_id == project_id)
        if creator is not None:
            query = query.filter(Meeting.creator == creator)
        meetings = query.order_by(Meeting.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Error listing meetings")
        return fail(str(e))
    return ok([serialize(MeetingOut, m) for m in meetings])


def get_meeting(db: Session, meeting_id) -> ServiceResult:
    mid = parse_id(meeting_id)
    if mid is None:
        return fail("Invalid meeting ID", 400)
    try:
        meeting = db.get(Meeting, mid)
    except SQLAlchemyError as e:
        logger.exception("Error getting meeting")
        return fail(str(e))
    if not meeting:
        return fail("Meeting not found", 404)
    return ok(serialize(MeetingOut, meeting))


def get_meeting_by_slug(db: Session, slug: str) -> ServiceResult:
    if not slug:
        return fail("Slug is required", 400)
    try:
        meeting = db.query(Meeting).filter(Meeting.slug == slug).first()
    except SQLAlchemyError as e:
        logger.exception("Error getting meeting by slug")
        return fail(str(e))
    if not meeting:
        return fail("Meeting not found", 404)
    return ok(serialize(MeetingOut, meeting))


def create_meeting(db: Session, data: MeetingCreate, creator: Optional[int]) -> ServiceResult:
    if not data.title or not data.project_id or not creator:
        return fail("Title, project ID and creator are required", 400)
    if data.slug is not None and not SLUG_RE.match(data.slug):
        return fail("Slug may only contain lowercase letters, digits and hyphens", 400)

    try:
        if not db.get(Project, data.project_id):
            return fail("Project not found", 404)
        if not db.get(User, creator):
            return fail("Creator user not found", 404)

        if data.slug:
            if _slug_exists(db, data.slug):
                return fail(SLUG_TAKEN, 409)
            slug = data.slug
        else:
            slug = unique_slug(db, data.title)

        meeting = Meeting(title=data.title, slug=slug, project_id=data.project_id, creator=creator)
        db.add(meeting)
        db.commit()
        db.refresh(meeting)
    except IntegrityError:
        db.rollback()
        return fail(SLUG_TAKEN, 409)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error creating meeting")
        return fail(str(e))

    logger.info("Meeting %s created by user %s", meeting.id, creator)
    return ok(serialize(MeetingOut, meeting), status_code=201)


def _owned_meeting(db: Session, meeting_id, acting_user_id: int, action: str):
    mid = parse_id(meeting_id)
    if mid is None:
        return None, fail("Invalid meeting ID", 400)
    meeting = db.get(Meeting, mid)
    if not meeting:
        return None, fail("Meeting not found", 404)
    if meeting.creator != acting_user_id:
        return None, fail(f"You can only {action} meetings you created", 403)
    return meeting, None


def update_meeting(db: Session, meeting_id, changes: dict, acting_user_id: int) -> ServiceResult:
    try:
        meeting, error = _owned_meeting(db, meeting_id, acting_user_id, "update")
        if error:
            return error

        if "title" in changes:
            if not changes["title"]:
                return fail("Title cannot be empty", 400)
            meeting.title = changes["title"]
        if changes.get("slug") is not None:
            slug = changes["slug"]
            if not SLUG_RE.match(slug):
                return fail("Slug may only contain lowercase letters, digits and hyphens", 400)
            if _slug_exists(db, slug, exclude_id=meeting.id):
                return fail(SLUG_TAKEN, 409)
            meeting.slug = slug
        if changes.get("project_id") is not None:
            if not db.get(Project, changes["project_id"]):
                return fail("Project not found", 404)
            if changes["project_id"] != meeting.project_id:
                # tasks filed under the old project lose the meeting link
                db.query(Task).filter(
                    Task.project_meeting_id == meeting.id,
                    Task.project_id.isnot(None),
                    Task.project_id != changes["project_id"],
                ).update({Task.project_meeting_id: None}, synchronize_session=False)
            meeting.project_id = changes["project_id"]

        db.commit()
        db.refresh(meeting)
    except IntegrityError:
        db.rollback()
        return fail(SLUG_TAKEN, 409)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error updating meeting")
        return fail(str(e))

    return ok(serialize(MeetingOut, meeting))


def delete_meeting(db: Session, meeting_id, acting_user_id: int) -> ServiceResult:
    try:
        meeting, error = _owned_meeting(db, meeting_id, acting_user_id, "delete")
        if error:
            return error

        db.query(Task).filter(Task.project_meeting_id == meeting.id).update(
            {Task.project_meeting_id: None}, synchronize_session=False
        )
        db.delete(meeting)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error deleting meeting")
        return fail(str(e))

    logger.info("Meeting %s deleted by user %s", meeting.id, acting_user_id)
    return ok(message="Meeting deleted successfully")


def get_meeting_analytics(db: Session, user_id: Optional[int] = None) -> ServiceResult:
    """Per meeting: active top-level task count and how many are completed."""
    try:
        completed = func.sum(case((Task.task_status == "completed", 1), else_=0))
        counts = (
            db.query(Task.project_meeting_id, func.count(Task.id), completed)
            .filter(
                Task.status == ACTIVE,
                Task.parent_task_id.is_(None),
                Task.project_meeting_id.isnot(None),
            )
            .group_by(Task.project_meeting_id)
        )
        by_meeting = {mid: (total, done or 0) for mid, total, done in counts}

        query = db.query(Meeting)
        if user_id:
            query = query.filter(Meeting.creator == user_id)
        meetings = query.order_by(Meeting.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Error getting meeting analytics")
        return fail(str(e))

    data = []
    for meeting in meetings:
        total, done = by_meeting.get(meeting.id, (0, 0))
        data.append({
            "id": meeting.id,
            "title": meeting.title,
            "slug": meeting.slug,
            "projectId": meeting.project_id,
            "totalTasks": total,
            "completedTasks": int(done),
        })
    return ok(data)
