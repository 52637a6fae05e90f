import logging
from typing import Optional

from sqlalchemy import func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Project, Task, User, ACTIVE
from schemas import ProjectCreate, ProjectOut, serialize
from services import ServiceResult, ok, fail, parse_id

logger = logging.getLogger(__name__)


def list_projects(db: Session, user_id: Optional[int] = None) -> ServiceResult:
    """Newest first; restricted to the creator when user_id is given."""
    try:
        query = db.query(Project)
        if user_id:
            query = query.filter(Project.creator == user_id)
        projects = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Error listing projects")
        return fail(str(e))
    return ok([serialize(ProjectOut, p) for p in projects])


def get_project(db: Session, project_id) -> ServiceResult:
    pid = parse_id(project_id)
    if pid is None:
        return fail("Invalid project ID", 400)
    try:
        project = db.get(Project, pid)
    except SQLAlchemyError as e:
        logger.exception("Error getting project")
        return fail(str(e))
    if not project:
        return fail("Project not found", 404)
    return ok(serialize(ProjectOut, project))


def create_project(db: Session, data: ProjectCreate, creator: Optional[int]) -> ServiceResult:
    if not data.title or not creator:
        return fail("Title and creator are required", 400)

    try:
        if not db.get(User, creator):
            return fail("Creator user not found", 404)

        project = Project(title=data.title, description=data.description or None, creator=creator)
        db.add(project)
        db.commit()
        db.refresh(project)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error creating project")
        return fail(str(e))

    logger.info("Project %s created by user %s", project.id, creator)
    return ok(serialize(ProjectOut, project), status_code=201)


def _owned_project(db: Session, project_id, acting_user_id: int, action: str):
    pid = parse_id(project_id)
    if pid is None:
        return None, fail("Invalid project ID", 400)
    project = db.get(Project, pid)
    if not project:
        return None, fail("Project not found", 404)
    if project.creator != acting_user_id:
        return None, fail(f"Unauthorized: You can only {action} your own projects", 403)
    return project, None


def update_project(db: Session, project_id, changes: dict, acting_user_id: int) -> ServiceResult:
    try:
        project, error = _owned_project(db, project_id, acting_user_id, "update")
        if error:
            return error

        if "title" in changes:
            if not changes["title"]:
                return fail("Title cannot be empty", 400)
            project.title = changes["title"]
        if "description" in changes:
            project.description = changes["description"] or None

        db.commit()
        db.refresh(project)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error updating project")
        return fail(str(e))

    return ok(serialize(ProjectOut, project))


def delete_project(db: Session, project_id, acting_user_id: int) -> ServiceResult:
    """Hard delete. Meetings go with the project; its tasks are detached."""
    try:
        project, error = _owned_project(db, project_id, acting_user_id, "delete")
        if error:
            return error

        db.query(Task).filter(Task.project_id == project.id).update(
            {Task.project_id: None, Task.project_meeting_id: None}, synchronize_session=False
        )
        db.delete(project)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error deleting project")
        return fail(str(e))

    logger.info("Project %s deleted by user %s", project.id, acting_user_id)
    return ok(message="Project deleted successfully")


def get_project_analytics(db: Session, user_id: Optional[int] = None) -> ServiceResult:
    """Per project: active top-level task count and how many are not completed."""
    try:
        incomplete = func.sum(case((Task.task_status != "completed", 1), else_=0))
        counts = (
            db.query(Task.project_id, func.count(Task.id), incomplete)
            .filter(Task.status == ACTIVE, Task.parent_task_id.is_(None), Task.project_id.isnot(None))
        )
        if user_id:
            counts = counts.filter(Task.assigned_to == user_id)
        by_project = {pid: (total, pending or 0) for pid, total, pending in counts.group_by(Task.project_id)}

        query = db.query(Project)
        if user_id:
            query = query.filter(Project.creator == user_id)
        projects = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Error getting project analytics")
        return fail(str(e))

    data = []
    for project in projects:
        total, pending = by_project.get(project.id, (0, 0))
        data.append({
            "id": project.id,
            "title": project.title,
            "totalTasks": total,
            "incompleteTasks": int(pending),
        })
    return ok(data)
