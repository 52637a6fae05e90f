from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from routers import respond
from schemas import ProjectCreate, ProjectUpdate
from security import get_optional_user_id, require_user_id
from services import fail, parse_id
from services import projects as project_service
from services import tasks as task_service

router = APIRouter(prefix="/project", tags=["projects"])


@router.get("/analytics")
def project_analytics(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(project_service.get_project_analytics(db, user_id), "projects")


# Scoped to the caller when authenticated, otherwise every project.
@router.get("")
def list_projects(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(project_service.list_projects(db, user_id), "projects")


@router.post("/create")
def create_project(
    project: ProjectCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(require_user_id),
):
    return respond(project_service.create_project(db, project, creator=user_id), "project")


@router.get("/{project_id:int}/tasks")
def project_tasks(
    project_id: int,
    task_status: Optional[str] = None,
    project_meeting_id: Optional[str] = None,
    date_type: str = "submission_date",
    sort_by: Optional[str] = None,
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    db: Session = Depends(get_db),
):
    statuses = [s.strip() for s in (task_status or "").split(",") if s.strip()]
    meeting_id = None
    if project_meeting_id:
        meeting_id = parse_id(project_meeting_id)
        if meeting_id is None:
            return respond(fail("project_meeting_id must be an integer", 400))

    result = task_service.get_project_tasks(
        db,
        project_id,
        task_statuses=statuses,
        project_meeting_id=meeting_id,
        date_type=date_type,
        sort_by=sort_by,
        sort_order=sort_order,
        from_date=from_date,
        to_date=to_date,
    )
    return respond(result, "tasks")


@router.get("/{project_id:int}")
def get_project(project_id: int, db: Session = Depends(get_db)):
    return respond(project_service.get_project(db, project_id), "project")


@router.post("/{project_id:int}/update")
def update_project(
    project_id: int,
    project: ProjectUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(require_user_id),
):
    changes = project.model_dump(exclude_unset=True)
    return respond(project_service.update_project(db, project_id, changes, user_id), "project")


@router.post("/{project_id:int}/delete")
def delete_project(project_id: int, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    return respond(project_service.delete_project(db, project_id, user_id))
