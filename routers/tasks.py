from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.datastructures import URL

from database import get_db
from routers import respond
from schemas import TaskCreate, TaskUpdate, TaskFastCreate, TargetDateRequest, KanbanUpdate
from security import get_optional_user_id, require_user_id
from services import fail, parse_id
from services import tasks as task_service

router = APIRouter(tags=["tasks"])


def build_page_links(url: URL, page: int, last_page: int) -> list:
    """Previous, one entry per page, Next; each an absolute URL with `page` replaced."""
    def link(number):
        return str(url.include_query_params(page=number))

    links = [{"url": link(page - 1) if page > 1 else None, "label": "Previous", "active": False}]
    for number in range(1, last_page + 1):
        links.append({"url": link(number), "label": str(number), "active": number == page})
    links.append({"url": link(page + 1) if page < last_page else None, "label": "Next", "active": False})
    return links


@router.get("/task")
def list_tasks(request: Request, db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    parsed = task_service.parse_task_filters(request.query_params, default_assignee=user_id)
    if not parsed.success:
        return respond(parsed)

    result = task_service.list_tasks(db, parsed.data)
    if not result.success:
        return respond(result)
    links = build_page_links(request.url, result.meta["page"], result.meta["lastPage"])
    return respond(result, "data", links=links)


@router.post("/task/fast-create")
def fast_create_task(task: TaskFastCreate, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    result = task_service.fast_create_task(
        db, task.project_id, task.title, user_id, project_meeting_id=task.project_meeting_id
    )
    return respond(result, "task")


@router.post("/task/create")
def create_task(task: TaskCreate, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    if not task.assigned_to:
        task.assigned_to = user_id
    return respond(task_service.create_task(db, task), "task")


@router.post("/task/set-target-date")
def set_target_date(body: TargetDateRequest, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    result = task_service.set_target_date(db, body.task_id, body.target_date, user_id, clear=body.clear)
    return respond(result, "task")


@router.get("/task/stats")
def task_stats(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(task_service.get_task_progress_stats(db, user_id), "stats")


@router.get("/task/analytics")
def task_analytics(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(task_service.get_task_status_analytics(db, user_id), "analytics")


@router.get("/task/calendar-years")
def calendar_years(db: Session = Depends(get_db), user_id: Optional[int] = Depends(get_optional_user_id)):
    return respond(task_service.get_calendar_years(db, user_id), "years")


@router.get("/task/calendar")
def calendar_month(
    year: Optional[str] = None,
    month: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
):
    return respond(task_service.get_calendar_month(db, year, month, user_id), "data")


@router.get("/task/{task_id:int}")
def get_task(task_id: int, db: Session = Depends(get_db)):
    return respond(task_service.get_task(db, task_id), "task")


@router.get("/task/{task_id:int}/subtasks")
def get_subtasks(task_id: int, db: Session = Depends(get_db)):
    return respond(task_service.get_subtasks(db, task_id), "subtasks")


@router.post("/task/{task_id:int}/update")
def update_task(
    task_id: int,
    task: TaskUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(require_user_id),
):
    changes = task.model_dump(exclude_unset=True)
    return respond(task_service.update_task(db, task_id, changes, user_id), "task")


@router.post("/task/{task_id:int}/delete")
def delete_task(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    return respond(task_service.delete_task(db, task_id, user_id))


@router.get("/kanban-tasks")
def kanban_tasks(
    project_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_optional_user_id),
):
    pid = None
    if project_id:
        pid = parse_id(project_id)
        if pid is None:
            return respond(fail("project_id must be an integer", 400))
    return respond(task_service.get_kanban_tasks(db, user_id, pid), "columns")


@router.patch("/kanban-update-task")
def kanban_update_task(body: KanbanUpdate, db: Session = Depends(get_db), user_id: int = Depends(require_user_id)):
    result = task_service.update_kanban_task(db, body.task_id, body.task_status, body.ordered_ids, user_id)
    return respond(result, "task")
