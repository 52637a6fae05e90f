"""
Task service.

Listing applies the active-only, parent, exact-match and date-range filters,
paginates, and annotates each task with roll-ups of its immediate subtasks
and the names of its project and meeting. All datetimes are naive values in
the server's local time zone.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from models import (
    Meeting,
    Project,
    Task,
    User,
    ACTIVE,
    INACTIVE,
    PRIORITIES,
    TASK_STATUSES,
    TASK_STATUS_LABELS,
)
from schemas import TaskCreate, TaskOut, serialize
from services import ServiceResult, ok, fail, parse_id

logger = logging.getLogger(__name__)

DAY_END = time(23, 59, 59, 999000)

PRIORITY_ERROR = f"Priority must be one of: {', '.join(PRIORITIES)}"
STATUS_ERROR = f"Task status must be one of: {', '.join(TASK_STATUSES)}"


class _Absent:
    """Marks a filter key that was not supplied at all (as opposed to an explicit null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = _Absent()


@dataclass
class TaskFilters:
    # ABSENT: top-level tasks only. None: any parent. int: children of that task.
    parent_task_id: Any = ABSENT
    # ABSENT: no filter. None: column IS NULL. value: exact match.
    project_id: Any = ABSENT
    project_meeting_id: Any = ABSENT
    assigned_to: Any = ABSENT
    task_status: Any = ABSENT
    priority: Any = ABSENT
    # completion date range
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    submission_date_from: Optional[date] = None
    submission_date_to: Optional[date] = None
    is_today_tasks: bool = False
    show_all: bool = False
    page: int = 1
    per_page: int = config.DEFAULT_PER_PAGE

    @property
    def has_completion_range(self) -> bool:
        return self.from_date is not None and self.to_date is not None

    @property
    def has_submission_range(self) -> bool:
        return self.submission_date_from is not None and self.submission_date_to is not None


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to naive local time; naive ones pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_end(day: date) -> datetime:
    return datetime.combine(day, DAY_END)


def parse_day(value) -> Optional[date]:
    """'2024-01-31' or an ISO datetime -> calendar day. Blank -> None. Raises ValueError."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local(value).date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_local(datetime.fromisoformat(text)).date()


def is_truthy(value) -> bool:
    return value is True or value == 1 or str(value).strip().lower() in ("1", "true")


def calculate_duration(execution: Optional[datetime], completion: Optional[datetime]) -> Optional[int]:
    """Whole minutes from execution to completion, or None when either is missing."""
    if not execution or not completion:
        return None
    return math.floor((to_local(completion) - to_local(execution)).total_seconds() / 60)


def parse_task_filters(params: Mapping[str, str], default_assignee: Optional[int] = None) -> ServiceResult:
    """Build TaskFilters from query-string parameters; 400 on malformed values."""
    filters = TaskFilters()

    def int_param(key, allow_null=False):
        raw = params[key].strip()
        if allow_null and raw.lower() == "null":
            return None
        value = parse_id(raw)
        if value is None:
            raise ValueError(f"{key} must be an integer")
        return value

    try:
        if "parent_task_id" in params:
            filters.parent_task_id = int_param("parent_task_id", allow_null=True)
        if "project_id" in params:
            filters.project_id = int_param("project_id", allow_null=True)
        if "project_meeting_id" in params:
            filters.project_meeting_id = int_param("project_meeting_id", allow_null=True)
        if "assigned_to" in params:
            filters.assigned_to = int_param("assigned_to", allow_null=True)
        elif default_assignee is not None:
            filters.assigned_to = default_assignee

        if "task_status" in params:
            if params["task_status"] not in TASK_STATUSES:
                raise ValueError(STATUS_ERROR)
            filters.task_status = params["task_status"]
        if "priority" in params:
            if params["priority"] not in PRIORITIES:
                raise ValueError(PRIORITY_ERROR)
            filters.priority = params["priority"]

        for key in ("from_date", "to_date", "submission_date_from", "submission_date_to"):
            try:
                setattr(filters, key, parse_day(params.get(key)))
            except ValueError:
                raise ValueError(f"{key} must be a date (YYYY-MM-DD)")

        filters.is_today_tasks = is_truthy(params.get("is_today_tasks", ""))
        filters.show_all = is_truthy(params.get("show_all", ""))

        for key, default in (("page", 1), ("per_page", config.DEFAULT_PER_PAGE)):
            raw = (params.get(key) or "").strip()
            if not raw:
                setattr(filters, key, default)
                continue
            value = parse_id(raw)
            if value is None:
                raise ValueError(f"{key} must be an integer")
            setattr(filters, key, max(1, value))
    except ValueError as e:
        return fail(str(e), 400)

    return ok(filters)


def _apply_filters(query, filters: TaskFilters, now: datetime):
    query = query.filter(Task.status == ACTIVE)

    if filters.parent_task_id is ABSENT:
        query = query.filter(Task.parent_task_id.is_(None))
    elif filters.parent_task_id is not None:
        query = query.filter(Task.parent_task_id == filters.parent_task_id)

    for key, column in (
        ("project_id", Task.project_id),
        ("project_meeting_id", Task.project_meeting_id),
        ("assigned_to", Task.assigned_to),
        ("task_status", Task.task_status),
        ("priority", Task.priority),
    ):
        value = getattr(filters, key)
        if value is ABSENT:
            continue
        query = query.filter(column.is_(None) if value is None else column == value)

    if filters.has_completion_range:
        query = query.filter(
            Task.completion_date >= day_start(filters.from_date),
            Task.completion_date <= day_end(filters.to_date),
        )
    if filters.has_submission_range:
        query = query.filter(
            Task.submission_date >= day_start(filters.submission_date_from),
            Task.submission_date <= day_end(filters.submission_date_to),
        )
    if filters.is_today_tasks:
        today = now.date()
        query = query.filter(Task.target_date >= day_start(today), Task.target_date <= day_end(today))
    return query


def subtask_counts(db: Session, parent_ids: Iterable[int]) -> dict:
    """parent id -> (total, completed) over active immediate children."""
    parent_ids = list(parent_ids)
    counts = defaultdict(lambda: [0, 0])
    if not parent_ids:
        return counts
    rows = (
        db.query(Task.parent_task_id, Task.task_status)
        .filter(Task.parent_task_id.in_(parent_ids), Task.status == ACTIVE)
        .all()
    )
    for parent_id, task_status in rows:
        counts[parent_id][0] += 1
        if task_status == "completed":
            counts[parent_id][1] += 1
    return counts


def completion_summary(total: int, completed: int) -> dict:
    return {
        "totalSubTasks": total,
        "completedSubTasks": completed,
        "incompletedSubTasks": total - completed,
        "completionPercent": round(completed / total * 100) if total else 0,
    }


def _titles(db: Session, model, ids) -> dict:
    ids = {i for i in ids if i}
    if not ids:
        return {}
    return dict(db.query(model.id, model.title).filter(model.id.in_(ids)).all())


def annotate_tasks(db: Session, tasks: list, with_names: bool = True) -> list:
    """Serialize tasks and attach subtask roll-ups and project/meeting names."""
    counts = subtask_counts(db, [t.id for t in tasks])
    if with_names:
        project_names = _titles(db, Project, (t.project_id for t in tasks))
        meeting_names = _titles(db, Meeting, (t.project_meeting_id for t in tasks))

    data = []
    for task in tasks:
        item = serialize(TaskOut, task)
        total, completed = counts.get(task.id, (0, 0))
        item.update(completion_summary(total, completed))
        if with_names:
            item["projectName"] = project_names.get(task.project_id)
            item["meetingName"] = meeting_names.get(task.project_meeting_id)
        data.append(item)
    return data


def list_tasks(db: Session, filters: Optional[TaskFilters] = None, now: Optional[datetime] = None) -> ServiceResult:
    filters = filters or TaskFilters()
    now = now or datetime.now()
    page = max(1, filters.page)
    per_page = max(1, filters.per_page)

    try:
        query = _apply_filters(db.query(Task), filters, now)
        if filters.has_completion_range:
            query = query.order_by(Task.submission_date.asc(), Task.id.asc())
        else:
            query = query.order_by(Task.created_at.desc(), Task.id.desc())

        if filters.show_all:
            tasks = query.all()
            total = len(tasks)
        else:
            total = query.count()
            tasks = query.offset((page - 1) * per_page).limit(per_page).all()

        data = annotate_tasks(db, tasks)
    except SQLAlchemyError as e:
        logger.exception("Error listing tasks")
        return fail(str(e))

    if filters.show_all:
        page, last_page = 1, 1
        first, last = (None, None) if total == 0 else (1, total)
    else:
        last_page = max(1, math.ceil(total / per_page))
        if total == 0:
            first, last = None, None
        else:
            first, last = (page - 1) * per_page + 1, min(page * per_page, total)

    return ok(
        data,
        total=total,
        page=page,
        per_page=per_page,
        lastPage=last_page,
        **{"from": first, "to": last},
    )


def _load_task(db: Session, task_id):
    tid = parse_id(task_id)
    if tid is None:
        return None, fail("Invalid task ID", 400)
    task = db.get(Task, tid)
    if not task:
        return None, fail("Task not found", 404)
    return task, None


def _editable_task(db: Session, task_id, acting_user_id: int, action: str):
    task, error = _load_task(db, task_id)
    if error:
        return None, error
    if task.status != ACTIVE:
        return None, fail("Task not found", 404)
    # unassigned tasks are open to any authenticated user
    if task.assigned_to and task.assigned_to != acting_user_id:
        return None, fail(f"Unauthorized: You can only {action} tasks assigned to you", 403)
    return task, None


def get_task(db: Session, task_id) -> ServiceResult:
    try:
        task, error = _load_task(db, task_id)
        if error:
            return error
        data = serialize(TaskOut, task)
        data["projectName"] = _titles(db, Project, [task.project_id]).get(task.project_id)
        data["meetingName"] = _titles(db, Meeting, [task.project_meeting_id]).get(task.project_meeting_id)
    except SQLAlchemyError as e:
        logger.exception("Error getting task")
        return fail(str(e))
    return ok(data)


def get_subtasks(db: Session, parent_task_id) -> ServiceResult:
    try:
        parent, error = _load_task(db, parent_task_id)
        if error:
            if error.status_code == 404:
                return fail("Parent task not found", 404)
            return error
        children = (
            db.query(Task)
            .filter(Task.parent_task_id == parent.id, Task.status == ACTIVE)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .all()
        )
        data = annotate_tasks(db, children, with_names=False)
    except SQLAlchemyError as e:
        logger.exception("Error getting subtasks")
        return fail(str(e))
    return ok(data)


def _check_references(db: Session, project_id=None, assigned_to=None, parent_task_id=None,
                      project_meeting_id=None, meeting_project_id=None) -> Optional[ServiceResult]:
    """Existence checks for referenced rows. meeting_project_id is the task's prospective project."""
    if project_id and not db.get(Project, project_id):
        return fail("Project not found", 404)
    if assigned_to and not db.get(User, assigned_to):
        return fail("Assigned user not found", 404)
    if parent_task_id:
        parent = db.get(Task, parent_task_id)
        if not parent or parent.status != ACTIVE:
            return fail("Parent task not found", 404)
    if project_meeting_id:
        meeting = db.get(Meeting, project_meeting_id)
        if not meeting:
            return fail("Meeting not found", 404)
        if meeting_project_id and meeting.project_id != meeting_project_id:
            return fail("Meeting does not belong to the selected project", 400)
    return None


def _next_serial(db: Session, task_status: str) -> int:
    current = (
        db.query(func.max(Task.serial))
        .filter(Task.status == ACTIVE, Task.task_status == task_status)
        .scalar()
    )
    return (current or 0) + 1


def create_task(db: Session, data: TaskCreate, now: Optional[datetime] = None) -> ServiceResult:
    if not data.title:
        return fail("Title is required", 400)

    priority = data.priority or "mid"
    task_status = data.task_status or "pending"
    if priority not in PRIORITIES:
        return fail(PRIORITY_ERROR, 400)
    if task_status not in TASK_STATUSES:
        return fail(STATUS_ERROR, 400)

    execution_date = to_local(data.execution_date)
    completion_date = to_local(data.completion_date)

    try:
        error = _check_references(
            db,
            project_id=data.project_id,
            assigned_to=data.assigned_to,
            parent_task_id=data.parent_task_id,
            project_meeting_id=data.project_meeting_id,
            meeting_project_id=data.project_id,
        )
        if error:
            return error

        task = Task(
            title=data.title,
            description=data.description or None,
            project_id=data.project_id or None,
            project_meeting_id=data.project_meeting_id or None,
            parent_task_id=data.parent_task_id or None,
            assigned_to=data.assigned_to or None,
            priority=priority,
            task_status=task_status,
            status=ACTIVE,
            submission_date=to_local(data.submission_date) or now or datetime.now(),
            execution_date=execution_date,
            completion_date=completion_date,
            target_date=to_local(data.target_date),
            total_duration=calculate_duration(execution_date, completion_date),
            serial=_next_serial(db, task_status),
            comment=data.comment or None,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error creating task")
        return fail(str(e))

    logger.info("Task %s created", task.id)
    return ok(serialize(TaskOut, task), status_code=201)


def fast_create_task(db: Session, project_id, title, user_id: int, project_meeting_id=None) -> ServiceResult:
    """Title + project only; the caller becomes the assignee."""
    if not project_id or not title or not str(title).strip():
        return fail("Project ID and title are required", 400)
    return create_task(
        db,
        TaskCreate(
            title=str(title).strip(),
            project_id=project_id,
            project_meeting_id=project_meeting_id,
            assigned_to=user_id,
            priority="mid",
            task_status="pending",
        ),
    )


DATE_FIELDS = ("submission_date", "execution_date", "completion_date", "target_date")
NULLABLE_FIELDS = ("description", "comment", "project_id", "project_meeting_id", "parent_task_id", "assigned_to")


def update_task(db: Session, task_id, changes: dict, acting_user_id: int) -> ServiceResult:
    """Change only the fields present in `changes`; None clears a nullable field."""
    try:
        task, error = _editable_task(db, task_id, acting_user_id, "update")
        if error:
            return error

        if "parent_task_id" in changes and changes["parent_task_id"] == task.id:
            return fail("Task cannot be its own parent", 400)
        if "title" in changes and not changes["title"]:
            return fail("Title cannot be empty", 400)
        if "priority" in changes and changes["priority"] not in PRIORITIES:
            return fail(PRIORITY_ERROR, 400)
        if "task_status" in changes and changes["task_status"] not in TASK_STATUSES:
            return fail(STATUS_ERROR, 400)

        project_id = changes["project_id"] if "project_id" in changes else task.project_id
        meeting_id = (
            changes["project_meeting_id"] if "project_meeting_id" in changes else task.project_meeting_id
        )
        error = _check_references(
            db,
            project_id=changes.get("project_id"),
            assigned_to=changes.get("assigned_to"),
            parent_task_id=changes.get("parent_task_id"),
            project_meeting_id=meeting_id if ("project_meeting_id" in changes or "project_id" in changes) else None,
            meeting_project_id=project_id,
        )
        if error:
            return error

        for key in ("title", "priority", "task_status"):
            if key in changes:
                setattr(task, key, changes[key])
        for key in NULLABLE_FIELDS:
            if key in changes:
                setattr(task, key, changes[key] or None)
        for key in DATE_FIELDS:
            if key in changes:
                setattr(task, key, to_local(changes[key]))

        if "execution_date" in changes or "completion_date" in changes:
            task.total_duration = calculate_duration(task.execution_date, task.completion_date)

        db.commit()
        db.refresh(task)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error updating task")
        return fail(str(e))

    return ok(serialize(TaskOut, task))


def delete_task(db: Session, task_id, acting_user_id: int) -> ServiceResult:
    """Soft delete: the row stays, with status set to inactive."""
    try:
        task, error = _editable_task(db, task_id, acting_user_id, "delete")
        if error:
            return error
        task.status = INACTIVE
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error deleting task")
        return fail(str(e))

    logger.info("Task %s deleted by user %s", task.id, acting_user_id)
    return ok(message="Task deleted successfully")


def set_target_date(db: Session, task_id, target_date: Optional[datetime], acting_user_id: int,
                    clear: bool = False, now: Optional[datetime] = None) -> ServiceResult:
    """Put a task on the caller's worklist for a day (default: now), or take it off."""
    try:
        task, error = _editable_task(db, task_id, acting_user_id, "schedule")
        if error:
            return error
        task.target_date = None if clear else (to_local(target_date) or now or datetime.now())
        db.commit()
        db.refresh(task)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error setting target date")
        return fail(str(e))
    return ok(serialize(TaskOut, task))


def get_project_tasks(db: Session, project_id, task_statuses=None, project_meeting_id=None,
                      date_type: str = "submission_date", sort_by: Optional[str] = None,
                      sort_order: str = "asc", from_date=None, to_date=None) -> ServiceResult:
    """Top-level tasks of one project with their subtasks, for the project details page."""
    pid = parse_id(project_id)
    if pid is None:
        return fail("Invalid project ID", 400)
    if task_statuses and any(s not in TASK_STATUSES for s in task_statuses):
        return fail(STATUS_ERROR, 400)
    try:
        from_day, to_day = parse_day(from_date), parse_day(to_date)
    except ValueError:
        return fail("from_date and to_date must be dates (YYYY-MM-DD)", 400)

    date_column = Task.completion_date if date_type == "completion_date" else Task.submission_date
    sort_column = Task.id if sort_by == "id" else date_column

    try:
        if not db.get(Project, pid):
            return fail("Project not found", 404)

        query = db.query(Task).filter(
            Task.status == ACTIVE, Task.project_id == pid, Task.parent_task_id.is_(None)
        )
        if task_statuses:
            query = query.filter(Task.task_status.in_(task_statuses))
        if project_meeting_id is not None:
            query = query.filter(Task.project_meeting_id == project_meeting_id)
        if from_day and to_day:
            query = query.filter(date_column >= day_start(from_day), date_column <= day_end(to_day))
        else:
            query = query.filter(date_column.isnot(None))
        query = query.order_by(sort_column.desc() if sort_order == "desc" else sort_column.asc(), Task.id.asc())
        tasks = query.all()

        subtasks = defaultdict(list)
        if tasks:
            children = (
                db.query(Task)
                .filter(Task.parent_task_id.in_([t.id for t in tasks]), Task.status == ACTIVE)
                .order_by(Task.id.asc())
            )
            for child in children:
                subtasks[child.parent_task_id].append({
                    "id": child.id,
                    "title": child.title,
                    "description": child.description,
                    "comment": child.comment,
                    "taskStatus": child.task_status,
                })
        meeting_names = _titles(db, Meeting, (t.project_meeting_id for t in tasks))
    except SQLAlchemyError as e:
        logger.exception("Error getting project tasks")
        return fail(str(e))

    data = []
    for task in tasks:
        item = serialize(TaskOut, task)
        item["subtasks"] = subtasks.get(task.id, [])
        item["meetingName"] = meeting_names.get(task.project_meeting_id)
        data.append(item)
    return ok(data)


# Aggregate views. All count active top-level tasks only.

def _top_level(db: Session, user_id: Optional[int], *columns):
    query = db.query(*columns).filter(Task.status == ACTIVE, Task.parent_task_id.is_(None))
    if user_id:
        query = query.filter(Task.assigned_to == user_id)
    return query


def start_of_iso_week(moment: datetime) -> datetime:
    day = moment.date()
    return day_start(day - timedelta(days=day.weekday()))


def get_task_progress_stats(db: Session, user_id: Optional[int] = None, now: Optional[datetime] = None) -> ServiceResult:
    now = now or datetime.now()
    today = day_start(now.date())
    week = start_of_iso_week(now)
    month = datetime(now.year, now.month, 1)
    next_month = datetime(now.year + 1, 1, 1) if now.month == 12 else datetime(now.year, now.month + 1, 1)

    def completed_between(start, end):
        return (
            _top_level(db, user_id, func.count(Task.id))
            .filter(Task.task_status == "completed", Task.completion_date >= start, Task.completion_date < end)
            .scalar()
        )

    try:
        statuses = [s for (s,) in _top_level(db, user_id, Task.task_status)]
        data = {
            "total": len(statuses),
            "incomplete": sum(1 for s in statuses if s != "completed"),
            "todayCompleted": completed_between(today, today + timedelta(days=1)),
            "thisWeekCompleted": completed_between(week, week + timedelta(days=7)),
            "thisMonthCompleted": completed_between(month, next_month),
        }
    except SQLAlchemyError as e:
        logger.exception("Error getting task progress stats")
        return fail(str(e))
    return ok(data)


def get_task_status_analytics(db: Session, user_id: Optional[int] = None) -> ServiceResult:
    try:
        rows = (
            _top_level(db, user_id, Task.task_status, func.count(Task.id))
            .group_by(Task.task_status)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Error getting task status analytics")
        return fail(str(e))

    counts = dict(rows)
    return ok([
        {"status": s, "label": TASK_STATUS_LABELS[s], "count": counts.get(s, 0)}
        for s in TASK_STATUSES
    ])


def get_calendar_years(db: Session, user_id: Optional[int] = None, now: Optional[datetime] = None) -> ServiceResult:
    """Years that have any completion or submission date, plus the current year."""
    years = {(now or datetime.now()).year}
    try:
        for completed, submitted in _top_level(db, user_id, Task.completion_date, Task.submission_date):
            if completed:
                years.add(completed.year)
            if submitted:
                years.add(submitted.year)
    except SQLAlchemyError as e:
        logger.exception("Error getting calendar years")
        return fail(str(e))
    return ok(sorted(years))


def get_calendar_month(db: Session, year, month, user_id: Optional[int] = None) -> ServiceResult:
    """Completed-task count per day of the month: {day: count}."""
    year, month = parse_id(year), parse_id(month)
    if year is None or month is None or not 1 <= month <= 12 or not 1 <= year <= 9999:
        return fail("year and month (1-12) are required", 400)

    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    try:
        dates = (
            _top_level(db, user_id, Task.completion_date)
            .filter(Task.task_status == "completed", Task.completion_date >= start, Task.completion_date < end)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Error getting calendar month data")
        return fail(str(e))

    by_day = defaultdict(int)
    for (completed,) in dates:
        by_day[completed.day] += 1
    return ok(dict(by_day))


# Kanban

def get_kanban_tasks(db: Session, user_id: Optional[int] = None, project_id: Optional[int] = None) -> ServiceResult:
    """One column per task status, cards ordered by serial."""
    try:
        query = _top_level(db, user_id, Task)
        if project_id is not None:
            query = query.filter(Task.project_id == project_id)
        tasks = query.order_by(Task.serial.asc(), Task.id.asc()).all()
        cards = annotate_tasks(db, tasks)
    except SQLAlchemyError as e:
        logger.exception("Error getting kanban tasks")
        return fail(str(e))

    columns = {s: [] for s in TASK_STATUSES}
    for card in cards:
        columns[card["taskStatus"]].append(card)
    return ok([
        {"status": s, "label": TASK_STATUS_LABELS[s], "tasks": columns[s]}
        for s in TASK_STATUSES
    ])


def update_kanban_task(db: Session, task_id, task_status: str, ordered_ids: Optional[list],
                       acting_user_id: int) -> ServiceResult:
    """Move a card into a column. ordered_ids is the column's new top-to-bottom order."""
    if task_status not in TASK_STATUSES:
        return fail(STATUS_ERROR, 400)

    try:
        task, error = _editable_task(db, task_id, acting_user_id, "update")
        if error:
            return error

        moved = task.task_status != task_status
        task.task_status = task_status
        if ordered_ids:
            # only the caller's own or unassigned cards are renumbered
            column = {
                t.id: t for t in db.query(Task).filter(
                    Task.id.in_(ordered_ids),
                    Task.status == ACTIVE,
                    Task.task_status == task_status,
                    or_(Task.assigned_to == acting_user_id, Task.assigned_to.is_(None)),
                )
            }
            column[task.id] = task
            for position, tid in enumerate(ordered_ids, start=1):
                if tid in column:
                    column[tid].serial = position
        elif moved:
            task.serial = _next_serial(db, task_status)

        db.commit()
        db.refresh(task)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error updating kanban task")
        return fail(str(e))

    return ok(serialize(TaskOut, task))
