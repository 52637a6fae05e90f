from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self, **kwargs):
        return self.model_dump(by_alias=True, **kwargs)


# Requests

class UserCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProjectCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None


class ProjectUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None


class MeetingCreate(CamelModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    project_id: Optional[int] = None


class MeetingUpdate(CamelModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    project_id: Optional[int] = None


class TaskCreate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[int] = None
    project_meeting_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    assigned_to: Optional[int] = None
    priority: Optional[str] = "mid"
    task_status: Optional[str] = "pending"
    submission_date: Optional[datetime] = None
    execution_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    comment: Optional[str] = None


class TaskUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[int] = None
    project_meeting_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    assigned_to: Optional[int] = None
    priority: Optional[str] = None
    task_status: Optional[str] = None
    submission_date: Optional[datetime] = None
    execution_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    comment: Optional[str] = None


class TaskFastCreate(CamelModel):
    project_id: Optional[int] = None
    project_meeting_id: Optional[int] = None
    title: Optional[str] = None


class TargetDateRequest(CamelModel):
    task_id: int
    target_date: Optional[datetime] = None
    clear: bool = False


class KanbanUpdate(CamelModel):
    task_id: int
    task_status: str
    ordered_ids: Optional[List[int]] = None


# Responses

class UserOut(CamelModel):
    id: int
    name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    creator: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MeetingOut(CamelModel):
    id: int
    title: str
    slug: str
    project_id: int
    creator: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    project_id: Optional[int] = None
    project_meeting_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    assigned_to: Optional[int] = None
    priority: str
    task_status: str
    status: int
    submission_date: Optional[datetime] = None
    execution_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    total_duration: Optional[int] = None
    serial: int = 0
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def serialize(schema, obj) -> dict:
    return schema.model_validate(obj).dump()
