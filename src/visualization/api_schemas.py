"""Pydantic schemas for the Tasks REST API (request/response only)."""

from sqlmodel import SQLModel

from models import TaskBase


class TaskCreate(TaskBase):
    """Request body for creating a task. Reuses TaskBase fields; id and date are server-assigned."""


class DeleteResult(SQLModel):
    success: bool = True
