from enum import Enum

from sqlmodel import Field, SQLModel


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    AZ = "az"
    ZA = "za"


class TaskBase(SQLModel):
    """Shared fields for Task and the API create schema."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


class Task(TaskBase):
    id: str
    date: int  # ms since epoch
