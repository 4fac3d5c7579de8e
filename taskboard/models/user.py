from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import Any, Dict, List
from datetime import datetime, timezone
import uuid


def new_object_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # Timestamps without an offset are taken as UTC, the datetime columns only accept aware values
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Wire name -> attribute name; the only fields clients may filter, sort or select on
USER_FIELDS = {
    "_id": "id",
    "name": "name",
    "email": "email",
    "pendingTasks": "pending_tasks",
    "dateCreated": "date_created",
}


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_object_id, primary_key=True)
    name: str = Field(nullable=False)
    email: str = Field(unique=True, index=True, nullable=False)

    # Ids of tasks assigned to this user and not completed, kept in sync by
    # taskboard.services.pending_tasks
    pending_tasks: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    date_created: datetime = Field(default_factory=utcnow, nullable=False)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "pendingTasks": list(self.pending_tasks or []),
            "dateCreated": self.date_created,
        }
