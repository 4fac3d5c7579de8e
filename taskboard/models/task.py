from sqlmodel import SQLModel, Field
from typing import Any, Dict
from datetime import datetime

from .user import new_object_id, utcnow


UNASSIGNED_NAME = "unassigned"

TASK_FIELDS = {
    "_id": "id",
    "name": "name",
    "description": "description",
    "deadline": "deadline",
    "completed": "completed",
    "assignedUser": "assigned_user",
    "assignedUserName": "assigned_user_name",
    "dateCreated": "date_created",
}


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: str = Field(default_factory=new_object_id, primary_key=True)
    name: str = Field(nullable=False)
    description: str = Field(default="")
    deadline: datetime = Field(nullable=False)
    completed: bool = Field(default=False, nullable=False)

    # Plain user id, not a foreign key: "" means unassigned
    assigned_user: str = Field(default="", index=True, nullable=False)
    assigned_user_name: str = Field(default=UNASSIGNED_NAME, nullable=False)

    date_created: datetime = Field(default_factory=utcnow, nullable=False)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "deadline": self.deadline,
            "completed": self.completed,
            "assignedUser": self.assigned_user,
            "assignedUserName": self.assigned_user_name,
            "dateCreated": self.date_created,
        }
