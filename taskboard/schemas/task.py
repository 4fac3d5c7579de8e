from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional
from datetime import datetime

from ..core.errors import ValidationError
from ..models import UNASSIGNED_NAME, ensure_utc


class TaskBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    completed: Optional[bool] = None
    assigned_user: Optional[str] = Field(default=None, alias="assignedUser")
    assigned_user_name: Optional[str] = Field(default=None, alias="assignedUserName")

    @field_validator("deadline")
    @classmethod
    def deadline_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else value


class TaskCreate(TaskBase):
    def check_required(self) -> None:
        if not self.name or not self.deadline:
            raise ValidationError("'name' and 'deadline' are required fields.")


class TaskUpdate(TaskBase):
    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        for required in ("name", "deadline"):
            if required in changes and not changes[required]:
                raise ValidationError(f"'{required}' cannot be empty.")
        if "completed" in changes and changes["completed"] is None:
            raise ValidationError("'completed' must be a boolean.")

        # Explicit nulls fall back to the column defaults
        if "description" in changes and changes["description"] is None:
            changes["description"] = ""
        if "assigned_user" in changes and changes["assigned_user"] is None:
            changes["assigned_user"] = ""
        if "assigned_user_name" in changes and changes["assigned_user_name"] is None:
            changes["assigned_user_name"] = UNASSIGNED_NAME
        return changes
