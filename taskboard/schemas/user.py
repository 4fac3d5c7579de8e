from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from ..core.errors import ValidationError


class UserBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    pending_tasks: Optional[List[str]] = Field(default=None, alias="pendingTasks")


class UserCreate(UserBase):
    def check_required(self) -> None:
        if not self.name or not self.email:
            raise ValidationError("'name' and 'email' are required fields.")


class UserUpdate(UserBase):
    def to_changes(self) -> Dict[str, Any]:
        """Fields present in the request body, keyed by model attribute."""
        changes = self.model_dump(exclude_unset=True)
        for required in ("name", "email"):
            if required in changes and not changes[required]:
                raise ValidationError(f"'{required}' cannot be empty.")
        if "pending_tasks" in changes and changes["pending_tasks"] is None:
            changes["pending_tasks"] = []
        return changes
