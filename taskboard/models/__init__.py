# Importing both tables here registers them on SQLModel.metadata together
from .user import User, USER_FIELDS, ensure_utc
from .task import Task, TASK_FIELDS, UNASSIGNED_NAME

__all__ = ["User", "Task", "USER_FIELDS", "TASK_FIELDS", "UNASSIGNED_NAME", "ensure_utc"]
