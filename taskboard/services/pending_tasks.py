"""
Keeps ``User.pendingTasks`` mirrored with ``Task.assignedUser``/``Task.completed``.

Both resource handlers call into this module after their primary write has
committed. The follow-up writes are separate store calls with no transaction
around them, so the mirror is eventually consistent at best.

Failure policy: a failed follow-up write is logged at WARNING with the task
and user ids and then ignored. It never changes the response of the request
that triggered it, and nothing already written is rolled back.
"""
import logging
from typing import Any, Callable, Iterable, List, NamedTuple

from ..db.store import CastError, DocumentStore, StoreError, cast_object_id
from ..models import Task, UNASSIGNED_NAME, User

logger = logging.getLogger(__name__)


class Assignment(NamedTuple):
    """The two task fields the mirror depends on, captured before an update."""

    assigned_user: str
    completed: bool

    @classmethod
    def of(cls, task: Task) -> "Assignment":
        return cls(task.assigned_user or "", bool(task.completed))

    @property
    def is_pending(self) -> bool:
        return bool(self.assigned_user) and not self.completed


def _best_effort(action: str, user_id: str, task_id: str, write: Callable[[], Any]) -> bool:
    try:
        result = write()
    except StoreError as exc:
        logger.warning("Could not %s task %s for user %s: %s", action, task_id, user_id, exc.message)
        return False
    if result is None:
        logger.debug("User %s not found while trying to %s task %s", user_id, action, task_id)
        return False
    logger.debug("%s task %s for user %s", action.capitalize(), task_id, user_id)
    return True


def add_pending(users: DocumentStore[User], user_id: str, task_id: str) -> bool:
    return _best_effort("add pending", user_id, task_id, lambda: users.push(user_id, "pending_tasks", task_id))


def remove_pending(users: DocumentStore[User], user_id: str, task_id: str) -> bool:
    return _best_effort("remove pending", user_id, task_id, lambda: users.pull(user_id, "pending_tasks", task_id))


def task_created(users: DocumentStore[User], task: Task) -> None:
    if Assignment.of(task).is_pending:
        add_pending(users, task.assigned_user, task.id)


def task_updated(users: DocumentStore[User], task_id: str, before: Assignment, after: Assignment) -> None:
    if before.assigned_user != after.assigned_user:
        if before.assigned_user:
            remove_pending(users, before.assigned_user, task_id)
        if after.is_pending:
            add_pending(users, after.assigned_user, task_id)
    elif after.assigned_user and before.completed != after.completed:
        if after.completed:
            remove_pending(users, after.assigned_user, task_id)
        else:
            add_pending(users, after.assigned_user, task_id)


def task_deleted(users: DocumentStore[User], task: Task) -> None:
    if task.assigned_user:
        remove_pending(users, task.assigned_user, task.id)


def _valid_task_ids(user: User, task_ids: Iterable[str]) -> List[str]:
    valid = []
    for task_id in task_ids:
        try:
            valid.append(cast_object_id(task_id))
        except CastError:
            logger.warning("User %s lists malformed task id %r, skipping it", user.id, task_id)
    return valid


def user_deleted(tasks: DocumentStore[Task], user: User) -> int:
    """
    Unassign every task listed in the deleted user's ``pendingTasks``.

    Completed tasks in that list are unassigned too. Returns the number of
    tasks updated, 0 when the bulk write failed.
    """
    task_ids = _valid_task_ids(user, user.pending_tasks or [])
    if not task_ids:
        return 0
    try:
        updated = tasks.update_many(
            {"_id": {"$in": task_ids}},
            {"assigned_user": "", "assigned_user_name": UNASSIGNED_NAME},
        )
    except StoreError as exc:
        logger.warning("Could not unassign %d tasks of deleted user %s: %s", len(task_ids), user.id, exc.message)
        return 0
    logger.debug("Unassigned %d tasks of deleted user %s", updated, user.id)
    return updated
