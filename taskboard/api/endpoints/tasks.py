from fastapi import APIRouter, Depends, status
from typing import Optional

from taskboard.api.deps import ListParams, get_task_store, get_user_store
from taskboard.core.config import settings
from taskboard.core.errors import NotFound
from taskboard.core.query import parse_list_query, parse_select
from taskboard.db.store import CastError, DocumentStore
from taskboard.models import Task, User
from taskboard.schemas.envelope import Envelope
from taskboard.schemas.task import TaskCreate, TaskUpdate
from taskboard.services import pending_tasks
from taskboard.services.pending_tasks import Assignment

router = APIRouter()

TASK_NOT_FOUND = "Task not found."


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_task(
    task_create: TaskCreate,
    tasks: DocumentStore[Task] = Depends(get_task_store),
    users: DocumentStore[User] = Depends(get_user_store)
):
    task_create.check_required()

    db_task = Task(name=task_create.name, deadline=task_create.deadline)
    # Optional fields are copied only when given, otherwise the model defaults stay
    if task_create.description:
        db_task.description = task_create.description
    if task_create.completed:
        db_task.completed = task_create.completed
    if task_create.assigned_user:
        db_task.assigned_user = task_create.assigned_user
    if task_create.assigned_user_name:
        db_task.assigned_user_name = task_create.assigned_user_name

    tasks.create(db_task)
    pending_tasks.task_created(users, db_task)

    return Envelope(message="Task created!", data=db_task.to_document())


@router.get("", response_model=Envelope)
def list_tasks(
    params: ListParams = Depends(),
    tasks: DocumentStore[Task] = Depends(get_task_store)
):
    query = parse_list_query(
        params.where, params.sort, params.select, params.skip, params.limit, params.count,
        default_limit=settings.TASKS_DEFAULT_LIMIT,
    )
    try:
        if query.count:
            return Envelope(message="OK", data=tasks.count_documents(query.where))
        documents = tasks.find(query.where, query.sort, query.select, query.skip, query.limit)
    except CastError:
        raise NotFound(TASK_NOT_FOUND)

    return Envelope(message="OK", data=documents)


@router.get("/{task_id}", response_model=Envelope)
def get_task(
    task_id: str,
    select: Optional[str] = None,
    tasks: DocumentStore[Task] = Depends(get_task_store)
):
    projection = parse_select(select)
    try:
        document = tasks.find_by_id(task_id, projection)
    except CastError:
        raise NotFound(TASK_NOT_FOUND)
    if document is None:
        raise NotFound(TASK_NOT_FOUND)
    return Envelope(message="OK", data=document)


@router.put("/{task_id}", response_model=Envelope)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    tasks: DocumentStore[Task] = Depends(get_task_store),
    users: DocumentStore[User] = Depends(get_user_store)
):
    changes = task_update.to_changes()
    try:
        task = tasks.get(task_id)
        if task is None:
            raise NotFound(TASK_NOT_FOUND)
        # Snapshot before the write, the update mutates this same instance
        before = Assignment.of(task)
        task = tasks.find_by_id_and_update(task_id, changes)
    except CastError:
        raise NotFound(TASK_NOT_FOUND)
    if task is None:
        raise NotFound(TASK_NOT_FOUND)

    pending_tasks.task_updated(users, task.id, before, Assignment.of(task))

    return Envelope(message="Task updated!", data=task.to_document())


@router.delete("/{task_id}", response_model=Envelope)
def delete_task(
    task_id: str,
    tasks: DocumentStore[Task] = Depends(get_task_store),
    users: DocumentStore[User] = Depends(get_user_store)
):
    try:
        task = tasks.find_by_id_and_delete(task_id)
    except CastError:
        raise NotFound(TASK_NOT_FOUND)
    if task is None:
        raise NotFound(TASK_NOT_FOUND)

    pending_tasks.task_deleted(users, task)

    return Envelope(message="Task deleted!", data=task.to_document())
