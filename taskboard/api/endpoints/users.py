from fastapi import APIRouter, Depends, status
from typing import Optional

from taskboard.api.deps import ListParams, get_task_store, get_user_store
from taskboard.core.config import settings
from taskboard.core.errors import DuplicateKey, NotFound
from taskboard.core.query import parse_list_query, parse_select
from taskboard.db.store import CastError, DocumentStore, DuplicateKeyError
from taskboard.models import Task, User
from taskboard.schemas.envelope import Envelope
from taskboard.schemas.user import UserCreate, UserUpdate
from taskboard.services import pending_tasks

router = APIRouter()

USER_NOT_FOUND = "User not found."
EMAIL_EXISTS = "Email already exists."


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_user(
    user_create: UserCreate,
    users: DocumentStore[User] = Depends(get_user_store)
):
    user_create.check_required()

    db_user = User(name=user_create.name, email=user_create.email)
    if user_create.pending_tasks:
        db_user.pending_tasks = list(user_create.pending_tasks)
    # date_created is filled in by the model default

    try:
        users.create(db_user)
    except DuplicateKeyError:
        raise DuplicateKey(EMAIL_EXISTS)

    return Envelope(message="User created!", data=db_user.to_document())


@router.get("", response_model=Envelope)
def list_users(
    params: ListParams = Depends(),
    users: DocumentStore[User] = Depends(get_user_store)
):
    query = parse_list_query(
        params.where, params.sort, params.select, params.skip, params.limit, params.count,
        default_limit=settings.USERS_DEFAULT_LIMIT,
    )
    try:
        if query.count:
            return Envelope(message="OK", data=users.count_documents(query.where))
        documents = users.find(query.where, query.sort, query.select, query.skip, query.limit)
    except CastError:
        raise NotFound(USER_NOT_FOUND)

    return Envelope(message="OK", data=documents)


@router.get("/{user_id}", response_model=Envelope)
def get_user(
    user_id: str,
    select: Optional[str] = None,
    users: DocumentStore[User] = Depends(get_user_store)
):
    projection = parse_select(select)
    try:
        document = users.find_by_id(user_id, projection)
    except CastError:
        raise NotFound(USER_NOT_FOUND)
    if document is None:
        raise NotFound(USER_NOT_FOUND)
    return Envelope(message="OK", data=document)


@router.put("/{user_id}", response_model=Envelope)
def update_user(
    user_id: str,
    user_update: UserUpdate,
    users: DocumentStore[User] = Depends(get_user_store)
):
    # pendingTasks written here is stored as sent, without reconciling tasks
    changes = user_update.to_changes()
    try:
        user = users.find_by_id_and_update(user_id, changes)
    except CastError:
        raise NotFound(USER_NOT_FOUND)
    except DuplicateKeyError:
        raise DuplicateKey(EMAIL_EXISTS)
    if user is None:
        raise NotFound(USER_NOT_FOUND)

    return Envelope(message="User updated!", data=user.to_document())


@router.delete("/{user_id}", response_model=Envelope)
def delete_user(
    user_id: str,
    users: DocumentStore[User] = Depends(get_user_store),
    tasks: DocumentStore[Task] = Depends(get_task_store)
):
    try:
        user = users.find_by_id_and_delete(user_id)
    except CastError:
        raise NotFound(USER_NOT_FOUND)
    if user is None:
        raise NotFound(USER_NOT_FOUND)

    pending_tasks.user_deleted(tasks, user)

    return Envelope(
        message="User deleted! All associated tasks have been unassigned.",
        data=user.to_document(),
    )
