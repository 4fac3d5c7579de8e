from fastapi import Depends, Query
from sqlmodel import Session
from typing import Optional

from taskboard.db.session import get_session
from taskboard.db.store import DocumentStore, task_store, user_store
from taskboard.models import Task, User


def get_user_store(session: Session = Depends(get_session)) -> DocumentStore[User]:
    return user_store(session)


def get_task_store(session: Session = Depends(get_session)) -> DocumentStore[Task]:
    return task_store(session)


class ListParams:
    """Raw list query parameters, decoded later by taskboard.core.query."""

    def __init__(
        self,
        where: Optional[str] = Query(None, description='JSON filter, e.g. {"completed": false}'),
        sort: Optional[str] = Query(None, description='JSON sort, e.g. {"deadline": 1}'),
        select: Optional[str] = Query(None, description='JSON projection, e.g. {"name": 1}'),
        skip: Optional[str] = Query(None, description="Number of documents to skip"),
        limit: Optional[str] = Query(None, description="Maximum number of documents to return"),
        count: Optional[str] = Query(None, description='"true" to return only the number of matches'),
    ):
        self.where = where
        self.sort = sort
        self.select = select
        self.skip = skip
        self.limit = limit
        self.count = count
