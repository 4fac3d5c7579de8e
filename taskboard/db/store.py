"""
Document-store style access to the ``users`` and ``tasks`` tables.

Handlers talk to collections through ``DocumentStore`` with the vocabulary of
a document database (find, count, find-by-id-and-update, push, pull, ...).
Filters and sort orders arrive as client JSON and are compiled here into
SQLAlchemy expressions, restricted to each collection's field whitelist and
a fixed set of operators.

Every write commits on its own: one call is atomic for one row and nothing
spans two calls.
"""
import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, get_args, get_origin

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import String, and_, asc, cast, desc, not_, or_, true, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, func, select

from ..core.errors import BadRequest, ServerError
from ..core.query import ID_FIELD, Projection, canonical_field
from ..models import Task, TASK_FIELDS, User, USER_FIELDS, ensure_utc

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class StoreError(ServerError):
    pass


class CastError(StoreError):
    def __init__(self, value: Any):
        super().__init__(f'Cast to ObjectId failed for value "{value}"')
        self.value = value


class DuplicateKeyError(StoreError):
    pass


def cast_object_id(value: Any) -> str:
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        raise CastError(value)


_COMPARISONS = {
    "$eq": lambda column, value: column == value,
    "$ne": lambda column, value: column != value,
    "$gt": lambda column, value: column > value,
    "$gte": lambda column, value: column >= value,
    "$lt": lambda column, value: column < value,
    "$lte": lambda column, value: column <= value,
}

_SORT_DIRECTIONS = {
    1: asc,
    "1": asc,
    "asc": asc,
    "ascending": asc,
    -1: desc,
    "-1": desc,
    "desc": desc,
    "descending": desc,
}

_LOGICAL = ("$and", "$or", "$nor")


class DocumentStore(Generic[ModelT]):
    """One collection of documents backed by one SQLModel table."""

    def __init__(self, session: Session, model: Type[ModelT], fields: Mapping[str, str]):
        self.session = session
        self.model = model
        # wire name -> attribute name
        self.fields = dict(fields)
        self._adapters: Dict[str, TypeAdapter] = {}
        self.list_attrs = {
            attr for attr in self.fields.values()
            if get_origin(model.model_fields[attr].annotation) is list
        }

    @property
    def name(self) -> str:
        return self.model.__tablename__

    # --- query compilation ---

    def _attr(self, name: str, where: str) -> str:
        attr = self.fields.get(canonical_field(name))
        if attr is None:
            raise BadRequest(f"Bad Request: Unknown field '{name}' in '{where}'.")
        return attr

    def _coerce(self, attr: str, value: Any) -> Any:
        if attr == self.fields[ID_FIELD]:
            return cast_object_id(value)
        adapter = self._adapters.get(attr)
        if adapter is None:
            annotation = self.model.model_fields[attr].annotation
            if attr in self.list_attrs:
                # equality on a list field matches one element
                annotation = get_args(annotation)[0]
            adapter = self._adapters[attr] = TypeAdapter(annotation)
        try:
            coerced = adapter.validate_python(value)
        except PydanticValidationError:
            raise BadRequest(f"Bad Request: Invalid value {value!r} for field '{attr}' in 'where'.")
        if isinstance(coerced, datetime):
            return ensure_utc(coerced)
        return coerced

    def _compile_operator(self, name: str, attr: str, op: str, operand: Any):
        column = getattr(self.model, attr)

        if attr in self.list_attrs:
            if op != "$eq":
                raise BadRequest(f"Bad Request: Operator '{op}' is not supported on '{name}'.")
            needle = json.dumps(self._coerce(attr, operand))
            return cast(column, String).contains(needle, autoescape=True)

        if op in ("$in", "$nin"):
            if not isinstance(operand, list):
                raise BadRequest(f"Bad Request: '{op}' on '{name}' needs an array.")
            clause = column.in_([self._coerce(attr, item) for item in operand])
            return clause if op == "$in" else not_(clause)

        comparison = _COMPARISONS.get(op)
        if comparison is None:
            raise BadRequest(f"Bad Request: Unsupported operator '{op}' in 'where'.")
        if operand is None:
            if op == "$eq":
                return column.is_(None)
            if op == "$ne":
                return column.is_not(None)
            raise BadRequest(f"Bad Request: '{op}' on '{name}' cannot compare with null.")
        return comparison(column, self._coerce(attr, operand))

    def _compile_condition(self, name: str, condition: Any):
        attr = self._attr(name, "where")
        if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
            return and_(*[self._compile_operator(name, attr, op, operand) for op, operand in condition.items()])
        return self._compile_operator(name, attr, "$eq", condition)

    def compile_where(self, where: Mapping[str, Any]) -> List[Any]:
        clauses = []
        for key, value in where.items():
            if key in _LOGICAL:
                if not isinstance(value, list) or not value or not all(isinstance(item, dict) for item in value):
                    raise BadRequest(f"Bad Request: '{key}' needs a non-empty array of objects.")
                branches = [and_(true(), *self.compile_where(item)) for item in value]
                if key == "$and":
                    clauses.append(and_(*branches))
                elif key == "$or":
                    clauses.append(or_(*branches))
                else:
                    clauses.append(not_(or_(*branches)))
            elif key.startswith("$"):
                raise BadRequest(f"Bad Request: Unsupported operator '{key}' in 'where'.")
            else:
                clauses.append(self._compile_condition(key, value))
        return clauses

    def compile_sort(self, sort: Mapping[str, Any]) -> List[Any]:
        order = []
        for name, direction in sort.items():
            attr = self._attr(name, "sort")
            if attr in self.list_attrs:
                raise BadRequest(f"Bad Request: Cannot sort on '{name}'.")
            key = direction.lower() if isinstance(direction, str) else direction
            if isinstance(key, bool) or not isinstance(key, (int, str)) or key not in _SORT_DIRECTIONS:
                raise BadRequest(f"Bad Request: Invalid sort direction {direction!r} for '{name}'.")
            order.append(_SORT_DIRECTIONS[key](getattr(self.model, attr)))
        return order

    # --- error translation ---

    @contextmanager
    def _guard(self):
        try:
            yield
        except IntegrityError as exc:
            self.session.rollback()
            text = str(exc.orig)
            if "unique" in text.lower() or "duplicate" in text.lower():
                raise DuplicateKeyError(text) from exc
            raise StoreError(text) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc

    # --- reads ---

    def get(self, doc_id: Any) -> Optional[ModelT]:
        object_id = cast_object_id(doc_id)
        with self._guard():
            return self.session.get(self.model, object_id)

    def find_by_id(self, doc_id: Any, projection: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        selector = Projection(projection or {}, self.fields)
        document = self.get(doc_id)
        if document is None:
            return None
        return selector.apply(document.to_document())

    def find(
        self,
        where: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        selector = Projection(projection or {}, self.fields)
        statement = select(self.model).where(*self.compile_where(where or {}))
        order = self.compile_sort(sort or {})
        if order:
            statement = statement.order_by(*order)
        if skip:
            statement = statement.offset(skip)
        if limit:
            statement = statement.limit(limit)

        with self._guard():
            rows = self.session.exec(statement).all()
        return [selector.apply(row.to_document()) for row in rows]

    def count_documents(self, where: Optional[Mapping[str, Any]] = None) -> int:
        statement = select(func.count()).select_from(self.model).where(*self.compile_where(where or {}))
        with self._guard():
            return self.session.exec(statement).one()

    # --- writes ---

    def create(self, document: ModelT) -> ModelT:
        with self._guard():
            self.session.add(document)
            self.session.commit()
            self.session.refresh(document)
        logger.info("Created %s %s", self.name, document.id)
        return document

    def find_by_id_and_update(self, doc_id: Any, changes: Mapping[str, Any]) -> Optional[ModelT]:
        """Apply ``changes`` (attribute name -> value) and return the updated row."""
        document = self.get(doc_id)
        if document is None:
            return None
        with self._guard():
            for attr, value in changes.items():
                setattr(document, attr, value)
            self.session.add(document)
            self.session.commit()
            self.session.refresh(document)
        logger.info("Updated %s %s (%s)", self.name, document.id, ", ".join(changes) or "no fields")
        return document

    def find_by_id_and_delete(self, doc_id: Any) -> Optional[ModelT]:
        document = self.get(doc_id)
        if document is None:
            return None
        with self._guard():
            self.session.delete(document)
            self.session.commit()
        logger.info("Deleted %s %s", self.name, document.id)
        return document

    def update_many(self, where: Mapping[str, Any], changes: Mapping[str, Any]) -> int:
        statement = update(self.model).where(*self.compile_where(where)).values(**changes)
        with self._guard():
            result = self.session.execute(statement)
            self.session.commit()
        logger.info("Updated %d %s", result.rowcount, self.name)
        return result.rowcount

    def push(self, doc_id: Any, attr: str, value: Any) -> Optional[ModelT]:
        """Append ``value`` to a list field unless it is already there."""
        document = self.get(doc_id)
        if document is None:
            return None
        current = list(getattr(document, attr) or [])
        if value in current:
            return document
        # assign a new list, in-place mutation of a JSON column is not tracked
        return self.find_by_id_and_update(doc_id, {attr: current + [value]})

    def pull(self, doc_id: Any, attr: str, value: Any) -> Optional[ModelT]:
        """Remove every occurrence of ``value`` from a list field."""
        document = self.get(doc_id)
        if document is None:
            return None
        current = list(getattr(document, attr) or [])
        if value not in current:
            return document
        return self.find_by_id_and_update(doc_id, {attr: [item for item in current if item != value]})


def user_store(session: Session) -> DocumentStore[User]:
    return DocumentStore(session, User, USER_FIELDS)


def task_store(session: Session) -> DocumentStore[Task]:
    return DocumentStore(session, Task, TASK_FIELDS)
