"""Generic repository over a SQLAlchemy session."""

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """CRUD by id / public id. Soft-deleted rows are filtered by the session hook."""

    model: type[ModelT]

    def __init__(self, db: Session) -> None:
        self.db = db

    def _select(self) -> Any:
        return select(self.model)

    def get(self, entity_id: int) -> ModelT | None:
        return self.db.scalars(self._select().where(self.model.id == entity_id)).first()

    def get_by_public_id(self, public_id: uuid.UUID) -> ModelT | None:
        return self.db.scalars(self._select().where(self.model.public_id == public_id)).first()

    def list(self) -> list[ModelT]:
        return list(self.db.scalars(self._select().order_by(self.model.id)))

    def exists(self, entity_id: int) -> bool:
        return self.get(entity_id) is not None

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def soft_delete(self, entity: ModelT) -> None:
        entity.mark_deleted()
        self.db.flush()


def row_exists(db: Session, statement: Any, include_deleted: bool = False) -> bool:
    """Run ``SELECT EXISTS(statement)``."""
    stmt = select(statement.exists())
    if include_deleted:
        stmt = stmt.execution_options(include_deleted=True)
    return bool(db.scalar(stmt))
