"""Table-oriented access to the external relational store."""

import logging
from typing import Any, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from opshub_api.errors import PersistenceError, StateConflictError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class OpsStore:
    """
    Select-with-filter, insert and update-by-id over the ORM session.

    Every write is committed on its own: there is no transaction spanning a
    primary mutation and the follow-up anchor and audit writes. A primary
    mutation that touches two rows goes through ``insert_and_update``. Reads always
    refresh from the database so transition decisions never see stale rows.
    """

    def __init__(self, db: Session):
        """Initialize store with a session."""
        self.db = db

    def select_one(self, model: Type[ModelT], **filters: Any) -> Optional[ModelT]:
        """Fetch the first row matching equality filters."""
        try:
            return (
                self.db.query(model)
                .populate_existing()
                .filter_by(**filters)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Select from {model.__tablename__} failed: {e}")
            raise PersistenceError(f"Failed to read {model.__tablename__}") from e

    def select_many(
        self,
        model: Type[ModelT],
        order_by: Any = None,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> list[ModelT]:
        """Fetch rows matching equality filters."""
        try:
            query = self.db.query(model).populate_existing().filter_by(**filters)
            if order_by is not None:
                query = query.order_by(order_by)
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            logger.error(f"Select from {model.__tablename__} failed: {e}")
            raise PersistenceError(f"Failed to read {model.__tablename__}") from e

    def count(self, model: Type[ModelT], **filters: Any) -> int:
        """Count rows matching equality filters."""
        try:
            return self.db.query(model).filter_by(**filters).count()
        except SQLAlchemyError as e:
            logger.error(f"Count on {model.__tablename__} failed: {e}")
            raise PersistenceError(f"Failed to count {model.__tablename__}") from e

    def insert(self, model: Type[ModelT], values: dict) -> ModelT:
        """Insert one row and return it as stored."""
        row = model(**values)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Insert into {model.__tablename__} failed: {e}")
            raise PersistenceError(f"Failed to create {model.__tablename__} row") from e
        return row

    def update_by_id(self, model: Type[ModelT], entity_id: str, values: dict) -> None:
        """Update one row by primary key; the caller re-reads if it needs the row."""
        try:
            updated = (
                self.db.query(model)
                .filter(model.id == entity_id)
                .update(values, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Update of {model.__tablename__} {entity_id} failed: {e}")
            raise PersistenceError(f"Failed to update {model.__tablename__} row") from e

        if not updated:
            raise PersistenceError(f"{model.__tablename__} row {entity_id} not found for update")

    def insert_and_update(
        self,
        model: Type[ModelT],
        values: dict,
        target: Type[Any],
        target_id: str,
        target_values: dict,
        **expected: Any,
    ) -> ModelT:
        """
        Insert one row and update another in a single transaction.

        ``expected`` holds equality conditions the target row must still
        satisfy at write time. When it no longer does, both writes are rolled
        back and StateConflictError is raised.
        """
        row = model(**values)
        try:
            self.db.add(row)
            self.db.flush()
            updated = (
                self.db.query(target)
                .filter(target.id == target_id)
                .filter_by(**expected)
                .update(target_values, synchronize_session=False)
            )
            if not updated:
                self.db.rollback()
                raise StateConflictError(
                    f"{target.__tablename__} row {target_id} changed before it could be updated"
                )
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Insert into {model.__tablename__} with update of "
                f"{target.__tablename__} {target_id} failed: {e}"
            )
            raise PersistenceError(f"Failed to create {model.__tablename__} row") from e
        return row
