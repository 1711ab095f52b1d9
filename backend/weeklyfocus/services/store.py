"""SQLAlchemy-backed persistence collaborator.

The tracker only talks to the store through insert/delete/fetch/save, so
any engine that SQLAlchemy can drive (or a different implementation of
these four methods) can back it.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from weeklyfocus.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class SqlStore:
    def __init__(self, session: Session):
        self.session = session

    def insert(self, entity) -> None:
        self.session.add(entity)

    def delete(self, entity) -> None:
        self.session.delete(entity)

    def fetch(self, model, *criteria, order_by=None) -> list:
        """Return entities of `model` matching all `criteria`.

        SQLAlchemyError propagates; read paths decide their own fallback.
        """
        query = self.session.query(model)
        if criteria:
            query = query.filter(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def get(self, model, entity_id):
        return self.session.get(model, entity_id)

    def save(self) -> None:
        """Commit pending changes, rolling back and raising on failure."""
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed, rolling back: %s", e)
            self.session.rollback()
            raise PersistenceError(f"Could not save changes: {e}") from e

    def close(self) -> None:
        self.session.close()
