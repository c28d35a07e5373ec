# hrfe/services/incident_store.py

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.incidents import Incident
from .parse_incident import ParsedIncident
from .timeline import TimelineMessage


class StoreError(RuntimeError):
    """
    Persistence failed for a reason other than the message already being stored.
    """


# Dialects that understand ON CONFLICT (tweet_id) DO NOTHING
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentStore:
    """
    Idempotent persistence of parsed incidents, keyed by tweet_id.

    Every accepted row is committed on its own, so a run that aborts halfway
    keeps whatever it already wrote.
    """

    def __init__(self, db: Session):
        self.db = db

    def max_external_id(self) -> Optional[int]:
        return self._scalar(func.max(Incident.tweet_id))

    def min_external_id(self) -> Optional[int]:
        return self._scalar(func.min(Incident.tweet_id))

    def insert_if_absent(
        self,
        message: TimelineMessage,
        incident: ParsedIncident,
    ) -> bool:
        """
        Store `incident` under `message.id`. Returns False when a row with
        that id already exists; that case is not an error.
        """
        values = {
            **incident.to_row(),
            "created_at": message.created_at,
            "tweet_id": message.id,
            "tweet_text": message.text,
            "tweet_created_at": message.created_at,
            "ingested_at": _utcnow(),
        }

        try:
            dialect = self.db.get_bind().dialect.name
            make_insert = _UPSERT_INSERTS.get(dialect)
            if make_insert is not None:
                stmt = (
                    make_insert(Incident.__table__)
                    .values(values)
                    .on_conflict_do_nothing(index_elements=["tweet_id"])
                )
                inserted = self.db.execute(stmt).rowcount == 1
            else:
                exists = (
                    self.db.query(Incident.tweet_id)
                    .filter(Incident.tweet_id == message.id)
                    .first()
                )
                inserted = exists is None
                if inserted:
                    self.db.execute(insert(Incident.__table__).values(values))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"could not store tweet {message.id}: {e}") from e

        return inserted

    def recent(self, hours: int = 24, limit: int = 100) -> List[Incident]:
        since = _utcnow() - timedelta(hours=hours)
        try:
            return (
                self.db.query(Incident)
                .filter(Incident.tweet_created_at >= since)
                .order_by(Incident.tweet_created_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"could not list recent incidents: {e}") from e

    def _scalar(self, expr) -> Optional[int]:
        try:
            value = self.db.query(expr).scalar()
        except SQLAlchemyError as e:
            raise StoreError(f"could not read id boundary: {e}") from e
        return int(value) if value is not None else None
