"""
Database - SQL-backed item store

Handles all database operations for items, the review log, the SM5
matrix and the suspended-session checkpoint. Uses SQLAlchemy ORM; any
SQLAlchemy URL works (SQLite by default, Postgres in deployment).

This module handles ONLY database I/O.
Scheduling logic lives in drill.algorithms and drill.session_controller.
"""

from __future__ import annotations
import json
import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from drill.algorithms.of_matrix import OptimalFactorMatrix
from drill.config import get_database_url
from drill.constants import LEECH_TAG
from drill.errors import ItemStoreError
from drill.item_record import ItemRecord
from drill.store.models import (
    Base,
    Item as ItemModel,
    OptimalFactor as OptimalFactorModel,
    ReviewEvent as ReviewEventModel,
    SessionCheckpoint as SessionCheckpointModel,
)
from drill.store.ports import (
    CheckpointStore,
    ItemContent,
    ItemStore,
    MatrixStore,
    ReviewLogEntry,
)

logger = logging.getLogger(__name__)

CHECKPOINT_ID = 1


def get_engine(database_url: Optional[str] = None):
    """
    Get SQLAlchemy engine for database connection.

    Server databases get a connection pool; SQLite uses the default.
    """
    db_url = database_url or get_database_url()
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False)
    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def _split_tags(raw: Optional[str]) -> set[str]:
    return set((raw or "").split())


def _join_tags(tags: Iterable[str]) -> str:
    return " ".join(sorted(tags))


class SqlItemStore(ItemStore, MatrixStore, CheckpointStore):
    """
    Item store backed by SQL tables.

    Every call opens its own session and closes it before returning, so
    a failure on one item never leaves a transaction open for the next.
    """

    def __init__(self, database_url: Optional[str] = None, engine=None):
        self.engine = engine if engine is not None else get_engine(database_url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def get_session(self) -> Session:
        return self._session_factory()

    # ---- Schema ----

    def init_db(self) -> None:
        """
        Create tables that do not exist yet.

        Safe to call multiple times.
        """
        existing_tables = set(inspect(self.engine).get_table_names())
        if not {table.name for table in Base.metadata.sorted_tables} <= existing_tables:
            Base.metadata.create_all(self.engine)
            logger.info("Created drill tables")

    def reset_db(self) -> None:
        """
        DANGEROUS: Delete all data and recreate tables.

        All items, review history and the OF matrix are lost.
        """
        Base.metadata.drop_all(self.engine)
        logger.warning("All drill tables dropped")
        Base.metadata.create_all(self.engine)

    # ---- Item management ----

    def upsert_item(
        self,
        item_ref: str,
        question: str,
        answer: str = "",
        tags: Iterable[str] = (),
        reviewable: bool = True
    ) -> bool:
        """
        Insert an item or update its content, keeping its statistics.

        Returns:
            True if the item was created, False if it already existed
        """
        session = self.get_session()
        try:
            db_item = session.get(ItemModel, item_ref)
            created = db_item is None
            if created:
                db_item = ItemModel(item_id=item_ref)
                session.add(db_item)
            db_item.question = question
            db_item.answer = answer
            db_item.tags = _join_tags(set(tags) | (_split_tags(db_item.tags) & {LEECH_TAG}))
            db_item.reviewable = reviewable
            session.commit()
            return created
        finally:
            session.close()

    def _load(self, session: Session, item_ref: str) -> ItemModel:
        db_item = session.get(ItemModel, item_ref)
        if db_item is None:
            raise ItemStoreError(item_ref, "unknown item")
        return db_item

    def _read(self, item_ref: str, read):
        session = self.get_session()
        try:
            return read(self._load(session, item_ref))
        except SQLAlchemyError as exc:
            raise ItemStoreError(item_ref, f"read failed: {exc}") from exc
        except ValueError as exc:
            raise ItemStoreError(item_ref, f"corrupt record: {exc}") from exc
        finally:
            session.close()

    def _update(self, item_ref: str, update) -> None:
        session = self.get_session()
        try:
            update(self._load(session, item_ref))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise ItemStoreError(item_ref, f"write failed: {exc}") from exc
        finally:
            session.close()

    # ---- ItemStore ----

    def item_refs(self) -> list[str]:
        session = self.get_session()
        try:
            rows = session.query(ItemModel.item_id).order_by(ItemModel.item_id).all()
            return [row.item_id for row in rows]
        finally:
            session.close()

    def is_reviewable(self, item_ref: str) -> bool:
        return self._read(item_ref, lambda db_item: bool(db_item.reviewable))

    def get_scheduled_date(self, item_ref: str) -> Optional[date]:
        return self._read(
            item_ref,
            lambda db_item: (
                date.fromisoformat(db_item.scheduled_date) if db_item.scheduled_date else None
            ),
        )

    def read_stats(self, item_ref: str) -> ItemRecord:
        def _read_record(db_item: ItemModel) -> ItemRecord:
            return ItemRecord(
                last_interval=db_item.last_interval or 0.0,
                repeats_since_fail=db_item.repeats_since_fail or 0,
                total_repeats=db_item.total_repeats or 0,
                failure_count=db_item.failure_count or 0,
                average_quality=db_item.average_quality,
                ease=db_item.ease,
                last_quality=db_item.last_quality,
                last_reviewed=(
                    datetime.fromisoformat(db_item.last_reviewed) if db_item.last_reviewed else None
                ),
                scheduled_date=(
                    date.fromisoformat(db_item.scheduled_date) if db_item.scheduled_date else None
                ),
                is_leech=LEECH_TAG in _split_tags(db_item.tags),
            ).validate()

        return self._read(item_ref, _read_record)

    def write_stats(self, item_ref: str, record: ItemRecord) -> None:
        def _write(db_item: ItemModel) -> None:
            db_item.last_interval = round(record.last_interval, 4)
            db_item.repeats_since_fail = record.repeats_since_fail
            db_item.total_repeats = record.total_repeats
            db_item.failure_count = record.failure_count
            db_item.average_quality = (
                round(record.average_quality, 3) if record.average_quality is not None else None
            )
            db_item.ease = round(record.ease, 3) if record.ease is not None else None
            db_item.last_quality = record.last_quality
            db_item.last_reviewed = (
                record.last_reviewed.isoformat() if record.last_reviewed else None
            )

        self._update(item_ref, _write)

    def schedule(self, item_ref: str, when: Optional[date]) -> None:
        def _schedule(db_item: ItemModel) -> None:
            db_item.scheduled_date = when.isoformat() if when else None

        self._update(item_ref, _schedule)

    def tag(self, item_ref: str, tag: str, on: bool) -> None:
        def _tag(db_item: ItemModel) -> None:
            tags = _split_tags(db_item.tags)
            if on:
                tags.add(tag)
            else:
                tags.discard(tag)
            db_item.tags = _join_tags(tags)

        self._update(item_ref, _tag)

    def get_content(self, item_ref: str) -> ItemContent:
        return self._read(
            item_ref,
            lambda db_item: ItemContent(
                item_ref=db_item.item_id,
                question=db_item.question,
                answer=db_item.answer or "",
                tags=tuple(sorted(_split_tags(db_item.tags))),
            ),
        )

    # ---- Review log ----

    def log_review(self, entry: ReviewLogEntry) -> None:
        session = self.get_session()
        try:
            session.add(ReviewEventModel(
                item_id=entry.item_ref,
                timestamp=entry.timestamp,
                quality=entry.quality,
                algorithm=entry.algorithm,
                failed=entry.failed,
                interval_before=entry.interval_before,
                interval_after=entry.interval_after,
                ease_before=entry.ease_before,
                ease_after=entry.ease_after,
                session_id=entry.session_id,
                session_position=entry.session_position,
            ))
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise ItemStoreError(entry.item_ref, f"review log failed: {exc}") from exc
        finally:
            session.close()

    def get_review_events(self, since: Optional[datetime] = None) -> list[dict]:
        """
        Get review events, oldest first.

        Args:
            since: Only events at or after this time

        Returns:
            List of event dicts (column name -> value)
        """
        session = self.get_session()
        try:
            query = session.query(ReviewEventModel)
            if since is not None:
                query = query.filter(ReviewEventModel.timestamp >= since)
            events = query.order_by(ReviewEventModel.timestamp.asc()).all()
            return [
                {
                    "id": event.id,
                    "item_id": event.item_id,
                    "timestamp": event.timestamp,
                    "quality": event.quality,
                    "algorithm": event.algorithm,
                    "failed": bool(event.failed),
                    "interval_before": event.interval_before,
                    "interval_after": event.interval_after,
                    "ease_before": event.ease_before,
                    "ease_after": event.ease_after,
                    "session_id": event.session_id,
                    "session_position": event.session_position,
                }
                for event in events
            ]
        finally:
            session.close()

    # ---- MatrixStore ----

    def load_matrix(self) -> OptimalFactorMatrix:
        session = self.get_session()
        try:
            rows = session.query(OptimalFactorModel).all()
            return OptimalFactorMatrix.from_rows(
                (row.repetition, row.ease, row.factor) for row in rows
            )
        finally:
            session.close()

    def save_matrix(self, matrix: OptimalFactorMatrix) -> None:
        """Write every matrix entry (insert or update); nothing is deleted."""
        session = self.get_session()
        try:
            for n, ease, factor in matrix.to_rows():
                session.merge(OptimalFactorModel(repetition=n, ease=ease, factor=factor))
            session.commit()
            logger.info("Saved optimal-factor matrix (%d entries)", len(matrix))
        finally:
            session.close()

    # ---- CheckpointStore ----

    def save_checkpoint(self, payload: dict) -> None:
        session = self.get_session()
        try:
            session.merge(SessionCheckpointModel(
                id=CHECKPOINT_ID,
                payload=json.dumps(payload),
                saved_at=datetime.now(timezone.utc),
            ))
            session.commit()
        finally:
            session.close()

    def load_checkpoint(self) -> Optional[dict]:
        session = self.get_session()
        try:
            row = session.get(SessionCheckpointModel, CHECKPOINT_ID)
            return json.loads(row.payload) if row is not None else None
        finally:
            session.close()

    def clear_checkpoint(self) -> None:
        session = self.get_session()
        try:
            session.query(SessionCheckpointModel).filter(
                SessionCheckpointModel.id == CHECKPOINT_ID
            ).delete()
            session.commit()
        finally:
            session.close()
