"""
SQLAlchemy ORM Models for the drill database

Defines the item, review event, optimal-factor and checkpoint tables.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Item(Base):
    """
    A reviewable item together with its persisted review statistics.

    Statistic columns mirror the DRILL_* properties and keep their
    precision (interval 4 dp, average quality and ease 3 dp).
    """
    __tablename__ = 'items'

    item_id = Column(String(255), primary_key=True, nullable=False)

    # Content
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False, default="")
    tags = Column(String(1024), nullable=False, default="")  # space separated
    reviewable = Column(Boolean, nullable=False, default=True)

    # Scheduling
    scheduled_date = Column(String(10), nullable=True)  # YYYY-MM-DD, NULL = new

    # Review statistics
    last_interval = Column(Float, nullable=False, default=0.0)
    repeats_since_fail = Column(Integer, nullable=False, default=0)
    total_repeats = Column(Integer, nullable=False, default=0)
    failure_count = Column(Integer, nullable=False, default=0)
    average_quality = Column(Float, nullable=True)
    ease = Column(Float, nullable=True)
    last_quality = Column(Integer, nullable=True)
    last_reviewed = Column(String(64), nullable=True)  # ISO timestamp

    def __repr__(self):
        return f"<Item({self.item_id}, scheduled={self.scheduled_date})>"


class ReviewEvent(Base):
    """
    Log entry for a single rated review.

    Captures the interval and ease before and after the review.
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String(255), nullable=False, index=True)

    timestamp = Column(DateTime(timezone=True), nullable=False)
    quality = Column(Integer, nullable=False)
    algorithm = Column(String(16), nullable=False)
    failed = Column(Boolean, nullable=False)

    interval_before = Column(Float, nullable=False)
    interval_after = Column(Float, nullable=False)
    ease_before = Column(Float, nullable=True)
    ease_after = Column(Float, nullable=True)

    # Session context (optional, for analytics)
    session_id = Column(String(64), nullable=True)
    session_position = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.item_id}, quality={self.quality})>"


class OptimalFactor(Base):
    """One (n, EF) -> OF entry of the SM5 matrix."""
    __tablename__ = 'optimal_factors'

    repetition = Column(Integer, primary_key=True)
    ease = Column(Float, primary_key=True)
    factor = Column(Float, nullable=False)


class SessionCheckpoint(Base):
    """The single suspended session, stored as JSON."""
    __tablename__ = 'session_checkpoint'

    id = Column(Integer, primary_key=True)
    payload = Column(Text, nullable=False)
    saved_at = Column(DateTime(timezone=True), nullable=False)
