"""Watcher and change-event models for the local webhook store."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Watcher(Base):
    """A monitored URL, created by the first webhook that names it."""

    __tablename__ = "watchers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str | None] = mapped_column(Text)
    # UUID of the watch in changedetection.io, when a link revealed it
    watcher_uuid: Mapped[str | None] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, index=True
    )

    # Relationships
    changes = relationship(
        "ChangeEvent",
        back_populates="watcher",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChangeEvent.created_at.desc()",
    )


class ChangeEvent(Base):
    """One change notification received for a watcher."""

    __tablename__ = "change_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    watcher_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("watchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, default="")
    message: Mapped[str] = mapped_column(Text, default="")

    # Links extracted from the message body
    watch_url: Mapped[str | None] = mapped_column(Text)
    diff_url: Mapped[str | None] = mapped_column(Text)
    edit_url: Mapped[str | None] = mapped_column(Text)

    screenshot_base64: Mapped[str | None] = mapped_column(Text)
    screenshot_mimetype: Mapped[str | None] = mapped_column(String(100))
    change_type: Mapped[str | None] = mapped_column(String(50))

    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)

    # Raw webhook body as received
    webhook_data: Mapped[dict | list | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )

    # Relationships
    watcher = relationship("Watcher", back_populates="changes")
