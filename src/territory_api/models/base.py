"""Declarative base and shared column mixins."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class LifecycleStatus(StrEnum):
    """Single lifecycle state carried by every catalog entity."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class UUIDMixin:
    """UUID primary key generated client-side."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class LifecycleMixin:
    """Lifecycle status plus soft-delete audit columns.

    ``status`` is the only source of truth for whether a row is usable;
    ``deleted_at``/``deleted_by`` only record who retired it and when.
    """

    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=LifecycleStatus.ACTIVE.value, server_default="active", index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == LifecycleStatus.ACTIVE


class AuditMixin:
    """Actor columns filled from the explicit actor passed to each service call."""

    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
