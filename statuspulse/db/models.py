from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Enum, Float, ForeignKey, Identity, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from statuspulse.domain.models import ChannelType, MonitorType, SLIType, Status


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    services: Mapped[list["Service"]] = relationship(back_populates="category", lazy="selectin")


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        Index("ix_services_enabled", "enabled"),
        Index("ix_services_category", "category_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False, default="GET")
    expected_status: Mapped[int] = mapped_column(Integer, nullable=False, default=200)
    expected_content: Mapped[str | None] = mapped_column(Text)
    timeout_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=5000)
    monitor_type: Mapped[MonitorType] = mapped_column(
        Enum(MonitorType, name="monitor_type_enum", values_callable=_values),
        nullable=False,
        default=MonitorType.HTTP,
    )
    keyword: Mapped[str | None] = mapped_column(String(255))
    request_body: Mapped[str | None] = mapped_column(Text)
    request_headers: Mapped[dict | None] = mapped_column(JSONB)
    bearer_token: Mapped[str | None] = mapped_column(Text)
    database_query: Mapped[str | None] = mapped_column(Text)
    database_probe_id: Mapped[str | None] = mapped_column(String(255))
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    category: Mapped[Category | None] = relationship(back_populates="services", lazy="joined")
    check_results: Mapped[list["CheckResult"]] = relationship(
        back_populates="service",
        cascade="all, delete-orphan",
        lazy="noload",
    )
    slos: Mapped[list["SLO"]] = relationship(
        back_populates="service",
        cascade="all, delete-orphan",
        lazy="noload",
    )


class CheckResult(Base):
    __tablename__ = "check_results"
    __table_args__ = (
        Index("ix_check_results_service_time", "service_id", "checked_at"),
        Index("ix_check_results_checked_at", "checked_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # insertion order breaks checked_at ties
    seq: Mapped[int] = mapped_column(Integer, Identity(), nullable=False, unique=True)
    service_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[Status] = mapped_column(
        Enum(Status, name="status_enum", values_callable=_values),
        nullable=False,
    )
    response_time_ms: Mapped[int | None] = mapped_column(Integer)
    status_code: Mapped[int | None] = mapped_column(Integer)
    error: Mapped[str | None] = mapped_column(Text)
    checked_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    service: Mapped[Service] = relationship(back_populates="check_results", lazy="noload")


class SLO(Base):
    __tablename__ = "slos"
    __table_args__ = (Index("ix_slos_enabled", "enabled"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sli_type: Mapped[SLIType] = mapped_column(
        Enum(SLIType, name="sli_type_enum", values_callable=_values),
        nullable=False,
    )
    target_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    latency_threshold_ms: Mapped[int | None] = mapped_column(Integer)
    time_window_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    service: Mapped[Service] = relationship(back_populates="slos", lazy="noload")
    burn_events: Mapped[list["BurnEvent"]] = relationship(
        back_populates="slo",
        cascade="all, delete-orphan",
        lazy="noload",
    )
    notification_rules: Mapped[list["NotificationRule"]] = relationship(
        back_populates="slo",
        cascade="all, delete-orphan",
        lazy="noload",
    )


class BurnEvent(Base):
    __tablename__ = "slo_burn_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slo_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("slos.id", ondelete="CASCADE"),
        nullable=False,
    )
    burn_rate: Mapped[float] = mapped_column(Float, nullable=False)
    error_budget_consumed: Mapped[float] = mapped_column(Float, nullable=False)
    time_to_exhaustion_hours: Mapped[float | None] = mapped_column(Float)
    triggered_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    resolved_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True))

    slo: Mapped[SLO] = relationship(back_populates="burn_events", lazy="noload")

    __table_args__ = (
        Index("ix_slo_burn_events_slo", "slo_id"),
        Index("ix_slo_burn_events_triggered_at", "triggered_at"),
        Index(
            "uq_slo_burn_events_open",
            "slo_id",
            unique=True,
            postgresql_where=(resolved_at.is_(None)),
        ),
    )


class NotificationChannel(Base):
    __tablename__ = "notification_channels"
    __table_args__ = (
        Index("ix_notification_channels_type_enabled", "type", "enabled"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ChannelType] = mapped_column(
        Enum(ChannelType, name="channel_type_enum", values_callable=_values),
        nullable=False,
    )
    config: Mapped[dict] = mapped_column(JSONB, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    notification_rules: Mapped[list["NotificationRule"]] = relationship(
        back_populates="channel",
        cascade="all, delete-orphan",
        lazy="noload",
    )


class NotificationRule(Base):
    __tablename__ = "slo_notification_rules"
    __table_args__ = (
        Index("ix_slo_notification_rules_slo", "slo_id", "enabled"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slo_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("slos.id", ondelete="CASCADE"),
        nullable=False,
    )
    channel_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("notification_channels.id", ondelete="CASCADE"),
        nullable=False,
    )
    burn_rate_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=14.4)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    slo: Mapped[SLO] = relationship(back_populates="notification_rules", lazy="noload")
    channel: Mapped[NotificationChannel] = relationship(back_populates="notification_rules", lazy="noload")
