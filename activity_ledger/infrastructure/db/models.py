"""
SQLAlchemy ORM models (activity reports, entries, relation tables)
"""
from datetime import date as date_type, datetime
from decimal import Decimal
from sqlalchemy import String, DateTime, Integer, BigInteger, Text, TIMESTAMP, Date, func, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from activity_ledger.infrastructure.db.session import Base


class Mission(Base):
    """
    Mission - внешняя сущность (контракт / engagement)

    Ledger использует только id (проверка существования) и name (экспорт).
    """
    __tablename__ = "missions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class ActivityReport(Base):
    """
    Monthly activity report of one contractor (draft -> submitted -> locked)

    Uniqueness of (owner_id, month, year) among non-deleted rows is checked
    by the use cases, not by a storage constraint.
    """
    __tablename__ = "activity_reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="draft")  # draft, submitted, locked
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="EUR")

    # Totals are derived from active entries (see application.totals)
    total_days: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        server_default="0"
    )
    total_amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")

    submitted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index("ix_activity_reports_owner_period", "owner_id", "year", "month"),
    )


class Entry(Base):
    """
    One billable line of an activity report.

    Linked to its report and optional mission only through relation tables
    (EntryReport, EntryMission).
    """
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class EntryReport(Base):
    """Relation: entry -> activity report (exactly one per entry)"""
    __tablename__ = "entry_reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    report_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


class EntryMission(Base):
    """Relation: entry -> mission (zero or one per entry)"""
    __tablename__ = "entry_missions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    mission_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


class ReportMission(Base):
    """
    Derived link: mission referenced by >= 1 active entry of the report.

    Rebuildable cache maintained by MissionLinkCounter, never written directly.
    """
    __tablename__ = "report_missions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    mission_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint('report_id', 'mission_id', name='uq_report_mission'),
    )
