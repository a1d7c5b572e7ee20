from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    LATE = "late"
    HALF_DAY = "half_day"
    OFF = "off"


class SerialUnitStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    ISSUED = "issued"


class CustodyAction(str, enum.Enum):
    ISSUE = "issue"
    RETURN = "return"


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active", server_default=text("'active'"))
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    rank: Mapped[str | None] = mapped_column(String(64), nullable=True)
    unit: Mapped[str | None] = mapped_column(String(128), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    cause_of_discharge: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    attendance_records: Mapped[list[AttendanceRecord]] = relationship(back_populates="employee")
    leave_periods: Mapped[list[LeavePeriod]] = relationship(back_populates="employee")


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attendance_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status", values_callable=_enum_values),
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    overtime_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    overtime_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    late_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    late_deduction: Mapped[float | None] = mapped_column(Float, nullable=True)
    leave_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fine_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    employee: Mapped[Employee] = relationship(back_populates="attendance_records")


class LeavePeriod(Base):
    __tablename__ = "leave_periods"
    __table_args__ = (
        CheckConstraint("from_date <= to_date", name="ck_leave_periods_date_order"),
        Index("ix_leave_periods_employee_type", "employee_id", "leave_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    leave_type: Mapped[str] = mapped_column(String(50), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    employee: Mapped[Employee] = relationship(back_populates="leave_periods")


class RestrictedInventoryItem(Base):
    __tablename__ = "restricted_inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    serial_units: Mapped[list[RestrictedSerialUnit]] = relationship(back_populates="item")


class RestrictedSerialUnit(Base):
    __tablename__ = "restricted_serial_units"
    __table_args__ = (
        UniqueConstraint("item_code", "serial_number", name="uq_restricted_serial_units_item_serial"),
        CheckConstraint(
            "(status = 'issued' AND issued_to_employee_id IS NOT NULL)"
            " OR (status = 'in_stock' AND issued_to_employee_id IS NULL)",
            name="ck_restricted_serial_units_custody",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_code: Mapped[str] = mapped_column(
        ForeignKey("restricted_inventory_items.item_code", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    serial_number: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[SerialUnitStatus] = mapped_column(
        Enum(SerialUnitStatus, name="serial_unit_status", values_callable=_enum_values),
        nullable=False,
        default=SerialUnitStatus.IN_STOCK,
        server_default=text("'in_stock'"),
    )
    issued_to_employee_id: Mapped[str | None] = mapped_column(
        ForeignKey("employees.employee_id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    item: Mapped[RestrictedInventoryItem] = relationship(back_populates="serial_units")


class RestrictedTransaction(Base):
    """Append-only custody ledger; rows are never updated or deleted."""

    __tablename__ = "restricted_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    employee_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    serial_unit_id: Mapped[int] = mapped_column(
        ForeignKey("restricted_serial_units.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    action: Mapped[CustodyAction] = mapped_column(
        Enum(CustodyAction, name="custody_action", values_callable=_enum_values),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
