from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine


@dataclass(frozen=True, slots=True)
class SchemaGuardResult:
    ok: bool
    checked_at_utc: datetime
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "checked_at_utc": self.checked_at_utc.isoformat(),
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "issue_count": len(self.issues),
            "warning_count": len(self.warnings),
        }


REQUIRED_TABLE_COLUMNS: dict[str, set[str]] = {
    "employees": {"id", "employee_id", "status"},
    "attendance": {"id", "employee_id", "date", "status", "leave_type"},
    "leave_periods": {"id", "employee_id", "from_date", "to_date", "leave_type"},
    "restricted_inventory_items": {"id", "item_code"},
    "restricted_serial_units": {"id", "item_code", "serial_number", "status", "issued_to_employee_id"},
    "restricted_transactions": {"id", "item_code", "employee_id", "serial_unit_id", "action"},
    "alembic_version": {"version_num"},
}

REQUIRED_UNIQUE_CONSTRAINTS: dict[str, str] = {
    "attendance": "uq_attendance_employee_date",
    "restricted_serial_units": "uq_restricted_serial_units_item_serial",
}


def verify_runtime_schema(engine: Engine) -> SchemaGuardResult:
    issues: list[str] = []
    warnings: list[str] = []
    checked_at_utc = datetime.now(timezone.utc)
    inspector = inspect(engine)

    for table_name, required_columns in REQUIRED_TABLE_COLUMNS.items():
        try:
            column_names = {str(item.get("name")) for item in inspector.get_columns(table_name)}
        except Exception as exc:  # pragma: no cover - defensive
            issues.append(f"TABLE_UNREADABLE:{table_name}:{exc.__class__.__name__}")
            continue

        missing_columns = sorted(item for item in required_columns if item not in column_names)
        if missing_columns:
            issues.append(f"MISSING_COLUMNS:{table_name}:{','.join(missing_columns)}")

    # The upsert and serial-number paths rely on these keys to reject lost insert races.
    for table_name, constraint_name in REQUIRED_UNIQUE_CONSTRAINTS.items():
        try:
            names = {str(item.get("name")) for item in inspector.get_unique_constraints(table_name)}
        except Exception as exc:  # pragma: no cover - defensive
            warnings.append(f"UNIQUE_INSPECTION_FAILED:{table_name}:{exc.__class__.__name__}")
            continue
        if constraint_name not in names:
            issues.append(f"MISSING_UNIQUE_CONSTRAINT:{table_name}:{constraint_name}")

    try:
        with engine.connect() as connection:
            row = connection.execute(text("SELECT version_num FROM alembic_version LIMIT 1")).scalar()
            version = str(row).strip() if row is not None else ""
            if not version:
                issues.append("ALEMBIC_VERSION_EMPTY")
    except Exception as exc:  # pragma: no cover - defensive
        issues.append(f"ALEMBIC_VERSION_CHECK_FAILED:{exc.__class__.__name__}")

    return SchemaGuardResult(
        ok=len(issues) == 0,
        checked_at_utc=checked_at_utc,
        issues=issues,
        warnings=warnings,
    )
