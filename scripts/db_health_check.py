#!/usr/bin/env python
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, text


EXPECTED_HEAD = "0002_restricted_inventory"
REQUIRED_TABLES = (
    "employees",
    "attendance",
    "leave_periods",
    "restricted_inventory_items",
    "restricted_serial_units",
    "restricted_transactions",
)


def load_env_if_exists() -> None:
    env_file = Path(".env")
    if not env_file.exists():
        return
    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def run() -> dict:
    load_env_if_exists()
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL not found (.env or env vars).")

    engine = create_engine(database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append({"name": name, "status": status, "details": details})

    with engine.connect() as conn:
        tables = set(
            conn.execute(
                text(
                    """
                    select table_name
                    from information_schema.tables
                    where table_schema='public'
                    """
                )
            ).scalars()
        )

        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        missing = [table for table in REQUIRED_TABLES if table not in tables]
        add("missing_tables", "fail" if missing else "ok", {"tables": missing})

        if "leave_periods" in tables:
            overlapping = conn.execute(
                text(
                    """
                    select a.id, b.id
                    from leave_periods a
                    join leave_periods b
                      on a.employee_id = b.employee_id
                     and a.leave_type = b.leave_type
                     and a.id < b.id
                     and a.from_date <= b.to_date
                     and b.from_date <= a.to_date
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "overlapping_leave_periods",
                "fail" if overlapping else "ok",
                {"pairs": [list(row) for row in overlapping]},
            )

        if "restricted_serial_units" in tables and "restricted_transactions" in tables:
            holderless = conn.execute(
                text(
                    """
                    select id
                    from restricted_serial_units
                    where (status = 'issued' and issued_to_employee_id is null)
                       or (status = 'in_stock' and issued_to_employee_id is not null)
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "serial_unit_custody_mismatch",
                "fail" if holderless else "ok",
                {"sample_ids": [row[0] for row in holderless]},
            )

            # Current status must agree with the latest ledger action for the unit.
            drifted = conn.execute(
                text(
                    """
                    select u.id, u.status, t.action
                    from restricted_serial_units u
                    join restricted_transactions t on t.id = (
                        select max(t2.id)
                        from restricted_transactions t2
                        where t2.serial_unit_id = u.id
                    )
                    where (u.status = 'issued' and t.action <> 'issue')
                       or (u.status = 'in_stock' and t.action <> 'return')
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "serial_unit_ledger_drift",
                "fail" if drifted else "ok",
                {"rows": [[row[0], str(row[1]), str(row[2])] for row in drifted]},
            )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
