from __future__ import annotations

import re
import unittest
from datetime import date

from app.errors import ApiError
from app.schemas import EmployeeCreate
from app.services.employees import (
    create_employee,
    ensure_employees_exist,
    generate_employee_id,
    list_employees,
    mark_employee_left,
    normalize_employee_payload,
)
from tests.sqlite_support import SQLiteTestCase


class EmployeePayloadTests(unittest.TestCase):
    def test_legacy_spellings_map_to_stored_columns(self) -> None:
        data = normalize_employee_payload(
            {"name": "Ada Lovelace", "dob": date(1990, 5, 1), "employment_status": "On_Leave"}
        )
        self.assertEqual(data["full_name"], "Ada Lovelace")
        self.assertEqual(data["date_of_birth"], date(1990, 5, 1))
        self.assertEqual(data["status"], "on_leave")
        self.assertNotIn("dob", data)
        self.assertNotIn("employment_status", data)

    def test_canonical_fields_win_over_legacy_ones(self) -> None:
        data = normalize_employee_payload(
            {
                "full_name": "Grace Hopper",
                "date_of_birth": date(1985, 1, 1),
                "dob": date(1999, 9, 9),
                "status": "active",
                "employment_status": "left",
            }
        )
        self.assertEqual(data["date_of_birth"], date(1985, 1, 1))
        self.assertEqual(data["status"], "active")

    def test_first_and_last_name_are_joined(self) -> None:
        data = normalize_employee_payload({"first_name": "Alan", "last_name": "Turing"})
        self.assertEqual(data["full_name"], "Alan Turing")
        self.assertEqual(data["status"], "active")

    def test_generated_ids_use_security_prefix(self) -> None:
        first = generate_employee_id()
        second = generate_employee_id()
        self.assertRegex(first, re.compile(r"^SEC-[0-9A-Z]+$"))
        self.assertNotEqual(first, second)


class EmployeeServiceTests(SQLiteTestCase):
    def test_create_employee_assigns_generated_id(self) -> None:
        employee = create_employee(self.db, EmployeeCreate(name="Ada Lovelace", dob=date(1990, 5, 1)))
        self.assertTrue(employee.employee_id.startswith("SEC-"))
        self.assertEqual(employee.full_name, "Ada Lovelace")
        self.assertEqual(employee.date_of_birth, date(1990, 5, 1))
        self.assertEqual(employee.status, "active")

    def test_create_employee_without_name_is_rejected(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            create_employee(self.db, EmployeeCreate(rank="Sergeant"))
        self.assertEqual(ctx.exception.status_code, 422)

    def test_ensure_employees_exist_lists_missing_ids(self) -> None:
        self.add_employee("SEC-A1")
        ensure_employees_exist(self.db, ["SEC-A1"])
        with self.assertRaises(ApiError) as ctx:
            ensure_employees_exist(self.db, ["SEC-A1", "SEC-Z9"])
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertIn("SEC-Z9", ctx.exception.message)

    def test_list_and_mark_left(self) -> None:
        self.add_employee("SEC-A1", "Ada Lovelace")
        self.add_employee("SEC-B2", "Grace Hopper")

        mark_employee_left(self.db, "SEC-B2", reason="Contract ended")

        active, active_total = list_employees(self.db, status="active")
        self.assertEqual([item.employee_id for item in active], ["SEC-A1"])
        self.assertEqual(active_total, 1)

        found, total = list_employees(self.db, search="grace")
        self.assertEqual(total, 1)
        self.assertEqual(found[0].status, "left")
        self.assertEqual(found[0].cause_of_discharge, "Contract ended")


if __name__ == "__main__":
    unittest.main()
