from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.db import get_db
from app.main import app
from app.security import hash_password, require_user
from app.settings import get_settings
from tests.sqlite_support import SQLiteTestCase


def _claims(*, is_superuser: bool) -> dict[str, object]:
    return {"sub": "tester", "username": "tester", "is_superuser": is_superuser, "typ": "access"}


class ApiTestCase(SQLiteTestCase):
    superuser = True

    def setUp(self) -> None:
        super().setUp()
        app.dependency_overrides[get_db] = self.override_get_db()
        claims = _claims(is_superuser=self.superuser)
        app.dependency_overrides[require_user] = lambda: claims
        self.client = TestClient(app)
        self.add_employee("SEC-A1", "Ada Lovelace")

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def assertErrorCode(self, response, status_code: int, code: str) -> None:  # type: ignore[no-untyped-def]
        self.assertEqual(response.status_code, status_code, response.text)
        body = response.json()
        self.assertEqual(body["error"]["code"], code)
        self.assertIn("request_id", body["error"])


class AttendanceEndpointTests(ApiTestCase):
    def test_bulk_upsert_then_read_day(self) -> None:
        response = self.client.put(
            "/api/attendance",
            json={
                "date": "2026-03-10",
                "records": [{"employee_id": "SEC-A1", "status": "leave", "leave_type": "annual"}],
            },
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"upserted": 1})

        day = self.client.get("/api/attendance", params={"date": "2026-03-10"})
        self.assertEqual(day.status_code, 200)
        body = day.json()
        self.assertEqual(body["date"], "2026-03-10")
        self.assertEqual(body["records"][0]["date"], "2026-03-10")
        self.assertEqual(body["records"][0]["status"], "leave")

        periods = self.client.get("/api/leave-periods", params={"employee_id": "SEC-A1"})
        self.assertEqual(periods.status_code, 200)
        self.assertEqual(
            [(row["from_date"], row["to_date"], row["leave_type"]) for row in periods.json()],
            [("2026-03-10", "2026-03-10", "annual")],
        )

    def test_leave_without_type_is_validation_error(self) -> None:
        response = self.client.put(
            "/api/attendance",
            json={"date": "2026-03-10", "records": [{"employee_id": "SEC-A1", "status": "leave"}]},
        )
        self.assertErrorCode(response, 422, "VALIDATION_ERROR")

    def test_unknown_employee_is_not_found(self) -> None:
        response = self.client.put(
            "/api/attendance",
            json={"date": "2026-03-10", "records": [{"employee_id": "SEC-Z9", "status": "present"}]},
        )
        self.assertErrorCode(response, 404, "EMPLOYEE_NOT_FOUND")

    def test_non_iso_date_queries_are_rejected(self) -> None:
        for path, params in (
            ("/api/attendance", {"date": "1709164800"}),
            ("/api/attendance/range", {"from_date": "2024-02-01", "to_date": "1709164800"}),
            ("/api/attendance/summary", {"from_date": "01/02/2024", "to_date": "2024-02-29"}),
            ("/api/attendance/employee/SEC-A1", {"from_date": "2024-02-01", "to_date": "2024-2-29"}),
        ):
            with self.subTest(path=path):
                self.assertErrorCode(self.client.get(path, params=params), 422, "VALIDATION_ERROR")

    def test_storage_failure_hides_driver_detail(self) -> None:
        driver_error = OperationalError(
            "SELECT attendance.id FROM attendance",
            {},
            Exception("could not connect to server at 10.0.0.7"),
        )
        with patch("app.routers.attendance.find_by_date", side_effect=driver_error):
            response = self.client.get("/api/attendance", params={"date": "2026-03-10"})

        self.assertErrorCode(response, 500, "STORAGE_ERROR")
        self.assertEqual(response.json()["error"]["message"], "Storage operation failed.")
        self.assertNotIn("10.0.0.7", response.text)
        self.assertNotIn("SELECT", response.text)

    def test_response_carries_request_id_header(self) -> None:
        response = self.client.get(
            "/api/attendance",
            params={"date": "2026-03-10"},
            headers={"X-Request-Id": "req-123"},
        )
        self.assertEqual(response.headers.get("X-Request-Id"), "req-123")


class RestrictedInventoryEndpointTests(ApiTestCase):
    def _create_unit(self) -> int:
        item = self.client.post("/api/restricted-inventory/items", json={"item_code": "RIFLE", "name": "Rifle"})
        self.assertEqual(item.status_code, 201, item.text)
        unit = self.client.post(
            "/api/restricted-inventory/items/RIFLE/serial-units",
            json={"serial_number": "R-001"},
        )
        self.assertEqual(unit.status_code, 201, unit.text)
        self.assertEqual(unit.json()["status"], "in_stock")
        return int(unit.json()["id"])

    def test_issue_and_return_round_trip(self) -> None:
        unit_id = self._create_unit()

        issued = self.client.post(
            f"/api/restricted-inventory/serial-units/{unit_id}/issue",
            json={"employee_id": "SEC-A1"},
        )
        self.assertEqual(issued.status_code, 200, issued.text)
        self.assertEqual(issued.json()["status"], "issued")
        self.assertEqual(issued.json()["issued_to_employee_id"], "SEC-A1")

        again = self.client.post(
            f"/api/restricted-inventory/serial-units/{unit_id}/issue",
            json={"employee_id": "SEC-A1"},
        )
        self.assertErrorCode(again, 409, "SERIAL_UNIT_ALREADY_ISSUED")

        returned = self.client.post(f"/api/restricted-inventory/serial-units/{unit_id}/return")
        self.assertEqual(returned.status_code, 200, returned.text)
        self.assertIsNone(returned.json()["issued_to_employee_id"])

        ledger = self.client.get("/api/restricted-inventory/transactions", params={"serial_unit_id": unit_id})
        self.assertEqual([row["action"] for row in ledger.json()], ["return", "issue"])
        self.assertEqual([row["employee_id"] for row in ledger.json()], ["SEC-A1", "SEC-A1"])

    def test_null_item_name_is_validation_error(self) -> None:
        self.client.post("/api/restricted-inventory/items", json={"item_code": "OPTIC", "name": "Scope"})
        response = self.client.put("/api/restricted-inventory/items/OPTIC", json={"name": None})
        self.assertErrorCode(response, 422, "VALIDATION_ERROR")

        item = self.client.get("/api/restricted-inventory/items/OPTIC")
        self.assertEqual(item.json()["name"], "Scope")

    def test_blank_serial_number_is_validation_error(self) -> None:
        self.client.post("/api/restricted-inventory/items", json={"item_code": "OPTIC", "name": "Scope"})
        blank = self.client.post(
            "/api/restricted-inventory/items/OPTIC/serial-units",
            json={"serial_number": "   "},
        )
        self.assertErrorCode(blank, 422, "VALIDATION_ERROR")

        padded = self.client.post(
            "/api/restricted-inventory/items/OPTIC/serial-units",
            json={"serial_number": "  S-17 "},
        )
        self.assertEqual(padded.status_code, 201, padded.text)
        self.assertEqual(padded.json()["serial_number"], "S-17")

    def test_missing_unit_is_not_found(self) -> None:
        response = self.client.post("/api/restricted-inventory/serial-units/404/return")
        self.assertErrorCode(response, 404, "SERIAL_UNIT_NOT_FOUND")

    def test_delete_item_with_units_conflicts(self) -> None:
        self._create_unit()
        response = self.client.delete("/api/restricted-inventory/items/RIFLE")
        self.assertErrorCode(response, 409, "ITEM_HAS_SERIAL_UNITS")


class NonSuperuserEndpointTests(ApiTestCase):
    superuser = False

    def test_delete_requires_superuser(self) -> None:
        self.client.post("/api/restricted-inventory/items", json={"item_code": "OPTIC", "name": "Scope"})
        response = self.client.delete("/api/restricted-inventory/items/OPTIC")
        self.assertErrorCode(response, 403, "FORBIDDEN")

    def test_leave_period_delete_requires_superuser(self) -> None:
        created = self.client.post(
            "/api/leave-periods",
            json={"employee_id": "SEC-A1", "from_date": "2026-04-01", "to_date": "2026-04-03", "leave_type": "annual"},
        )
        self.assertEqual(created.status_code, 201, created.text)
        response = self.client.delete(f"/api/leave-periods/{created.json()['id']}")
        self.assertErrorCode(response, 403, "FORBIDDEN")


class AuthEndpointTests(SQLiteTestCase):
    def setUp(self) -> None:
        super().setUp()
        app.dependency_overrides[get_db] = self.override_get_db()
        self.client = TestClient(app)
        get_settings.cache_clear()

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        get_settings.cache_clear()
        super().tearDown()

    def test_missing_token_is_rejected(self) -> None:
        response = self.client.get("/api/employees")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "INVALID_TOKEN")

    def test_login_issues_token_accepted_by_protected_routes(self) -> None:
        with patch.dict(
            os.environ,
            {
                "ADMIN_USER": "admin",
                "ADMIN_PASS_HASH": hash_password("s3cret-pass"),
                "JWT_SECRET": "jwt-test-secret",
            },
            clear=False,
        ):
            get_settings.cache_clear()
            bad = self.client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
            self.assertEqual(bad.status_code, 401)
            self.assertEqual(bad.json()["error"]["code"], "INVALID_CREDENTIALS")

            login = self.client.post("/api/auth/login", json={"username": "admin", "password": "s3cret-pass"})
            self.assertEqual(login.status_code, 200, login.text)
            token = login.json()["access_token"]

            created = self.client.post(
                "/api/employees",
                json={"name": "Grace Hopper", "employment_status": "active"},
                headers={"Authorization": f"Bearer {token}"},
            )
            self.assertEqual(created.status_code, 201, created.text)
            self.assertTrue(created.json()["employee_id"].startswith("SEC-"))


if __name__ == "__main__":
    unittest.main()
