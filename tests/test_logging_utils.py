from __future__ import annotations

import json
import logging
import unittest
from datetime import date

from app.logging_utils import JsonFormatter
from app.models import AttendanceStatus


class JsonFormatterTests(unittest.TestCase):
    def test_extra_fields_are_serialized(self) -> None:
        record = logging.makeLogRecord(
            {
                "name": "app.attendance",
                "levelno": logging.INFO,
                "levelname": "INFO",
                "msg": "attendance_bulk_upsert",
                "attendance_date": date(2024, 2, 29),
                "status": AttendanceStatus.LEAVE,
                "upserted": 3,
            }
        )

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "attendance_bulk_upsert")
        self.assertEqual(payload["logger"], "app.attendance")
        self.assertEqual(payload["attendance_date"], "2024-02-29")
        self.assertEqual(payload["status"], "leave")
        self.assertEqual(payload["upserted"], 3)
        self.assertNotIn("levelno", payload)
        self.assertNotIn("pathname", payload)


if __name__ == "__main__":
    unittest.main()
