from __future__ import annotations

import unittest
from datetime import date

from app.services.dates import days_until, neighbour_days, parse_iso_date


class DateHelperTests(unittest.TestCase):
    def test_neighbours_around_leap_day(self) -> None:
        self.assertEqual(neighbour_days(date(2024, 2, 29)), (date(2024, 2, 28), date(2024, 3, 1)))

    def test_neighbours_across_year_boundary(self) -> None:
        self.assertEqual(neighbour_days(date(2025, 1, 1)), (date(2024, 12, 31), date(2025, 1, 2)))
        self.assertEqual(neighbour_days(date(2024, 12, 31))[1], date(2025, 1, 1))

    def test_days_until_counts_calendar_days(self) -> None:
        self.assertEqual(days_until(date(2026, 3, 2), as_of=date(2026, 2, 27)), 3)
        self.assertEqual(days_until(date(2026, 2, 26), as_of=date(2026, 2, 27)), -1)

    def test_parse_iso_date_is_strict(self) -> None:
        self.assertEqual(parse_iso_date("2024-02-29"), date(2024, 2, 29))
        for bad in ("2023-02-29", "2024-2-9", "20240229", "29.02.2024", 1709164800):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    parse_iso_date(bad)


if __name__ == "__main__":
    unittest.main()
