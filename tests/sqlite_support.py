from __future__ import annotations

import unittest
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base
from app.models import Employee


class SQLiteTestCase(unittest.TestCase):
    """Fresh in-memory schema per test, sharing one connection across sessions."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=True, expire_on_commit=False)
        self.db = self.session_factory()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def override_get_db(self):  # type: ignore[no-untyped-def]
        def _override() -> Generator[Session, None, None]:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        return _override

    def add_employee(self, employee_id: str, full_name: str = "Test Employee") -> Employee:
        employee = Employee(employee_id=employee_id, full_name=full_name, status="active")
        self.db.add(employee)
        self.db.commit()
        return employee
