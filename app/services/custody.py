from __future__ import annotations

from dataclasses import dataclass

from app.errors import conflict
from app.models import CustodyAction, RestrictedSerialUnit, SerialUnitStatus


@dataclass(frozen=True, slots=True)
class InStock:
    pass


@dataclass(frozen=True, slots=True)
class Issued:
    employee_id: str


CustodyState = InStock | Issued


@dataclass(frozen=True, slots=True)
class CustodyTransition:
    before: CustodyState
    after: CustodyState
    action: CustodyAction
    # employee recorded on the ledger row: the new holder on issue, the previous one on return
    ledger_employee_id: str | None


def custody_state_of(unit: RestrictedSerialUnit) -> CustodyState:
    if unit.status == SerialUnitStatus.ISSUED:
        if not unit.issued_to_employee_id:
            raise ValueError(f"serial unit {unit.id} is issued without a holder")
        return Issued(employee_id=unit.issued_to_employee_id)
    return InStock()


def issue(state: CustodyState, employee_id: str) -> CustodyTransition:
    if isinstance(state, Issued):
        raise conflict(
            "SERIAL_UNIT_ALREADY_ISSUED",
            f"Serial unit is already issued to employee {state.employee_id}.",
        )
    return CustodyTransition(
        before=state,
        after=Issued(employee_id=employee_id),
        action=CustodyAction.ISSUE,
        ledger_employee_id=employee_id,
    )


def return_unit(state: CustodyState) -> CustodyTransition:
    if isinstance(state, InStock):
        raise conflict("SERIAL_UNIT_NOT_ISSUED", "Serial unit is not issued.")
    return CustodyTransition(
        before=state,
        after=InStock(),
        action=CustodyAction.RETURN,
        ledger_employee_id=state.employee_id,
    )


def apply_state(unit: RestrictedSerialUnit, state: CustodyState) -> None:
    """Write the cached custody projection back onto the unit row."""
    if isinstance(state, Issued):
        unit.status = SerialUnitStatus.ISSUED
        unit.issued_to_employee_id = state.employee_id
    else:
        unit.status = SerialUnitStatus.IN_STOCK
        unit.issued_to_employee_id = None
