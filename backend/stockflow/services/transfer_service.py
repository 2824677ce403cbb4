# backend/stockflow/services/transfer_service.py
"""
Inter-store transfer service.

Moves a batch of individual Units from an origin store to a destination
store. A transfer is a single all-or-nothing operation: the header, one line
per Unit and the relocation of every Unit commit together, or nothing is
written.

There is no approval or in-transit state. A Unit that is sold, already at
another store, or changed since the caller selected it makes the whole
batch fail with a ConflictError naming every offending Unit.
"""
from __future__ import annotations

import logging

from stockflow.extensions import db
from stockflow.models import Employee, Store, Transfer, TransferLine
from stockflow.services.concurrency import begin_write_transaction, run_with_retry
from stockflow.services.unit_ledger_service import UnitRef, lock_batch_units
from stockflow.validation import ConflictError, NotFoundError, ValidationError, require_int_id


logger = logging.getLogger(__name__)

__all__ = [
    "UnitRef",
    "execute_transfer",
    "get_transfer",
    "get_transfer_summary",
    "list_transfers",
]


def execute_transfer(
    origin_store_id: int,
    destination_store_id: int,
    unit_refs: list[UnitRef],
    employee_id: int,
    note: str | None = None,
) -> Transfer:
    """
    Move every referenced Unit from origin to destination in one transaction.

    Args:
        origin_store_id: Store the Units must currently be at
        destination_store_id: Store receiving the Units
        unit_refs: Units to move, by id or scan code
        employee_id: Employee performing the transfer
        note: Optional free-text note

    Returns:
        Transfer: The committed transfer with its lines

    Raises:
        ValidationError: same origin and destination, empty batch, malformed
            or repeated references
        NotFoundError: origin, destination or employee does not exist
        ConflictError: a Unit is missing, sold, elsewhere or stale
    """
    origin_store_id = require_int_id("origin_store_id", origin_store_id)
    destination_store_id = require_int_id("destination_store_id", destination_store_id)
    if origin_store_id == destination_store_id:
        raise ValidationError("Cannot transfer to the same store")
    if not unit_refs:
        raise ValidationError("At least one unit is required")
    if note is not None:
        note = str(note).strip() or None
        if note and len(note) > 255:
            raise ValidationError("note exceeds max length 255")

    def _op():
        begin_write_transaction()
        try:
            for label, store_id in (("Origin", origin_store_id), ("Destination", destination_store_id)):
                if not db.session.query(Store).filter_by(id=store_id).first():
                    raise NotFoundError(f"{label} store {store_id} not found")
            if not db.session.query(Employee).filter_by(id=employee_id).first():
                raise NotFoundError(f"Employee {employee_id} not found")

            units = lock_batch_units(list(unit_refs), origin_store_id)

            transfer = Transfer(
                origin_store_id=origin_store_id,
                destination_store_id=destination_store_id,
                employee_id=employee_id,
                note=note,
            )
            db.session.add(transfer)
            db.session.flush()  # Get ID

            for unit in units:
                db.session.add(TransferLine(
                    transfer_id=transfer.id,
                    unit_id=unit.id,
                    product_id=unit.product_id,
                    scan_code=unit.scan_code,
                ))
                unit.store_id = destination_store_id

            db.session.commit()
        except (ValidationError, NotFoundError, ConflictError):
            db.session.rollback()
            raise

        logger.info(
            "Transfer %s committed: %d unit(s) from store %s to store %s by employee %s",
            transfer.id, len(units), origin_store_id, destination_store_id, employee_id,
        )
        return transfer

    return run_with_retry(_op)


def get_transfer(transfer_id: int) -> Transfer:
    transfer = db.session.query(Transfer).filter_by(id=transfer_id).first()
    if not transfer:
        raise NotFoundError(f"Transfer {transfer_id} not found")
    return transfer


def get_transfer_summary(transfer_id: int) -> dict:
    """Transfer header with store and employee names and its lines."""
    transfer = get_transfer(transfer_id)
    lines = []
    for line in transfer.lines:
        row = line.to_dict()
        row["product_name"] = line.product.name if line.product else None
        lines.append(row)

    summary = transfer.to_dict()
    summary.update({
        "origin_store_name": transfer.origin_store.name if transfer.origin_store else None,
        "destination_store_name": transfer.destination_store.name if transfer.destination_store else None,
        "employee_name": transfer.employee.full_name if transfer.employee else None,
        "lines": lines,
    })
    return summary


def list_transfers(store_id: int | None = None, limit: int = 50, offset: int = 0) -> list[Transfer]:
    """Newest first. With store_id, transfers where the store is origin or destination."""
    q = db.session.query(Transfer)
    if store_id is not None:
        q = q.filter(db.or_(
            Transfer.origin_store_id == store_id,
            Transfer.destination_store_id == store_id,
        ))
    return (
        q.order_by(Transfer.transferred_at.desc(), Transfer.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
