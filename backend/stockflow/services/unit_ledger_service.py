# Overview: Service-layer operations for the scan-coded unit ledger.

"""
Unit Ledger Service

Every physical item of stock is a Unit identified by a scan code (the
barcode printed on the box). Assigning a code creates the Unit at a store;
sales and transfers only ever change its sold flag or location.

UNIQUENESS RULES:
- scan_code is unique across the whole ledger: every store, every product,
  sold or unsold.
- Codes are trimmed of surrounding whitespace; case is preserved.

RETENTION:
Units referenced by any sale line or transfer line are history and are never
hard-deleted. Bulk and single deletes remove only unreferenced Units.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, SaleLine, Store, TransferLine, Unit
from ..validation import ConflictError, DuplicateError, NotFoundError, ValidationError
from .concurrency import lock_for_update, run_with_retry


logger = logging.getLogger(__name__)

MAX_SCAN_CODE_LENGTH = 128


@dataclass
class DeassignResult:
    deleted_count: int = 0
    kept_unit_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "deleted_count": self.deleted_count,
            "kept_count": len(self.kept_unit_ids),
            "kept_unit_ids": list(self.kept_unit_ids),
        }


@dataclass(frozen=True)
class UnitRef:
    """
    Caller's reference to one Unit in a batch.

    Either unit_id or scan_code identifies the Unit. version_id, when given,
    is the version the caller saw at selection time; a Unit changed since
    then is rejected as a conflict.
    """
    unit_id: int | None = None
    scan_code: str | None = None
    version_id: int | None = None

    @classmethod
    def from_payload(cls, raw) -> "UnitRef":
        if isinstance(raw, (int, str)) and not isinstance(raw, bool):
            raw = {"unit_id": raw} if isinstance(raw, int) else {"scan_code": raw}
        if not isinstance(raw, dict):
            raise ValidationError("Each unit reference must be an object, id or scan code")
        unit_id = raw.get("unit_id")
        version_id = raw.get("version_id")
        for key, value in (("unit_id", unit_id), ("version_id", version_id)):
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                raise ValidationError(f"{key} must be an integer")
        scan_code = raw.get("scan_code")
        return cls(unit_id=unit_id, scan_code=scan_code, version_id=version_id)

    def label(self) -> str:
        return f"unit {self.unit_id}" if self.unit_id is not None else f"scan code '{self.scan_code}'"


def normalize_scan_code(value) -> str:
    if value is None:
        raise ValidationError("scan_code is required")
    code = str(value).strip()
    if not code:
        raise ValidationError("scan_code cannot be blank")
    if len(code) > MAX_SCAN_CODE_LENGTH:
        raise ValidationError(f"scan_code exceeds max length {MAX_SCAN_CODE_LENGTH}")
    return code


def get_unit_by_scan_code(scan_code) -> Unit | None:
    code = normalize_scan_code(scan_code)
    return db.session.query(Unit).filter_by(scan_code=code).first()


def get_unit(unit_id: int) -> Unit | None:
    return db.session.query(Unit).filter_by(id=unit_id).first()


def assign_unit(
    product_id: int,
    store_id: int,
    scan_code,
    employee_id: int | None = None,
) -> Unit:
    """
    Register a new Unit of product_id at store_id.

    Raises:
        ValidationError: blank code, or product is deactivated
        NotFoundError: product or store does not exist
        DuplicateError: the code already exists anywhere in the ledger
    """
    code = normalize_scan_code(scan_code)

    def _op():
        product = db.session.query(Product).filter_by(id=product_id).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        if not product.is_active:
            raise ValidationError(f"Product {product_id} is inactive")

        store = db.session.query(Store).filter_by(id=store_id).first()
        if not store:
            raise NotFoundError(f"Store {store_id} not found")

        existing = db.session.query(Unit).filter_by(scan_code=code).first()
        if existing:
            raise DuplicateError(
                f"Scan code '{code}' is already registered",
                details={
                    "scan_code": code,
                    "unit_id": existing.id,
                    "product_id": existing.product_id,
                    "store_id": existing.store_id,
                    "sold": existing.sold,
                },
            )

        unit = Unit(
            scan_code=code,
            product_id=product_id,
            store_id=store_id,
            sold=False,
            assigned_by_employee_id=employee_id,
        )
        db.session.add(unit)
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent assignment of the same code
            db.session.rollback()
            raise DuplicateError(f"Scan code '{code}' is already registered", details={"scan_code": code})
        return unit

    return run_with_retry(_op)


def query_units(
    product_id: int | None = None,
    store_id: int | None = None,
    sold: bool | None = None,
) -> list[Unit]:
    q = db.session.query(Unit)
    if product_id is not None:
        q = q.filter(Unit.product_id == product_id)
    if store_id is not None:
        q = q.filter(Unit.store_id == store_id)
    if sold is not None:
        q = q.filter(Unit.sold == sold)
    return q.order_by(Unit.created_at.asc(), Unit.id.asc()).all()


def lock_batch_units(refs: list[UnitRef], expected_store_id: int) -> list[Unit]:
    """
    Resolve, lock and verify every Unit of a sale or transfer batch.

    Must run inside the batch's write transaction. Returns the Units in
    request order. Nothing is modified here.

    Raises:
        ValidationError: empty batch, a reference with neither id nor scan
            code, or the same Unit listed twice
        ConflictError: any Unit missing, sold, not at expected_store_id or
            changed since selection; details["units"] lists every problem
    """
    if not refs:
        raise ValidationError("At least one unit is required")

    problems: list[dict] = []
    units: list[Unit] = []
    seen: dict[int, int] = {}

    for position, ref in enumerate(refs):
        if ref.unit_id is None and (ref.scan_code is None or not str(ref.scan_code).strip()):
            raise ValidationError(f"Item {position + 1} must reference a unit by id or scan code")

        q = db.session.query(Unit)
        if ref.unit_id is not None:
            q = q.filter(Unit.id == ref.unit_id)
        else:
            q = q.filter(Unit.scan_code == normalize_scan_code(ref.scan_code))
        unit = lock_for_update(q).first()

        if unit is None:
            problems.append({"ref": ref.label(), "reason": "NOT_FOUND"})
            continue

        if unit.id in seen:
            raise ValidationError(
                f"Unit {unit.scan_code} is listed more than once (items {seen[unit.id] + 1} and {position + 1})"
            )
        seen[unit.id] = position

        base = {"ref": ref.label(), "unit_id": unit.id, "scan_code": unit.scan_code}
        if unit.sold:
            problems.append({**base, "reason": "SOLD"})
        elif unit.store_id != expected_store_id:
            problems.append({**base, "reason": "WRONG_STORE", "store_id": unit.store_id})
        elif ref.version_id is not None and ref.version_id != unit.version_id:
            problems.append({
                **base,
                "reason": "VERSION_CHANGED",
                "expected_version": ref.version_id,
                "current_version": unit.version_id,
            })
        units.append(unit)

    if problems:
        raise ConflictError(
            f"{len(problems)} unit(s) are no longer available at store {expected_store_id}",
            details={"units": problems},
        )
    return units


def referenced_unit_ids(unit_ids: list[int]) -> set[int]:
    """Subset of unit_ids that appear on any sale line or transfer line."""
    if not unit_ids:
        return set()
    on_sales = db.session.query(SaleLine.unit_id).filter(SaleLine.unit_id.in_(unit_ids))
    on_transfers = db.session.query(TransferLine.unit_id).filter(TransferLine.unit_id.in_(unit_ids))
    return {row[0] for row in on_sales.union(on_transfers).all()}


def deassign_all(store_id: int, product_id: int) -> DeassignResult:
    """
    Delete every unreferenced Unit of product_id at store_id.

    Units that any sale or transfer line points to are kept and reported in
    the result.
    """
    def _op():
        store = db.session.query(Store).filter_by(id=store_id).first()
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        product = db.session.query(Product).filter_by(id=product_id).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        units = lock_for_update(
            db.session.query(Unit).filter_by(store_id=store_id, product_id=product_id)
        ).all()
        keep = referenced_unit_ids([u.id for u in units])

        result = DeassignResult()
        for unit in units:
            if unit.id in keep:
                result.kept_unit_ids.append(unit.id)
                continue
            db.session.delete(unit)
            result.deleted_count += 1

        db.session.commit()
        logger.info(
            "Deassigned product %s at store %s: deleted=%d kept=%d",
            product_id, store_id, result.deleted_count, len(result.kept_unit_ids),
        )
        return result

    return run_with_retry(_op)


def delete_unit(unit_id: int) -> None:
    def _op():
        unit = lock_for_update(db.session.query(Unit).filter_by(id=unit_id)).first()
        if not unit:
            raise NotFoundError(f"Unit {unit_id} not found")
        if referenced_unit_ids([unit.id]):
            raise ConflictError(
                f"Unit {unit_id} appears in sale or transfer history and cannot be deleted",
                details={"unit_id": unit_id, "scan_code": unit.scan_code},
            )
        db.session.delete(unit)
        db.session.commit()

    return run_with_retry(_op)
