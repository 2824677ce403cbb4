from __future__ import annotations

from ..extensions import db
from ..models import ReceiptSettings, Store
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .concurrency import lock_for_update, run_with_retry


RECEIPT_SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={
        "business_name",
        "tax_id",
        "address",
        "phone",
        "footer_text",
        "warranty_text",
        "warranty_days",
    },
)

DEFAULT_WARRANTY_DAYS = 0
MAX_WARRANTY_DAYS = 3650


def _defaults_for(store: Store) -> dict:
    return {
        "id": None,
        "store_id": store.id,
        "business_name": store.name,
        "tax_id": None,
        "address": store.address,
        "phone": None,
        "footer_text": None,
        "warranty_text": None,
        "warranty_days": DEFAULT_WARRANTY_DAYS,
        "updated_by_employee_id": None,
        "updated_at": None,
    }


def _get_store(store_id: int) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFoundError(f"Store {store_id} not found")
    return store


def get_settings(store_id: int) -> dict:
    """Stored receipt settings for the store, or defaults derived from the store."""
    store = _get_store(store_id)
    row = db.session.query(ReceiptSettings).filter_by(store_id=store_id).first()
    if row is None:
        return _defaults_for(store)
    return row.to_dict()


def update_settings(store_id: int, payload: dict, employee_id: int | None = None) -> dict:
    """Create or patch the store's receipt settings."""
    patch = validate_payload(
        model=ReceiptSettings,
        payload=payload,
        policy=RECEIPT_SETTINGS_POLICY,
        partial=True,
    )
    days = patch.get("warranty_days")
    if days is not None and not (0 <= days <= MAX_WARRANTY_DAYS):
        raise ValidationError(f"warranty_days must be between 0 and {MAX_WARRANTY_DAYS}")

    def _op():
        store = _get_store(store_id)
        row = lock_for_update(db.session.query(ReceiptSettings).filter_by(store_id=store_id)).first()
        if row is None:
            defaults = _defaults_for(store)
            row = ReceiptSettings(
                store_id=store_id,
                business_name=defaults["business_name"],
                address=defaults["address"],
                warranty_days=DEFAULT_WARRANTY_DAYS,
            )
            db.session.add(row)

        for key, value in patch.items():
            setattr(row, key, value)
        row.updated_by_employee_id = employee_id

        db.session.commit()
        return row.to_dict()

    return run_with_retry(_op)
