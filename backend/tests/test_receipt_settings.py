"""
Receipt settings: per-store header, footer and warranty text for sale documents.
"""

import pytest

from stockflow.services import settings_service
from stockflow.validation import NotFoundError, ValidationError


class TestReceiptSettings:

    def test_defaults_come_from_store(self, store_a):
        settings = settings_service.get_settings(store_a.id)

        assert settings["id"] is None
        assert settings["business_name"] == "Centro"
        assert settings["address"] == "Av. Principal 1"
        assert settings["warranty_days"] == 0

    def test_update_creates_then_patches(self, store_a, admin):
        first = settings_service.update_settings(store_a.id, {"tax_id": "1234567"}, employee_id=admin.id)
        second = settings_service.update_settings(store_a.id, {"warranty_days": 30})

        assert first["id"] == second["id"]
        assert second["tax_id"] == "1234567"
        assert second["business_name"] == "Centro"
        assert second["warranty_days"] == 30

    def test_settings_are_per_store(self, store_a, store_b):
        settings_service.update_settings(store_a.id, {"footer_text": "Gracias por su compra"})

        assert settings_service.get_settings(store_b.id)["footer_text"] is None

    @pytest.mark.parametrize("payload", [
        {"warranty_days": -1},
        {"warranty_days": 3651},
        {"store_id": 2},
        {"logo": "x"},
    ])
    def test_invalid_update(self, store_a, payload):
        with pytest.raises(ValidationError):
            settings_service.update_settings(store_a.id, payload)

    def test_unknown_store(self, db_session):
        with pytest.raises(NotFoundError):
            settings_service.get_settings(404)
