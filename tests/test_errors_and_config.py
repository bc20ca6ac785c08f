"""
Tests for settings parsing and domain error handling
"""

import pytest
from datetime import date
from unittest.mock import MagicMock

from pydantic import ValidationError as SettingsValidationError
from sqlalchemy.exc import OperationalError

from stayledger.config import Settings
from stayledger.errors import (
    AuthorizationError, ConflictError, DomainError, InvalidTransitionError,
    NotFoundError, StorageUnavailableError, ValidationError
)
from stayledger.utils.db_helpers import translate_storage_errors


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("DEFAULT_CURRENCY", "DEPOSIT_PERCENT", "OPERATOR_ROLES", "MAX_ADVANCE_DAYS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_currency == "GBP"
        assert settings.deposit_percent == 20
        assert settings.max_advance_days == 730
        assert settings.operator_role_set == {"operator", "admin", "superadmin"}

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "eur")
        monkeypatch.setenv("OPERATOR_ROLES", "Admin, admin1 ,")
        settings = Settings(_env_file=None)
        assert settings.default_currency == "EUR"
        assert settings.operator_role_set == {"admin", "admin1"}

    def test_deposit_percent_bounds(self, monkeypatch):
        monkeypatch.setenv("DEPOSIT_PERCENT", "120")
        with pytest.raises(SettingsValidationError):
            Settings(_env_file=None)

    def test_cors_origins_deduplicated(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test/, https://a.test,https://b.test")
        assert Settings(_env_file=None).cors_origins == ["https://a.test", "https://b.test"]


class TestErrors:

    @pytest.mark.parametrize("error,status,code", [
        (ValidationError("bad"), 400, "VALIDATION_ERROR"),
        (InvalidTransitionError("pending", "checked_out"), 400, "INVALID_TRANSITION"),
        (ConflictError(), 409, "DATE_CONFLICT"),
        (NotFoundError("Property", "p-1"), 404, "NOT_FOUND"),
        (AuthorizationError(), 403, "FORBIDDEN"),
        (StorageUnavailableError(), 503, "STORAGE_UNAVAILABLE"),
    ])
    def test_status_and_code(self, error, status, code):
        assert isinstance(error, DomainError)
        assert error.http_status == status
        assert error.code == code

    def test_only_storage_errors_are_retryable(self):
        assert StorageUnavailableError.retryable
        assert not ConflictError.retryable
        assert not ValidationError.retryable

    def test_conflict_dates_sorted(self):
        error = ConflictError(dates=[date(2024, 6, 12), date(2024, 6, 10)])
        assert error.dates == [date(2024, 6, 10), date(2024, 6, 12)]

    def test_operational_error_translated(self):
        db = MagicMock()
        with pytest.raises(StorageUnavailableError):
            with translate_storage_errors(db):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        db.rollback.assert_called_once()

    def test_business_errors_pass_through(self):
        db = MagicMock()
        with pytest.raises(ConflictError):
            with translate_storage_errors(db):
                raise ConflictError()
        db.rollback.assert_not_called()

    def test_storage_error_rendered_as_503(self, client, monkeypatch):
        from stayledger.services.booking_orchestrator import BookingOrchestrator

        def unavailable(self, *args, **kwargs):
            raise StorageUnavailableError()

        monkeypatch.setattr(BookingOrchestrator, "check_availability", unavailable)
        response = client.get("/api/hotel/availability", params={"check_in": "2024-06-10", "check_out": "2024-06-11"})

        assert response.status_code == 503
        assert response.json()["code"] == "STORAGE_UNAVAILABLE"
        assert response.headers["Retry-After"] == "1"
