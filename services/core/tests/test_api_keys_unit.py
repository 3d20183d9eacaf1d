"""Unit tests for ApiKeyService and CryptoService."""

import logging

import pytest

from insight_core.domain.models import ApiKey
from insight_core.domain.services.api_keys import (
    GEMINI_API_KEY,
    ApiKeyService,
    mask_key_value,
)
from insight_core.infrastructure.crypto import (
    CryptoService,
    DecryptionError,
    InvalidKeyError,
    get_crypto_service,
    warn_if_unencrypted,
)


class TestCryptoService:
    """Tests for Fernet encryption of stored keys."""

    def test_encrypt_then_decrypt(self):
        crypto = CryptoService(CryptoService.generate_key())

        token = crypto.encrypt("sk-live-123")

        assert token != "sk-live-123"
        assert crypto.decrypt(token) == "sk-live-123"

    def test_empty_key_rejected(self):
        with pytest.raises(InvalidKeyError, match="cannot be empty"):
            CryptoService("")

    def test_malformed_key_rejected(self):
        with pytest.raises(InvalidKeyError):
            CryptoService("not-a-fernet-key")

    def test_decrypt_with_other_key_fails(self):
        token = CryptoService(CryptoService.generate_key()).encrypt("secret")

        with pytest.raises(DecryptionError):
            CryptoService(CryptoService.generate_key()).decrypt(token)

    def test_get_crypto_service_without_key(self):
        assert get_crypto_service(None) is None
        assert get_crypto_service("") is None

    def test_missing_key_is_warned(self, caplog):
        with caplog.at_level(logging.WARNING, logger="insight_core.infrastructure.crypto"):
            assert warn_if_unencrypted("") is True

        assert "plain text" in caplog.text

    def test_configured_key_is_not_warned(self, caplog):
        with caplog.at_level(logging.WARNING, logger="insight_core.infrastructure.crypto"):
            assert warn_if_unencrypted(CryptoService.generate_key()) is False

        assert caplog.records == []


class TestMaskKeyValue:
    """Tests for mask_key_value."""

    def test_keeps_last_four(self):
        assert mask_key_value("abcdefgh") == "****efgh"

    def test_short_values_fully_masked(self):
        assert mask_key_value("abc") == "***"


class TestApiKeyService:
    """Tests for storing and resolving keys."""

    @pytest.fixture
    def crypto(self):
        return CryptoService(CryptoService.generate_key())

    def test_add_encrypts_value(self, db_session, crypto):
        service = ApiKeyService(db_session, crypto)

        api_key = service.add_api_key(GEMINI_API_KEY, "  gemini-secret  ", "prod")

        assert api_key.key_value != "gemini-secret"
        assert crypto.decrypt(api_key.key_value) == "gemini-secret"
        assert api_key.description == "prod"

    def test_add_without_crypto_stores_plain(self, db_session):
        api_key = ApiKeyService(db_session).add_api_key("GNews API Key", "plain")

        assert api_key.key_value == "plain"

    @pytest.mark.parametrize("name,value", [("", "v"), ("  ", "v"), ("svc", ""), ("svc", "  ")])
    def test_blank_fields_rejected(self, db_session, name, value):
        with pytest.raises(ValueError):
            ApiKeyService(db_session).add_api_key(name, value)

    def test_get_key_value_returns_newest(self, db_session, crypto):
        service = ApiKeyService(db_session, crypto)
        old = service.add_api_key(GEMINI_API_KEY, "old")
        new = service.add_api_key(GEMINI_API_KEY, "new")
        old.created_at = new.created_at.replace(year=new.created_at.year - 1)
        db_session.flush()

        assert service.get_key_value(GEMINI_API_KEY) == "new"

    def test_get_key_value_missing(self, db_session, crypto):
        assert ApiKeyService(db_session, crypto).get_key_value("nothing") is None

    def test_undecryptable_value_resolves_to_none(self, db_session, crypto):
        ApiKeyService(db_session).add_api_key(GEMINI_API_KEY, "plain-not-a-token")

        assert ApiKeyService(db_session, crypto).get_key_value(GEMINI_API_KEY) is None

    def test_get_key_values(self, db_session, crypto):
        service = ApiKeyService(db_session, crypto)
        service.add_api_key("A", "a-value")

        assert service.get_key_values("A", "B") == {"A": "a-value", "B": None}

    def test_delete_api_key(self, db_session, crypto):
        service = ApiKeyService(db_session, crypto)
        api_key = service.add_api_key("A", "a-value")

        assert service.delete_api_key(api_key.id) is True
        assert service.delete_api_key(api_key.id) is False
        assert db_session.query(ApiKey).count() == 0
