"""Encryption for third-party API keys at rest.

Stored API keys (Reddit app credentials, Gemini, GNews) are Fernet tokens in
the ``api_keys`` table and are only decrypted when a flow needs them.

Usage:
    key = CryptoService.generate_key()  # Store this as ENCRYPTION_KEY
    crypto = CryptoService(key)

    token = crypto.encrypt("sk-live-...")
    crypto.decrypt(token)
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class InvalidKeyError(Exception):
    """Raised when an invalid encryption key is provided."""

    pass


class DecryptionError(Exception):
    """Raised when a stored value cannot be decrypted."""

    pass


class CryptoService:
    """Symmetric encryption for secret values."""

    def __init__(self, key: str):
        """Initialize with a Fernet key.

        Args:
            key: A valid Fernet key (base64-encoded 32-byte key).

        Raises:
            InvalidKeyError: If the key is empty or malformed.
        """
        if not key:
            raise InvalidKeyError("Encryption key cannot be empty")

        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Invalid encryption key: {e}")

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key."""
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a value produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the token is malformed or was encrypted
                with a different key.
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise DecryptionError(f"Failed to decrypt: {e}")


def get_crypto_service(encryption_key: Optional[str]) -> Optional[CryptoService]:
    """Build a CryptoService, or None when no key is configured.

    Without a key, API key values are stored as given.
    """
    if not encryption_key:
        return None
    return CryptoService(encryption_key)


def warn_if_unencrypted(encryption_key: Optional[str]) -> bool:
    """Log a warning when API keys would be stored in plain text.

    Returns:
        True if no encryption key is configured.
    """
    if encryption_key:
        return False
    logger.warning(
        "ENCRYPTION_KEY is not set; API key values will be stored in plain text"
    )
    return True
