"""Infrastructure components for Insight Stream."""

from insight_core.infrastructure.crypto import (
    CryptoService,
    DecryptionError,
    InvalidKeyError,
    get_crypto_service,
)

__all__ = [
    "CryptoService",
    "DecryptionError",
    "InvalidKeyError",
    "get_crypto_service",
]
