"""API key store.

Third-party credentials are entered by admins and looked up by service name
at flow run time. Values are Fernet-encrypted when an encryption key is
configured.

Well-known service names:
    Reddit Client ID / Reddit Client Secret / Reddit User Agent
    GEMINI_API_KEY / GEMINI_API_URL
    GNews API Key
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from insight_core.domain.models import ApiKey, utcnow
from insight_core.infrastructure.crypto import CryptoService, DecryptionError

logger = logging.getLogger(__name__)


# Service names looked up by providers and flows
REDDIT_CLIENT_ID = "Reddit Client ID"
REDDIT_CLIENT_SECRET = "Reddit Client Secret"
REDDIT_USER_AGENT = "Reddit User Agent"
GEMINI_API_KEY = "GEMINI_API_KEY"
GEMINI_API_URL = "GEMINI_API_URL"
GNEWS_API_KEY = "GNews API Key"


def mask_key_value(value: str) -> str:
    """Show only the last four characters of a secret."""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class ApiKeyService:
    """Service for storing and resolving third-party API keys."""

    def __init__(self, db: Session, crypto: Optional[CryptoService] = None):
        """Initialize the API key service.

        Args:
            db: SQLAlchemy database session.
            crypto: Optional crypto service. Values are stored in plain
                text when omitted.
        """
        self.db = db
        self.crypto = crypto

    def add_api_key(
        self,
        service_name: str,
        key_value: str,
        description: Optional[str] = None,
        added_by_user_id: Optional[str] = None,
    ) -> ApiKey:
        """Store a new API key.

        Raises:
            ValueError: If service_name or key_value is blank.
        """
        service_name = (service_name or "").strip()
        key_value = (key_value or "").strip()
        if not service_name:
            raise ValueError("service_name must not be empty")
        if not key_value:
            raise ValueError("key_value must not be empty")

        stored_value = self.crypto.encrypt(key_value) if self.crypto else key_value

        api_key = ApiKey(
            id=uuid.uuid4().hex,
            service_name=service_name,
            key_value=stored_value,
            description=description,
            added_by_user_id=added_by_user_id,
            created_at=utcnow(),
        )
        self.db.add(api_key)
        self.db.flush()
        return api_key

    def get_api_keys(self) -> list[ApiKey]:
        """All stored keys, newest first. Values stay encrypted."""
        return self.db.query(ApiKey).order_by(ApiKey.created_at.desc()).all()

    def delete_api_key(self, key_id: str) -> bool:
        return self.db.query(ApiKey).filter(ApiKey.id == key_id).delete() > 0

    def decrypt_value(self, api_key: ApiKey) -> str:
        if self.crypto is None:
            return api_key.key_value
        return self.crypto.decrypt(api_key.key_value)

    def get_key_value(self, service_name: str) -> Optional[str]:
        """Resolve the newest key stored under a service name.

        Returns None when nothing is stored or the value cannot be
        decrypted with the current key.
        """
        api_key = (
            self.db.query(ApiKey)
            .filter(ApiKey.service_name == service_name)
            .order_by(ApiKey.created_at.desc())
            .first()
        )
        if api_key is None:
            return None

        try:
            return self.decrypt_value(api_key)
        except DecryptionError:
            logger.error(f"Stored API key for '{service_name}' could not be decrypted")
            return None

    def get_key_values(self, *service_names: str) -> dict[str, Optional[str]]:
        return {name: self.get_key_value(name) for name in service_names}
