"""
Encryption of provider credentials at rest.

Credential bundles are serialized to JSON and sealed with Fernet before they
are written to MongoDB; only the in-memory connection ever holds plaintext.
"""

import json
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

from ats_connect.core.exceptions import ConfigurationError
from ats_connect.utils.config import get_settings
from ats_connect.utils.logger import get_logger

logger = get_logger(__name__)


class CredentialCipher:
    """Seals and opens credential bundles with a symmetric Fernet key."""

    def __init__(self, key: str | bytes) -> None:
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid credential encryption key: {e}") from e

    def encrypt(self, credentials: dict[str, Any]) -> str:
        """Encrypt a credential mapping into a token string."""
        payload = json.dumps(credentials, sort_keys=True).encode("utf-8")
        return self._fernet.encrypt(payload).decode("ascii")

    def decrypt(self, token: Optional[str]) -> dict[str, Any]:
        """Decrypt a token produced by :meth:`encrypt`."""
        if not token:
            return {}
        try:
            payload = self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as e:
            raise ConfigurationError(
                "Stored credentials cannot be decrypted with the configured key"
            ) from e
        return json.loads(payload.decode("utf-8"))


_cipher: Optional[CredentialCipher] = None


def get_credential_cipher() -> CredentialCipher:
    """
    Get the global credential cipher.

    Production requires SECURITY_ENCRYPTION_KEY. Other environments fall back
    to a per-process key, so stored credentials do not survive a restart.
    """
    global _cipher
    if _cipher is None:
        settings = get_settings()
        key = settings.security.encryption_key
        if not key:
            if settings.environment == "production":
                raise ConfigurationError("SECURITY_ENCRYPTION_KEY must be set in production")
            logger.warning(
                "No SECURITY_ENCRYPTION_KEY configured - using an ephemeral key; "
                "stored credentials will be unreadable after restart"
            )
            key = Fernet.generate_key()
        _cipher = CredentialCipher(key)
    return _cipher
