"""API key lookup: user key from a secret store first, configured key second."""

import asyncio
import logging
from typing import Protocol

from linkstash.config import Settings, get_settings

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY = "your_api_key_here"


class ApiKeyProvider(Protocol):
    async def get_api_key(self) -> str | None: ...


class SecretStore(Protocol):
    """Secure key-value storage for credentials (OS keychain or similar)."""

    async def get(self, name: str) -> str | None: ...

    async def set(self, name: str, value: str) -> None: ...

    async def delete(self, name: str) -> None: ...


class MemorySecretStore:
    """Process-local secret store."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, name: str) -> str | None:
        return self._values.get(name)

    async def set(self, name: str, value: str) -> None:
        async with self._lock:
            self._values[name] = value

    async def delete(self, name: str) -> None:
        async with self._lock:
            self._values.pop(name, None)


def _usable(key: str | None) -> bool:
    return bool(key and key.strip() and key.strip() != PLACEHOLDER_KEY)


class StoredApiKeyProvider:
    """
    Resolves the active provider's key.

    Priority: the user's key from the secret store, then the key from
    settings/.env. Lookup failures in the secret store fall through to
    the configured key.
    """

    def __init__(self, secrets: SecretStore, settings: Settings | None = None):
        self.secrets = secrets
        self.settings = settings or get_settings()

    @property
    def secret_name(self) -> str:
        return f"{self.settings.llm_provider}_api_key"

    async def get_api_key(self) -> str | None:
        try:
            user_key = await self.secrets.get(self.secret_name)
        except Exception as e:
            logger.warning("Could not read user key from secret store: %s", e)
            user_key = None

        if _usable(user_key):
            return user_key.strip()

        configured = self.settings.provider_api_key()
        if _usable(configured):
            return configured.strip()
        return None

    async def save_user_key(self, api_key: str) -> None:
        await self.secrets.set(self.secret_name, api_key.strip())
        logger.info("Saved user API key for %s", self.settings.llm_provider)

    async def delete_user_key(self) -> None:
        await self.secrets.delete(self.secret_name)
        logger.info("Deleted user API key for %s", self.settings.llm_provider)

    async def has_user_key(self) -> bool:
        return _usable(await self.secrets.get(self.secret_name))
