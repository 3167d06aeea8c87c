"""Credential store construction from typed settings."""

from __future__ import annotations

from packages.gateway_shared.config import MEMORY_STORE_URL, StoreSettings
from resources.substrates.credential_store.memory_store import InMemoryCredentialStore
from resources.substrates.credential_store.postgres_store import PostgresCredentialStore
from resources.substrates.credential_store.store import CredentialStore


def build_credential_store(settings: StoreSettings) -> CredentialStore:
    """Build the store selected by ``store.url``.

    Raises ``ValueError`` for blank or unsupported URLs.
    """
    if settings.url == "":
        raise ValueError("store.url is required")
    if settings.url == MEMORY_STORE_URL:
        return InMemoryCredentialStore()
    return PostgresCredentialStore(settings=settings)


async def prepare_credential_store(
    store: CredentialStore, settings: StoreSettings
) -> None:
    """Run optional one-time store setup before the process reports ready."""
    if settings.create_schema_on_startup and isinstance(store, PostgresCredentialStore):
        await store.create_schema()
