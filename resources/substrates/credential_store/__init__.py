"""Credential store substrate: accounts and request records."""

from resources.substrates.credential_store.errors import (
    StoreError,
    StoreRequestError,
    StoreUnavailableError,
    normalize_store_error,
)
from resources.substrates.credential_store.factory import (
    build_credential_store,
    prepare_credential_store,
)
from resources.substrates.credential_store.memory_store import InMemoryCredentialStore
from resources.substrates.credential_store.postgres_store import (
    PostgresCredentialStore,
    normalize_async_url,
)
from resources.substrates.credential_store.records import (
    Account,
    AccountStatus,
    RequestRecord,
)
from resources.substrates.credential_store.store import (
    AccountMutator,
    CredentialStore,
    StoreHealthStatus,
)

__all__ = [
    "Account",
    "AccountMutator",
    "AccountStatus",
    "CredentialStore",
    "InMemoryCredentialStore",
    "PostgresCredentialStore",
    "RequestRecord",
    "StoreError",
    "StoreHealthStatus",
    "StoreRequestError",
    "StoreUnavailableError",
    "build_credential_store",
    "normalize_async_url",
    "normalize_store_error",
    "prepare_credential_store",
]
