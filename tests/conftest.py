"""Shared fixtures for Obscura Share tests."""

import pytest_asyncio

from obscura_share.repositories import AuditLog, CredentialStore, UserDirectory
from obscura_share.share import SharedLibrary


@pytest_asyncio.fixture
async def config_store(tmp_path):
    """Create a loaded credential store with a fresh config."""
    store = CredentialStore(tmp_path / "server-config.json")
    await store.load()
    return store


@pytest_asyncio.fixture
async def directory(tmp_path, config_store):
    """Create a loaded, empty user directory."""
    users = UserDirectory(tmp_path / "shared-users.json", config_store)
    await users.load()
    return users


@pytest_asyncio.fixture
async def audit_log(tmp_path, config_store):
    """Create a loaded, empty audit log."""
    audit = AuditLog(tmp_path / "audit-log.json", config_store)
    await audit.load()
    return audit


@pytest_asyncio.fixture
async def share(tmp_path):
    """Create an initialized shared library in a temp directory."""
    library = SharedLibrary(tmp_path)
    await library.initialize()
    return library

