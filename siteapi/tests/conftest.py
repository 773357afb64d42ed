"""Shared fixtures for site API tests."""

from types import SimpleNamespace

import pytest
from azure.core import MatchConditions
from azure.core.exceptions import (
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)

ADMIN_KEY = "test-admin-key"


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from siteapi.config import get_settings

    get_settings.cache_clear()

    # 2. Blob storage singleton
    import siteapi.services.blob_storage as blob_mod

    blob_mod._container_client = None

    # 3. Stats cache
    import siteapi.services.stats as stats_mod

    stats_mod._cache.clear()

    # 4. Rate limiter state
    from siteapi.services.rate_limit import reset_rate_limits

    reset_rate_limits()

    # 5. Health check cache
    import siteapi.main as main_mod

    main_mod._health_cache = None


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide a Settings object with safe test defaults."""
    from siteapi.config import Settings, get_settings

    test_settings = Settings(
        azure_storage_account="teststorage",
        azure_content_container="test-content",
        managed_identity_client_id="test-client-id",
        admin_api_key=ADMIN_KEY,
        admin_name="Test Admin",
        smtp_host="smtp.test.local",
        smtp_port=587,
        admin_email="admin@bahoju-test.com",
        form_rate_limit_max=5,
        form_rate_limit_window=3600,
    )

    get_settings.cache_clear()
    monkeypatch.setattr("siteapi.config.get_settings", lambda: test_settings)

    # Patch get_settings in every module that imports it directly
    # (from siteapi.config import get_settings creates a local binding that
    # the siteapi.config monkeypatch above does not affect)
    for mod_path in [
        "siteapi.auth",
        "siteapi.main",
        "siteapi.routers.contact",
        "siteapi.services.blob_storage",
        "siteapi.services.email",
        "siteapi.services.rate_limit",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


class _Download:
    def __init__(self, data: bytes, etag: str | None) -> None:
        self._data = data
        self.properties = SimpleNamespace(etag=etag)

    def readall(self) -> bytes:
        return self._data


class FakeBlobClient:
    """Mimics the subset of azure BlobClient the storage layer uses."""

    def __init__(self, container: "FakeContainerClient", name: str) -> None:
        self._container = container
        self.name = name

    def download_blob(self) -> _Download:
        if self.name not in self._container.blobs:
            raise ResourceNotFoundError("The specified blob does not exist.")
        return _Download(
            self._container.blobs[self.name], self._container.etags.get(self.name)
        )

    def upload_blob(
        self,
        data,
        overwrite: bool = False,
        etag: str | None = None,
        match_condition=None,
        **kwargs,
    ) -> dict:
        exists = self.name in self._container.blobs
        if match_condition == MatchConditions.IfNotModified:
            if not exists or self._container.etags.get(self.name) != etag:
                raise ResourceModifiedError("The condition specified was not met.")
        elif not overwrite and exists:
            raise ResourceExistsError("The specified blob already exists.")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._container.blobs[self.name] = data
        new_etag = self._container.next_etag()
        self._container.etags[self.name] = new_etag
        return {"etag": new_etag}

    def delete_blob(self) -> None:
        if self.name not in self._container.blobs:
            raise ResourceNotFoundError("The specified blob does not exist.")
        del self._container.blobs[self.name]
        self._container.etags.pop(self.name, None)


class FakeContainerClient:
    """In-memory stand-in for azure ContainerClient."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.etags: dict[str, str] = {}
        self._version = 0

    def next_etag(self) -> str:
        self._version += 1
        return f'"0x{self._version:04X}"'

    def get_blob_client(self, name: str) -> FakeBlobClient:
        return FakeBlobClient(self, name)

    def list_blobs(self, name_starts_with: str | None = None, **kwargs):
        names = sorted(self.blobs)
        if name_starts_with:
            names = [n for n in names if n.startswith(name_starts_with)]
        return iter([SimpleNamespace(name=n) for n in names])


@pytest.fixture
def fake_storage(monkeypatch):
    """Route every storage call to an in-memory container."""
    container = FakeContainerClient()
    monkeypatch.setattr(
        "siteapi.services.blob_storage._get_container_client",
        lambda: container,
    )
    return container


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}
