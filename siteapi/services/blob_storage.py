"""Azure Blob Storage document store, one JSON blob per entity.

All site data lives in a single container, namespaced by prefix
(``blogs/``, ``slugs/``, ``contacts/``, ``subscribers/``, ``newsletters/``).
Create-only writes (``overwrite=False``) give the durable uniqueness
constraint for slugs and subscriber emails: Azure rejects a second creation
of the same blob name with ``ResourceExistsError``. Writes conditioned on an
etag reject a document changed since it was read with
``ResourceModifiedError``.
"""

import logging
import re
from typing import TypeVar

from azure.core import MatchConditions
from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.identity import ManagedIdentityCredential
from azure.storage.blob import ContainerClient, ContentSettings
from pydantic import BaseModel

from siteapi.config import get_settings
from siteapi.errors import StoreUnavailable, UniquenessViolation

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_SAFE_PATH_SEGMENT_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._-]*$")

JSON_CONTENT = ContentSettings(content_type="application/json")
TEXT_CONTENT = ContentSettings(content_type="text/plain")

# Lazy singleton, lives for the process lifetime
_container_client: ContainerClient | None = None


def validate_blob_path_segment(segment: str) -> str:
    """Validate a user-supplied blob path segment.

    Rejects inputs containing path traversal sequences (..), slashes,
    backslashes, or other unsafe characters. Returns the segment unchanged
    if valid; raises ValueError otherwise.
    """
    if not segment or not _SAFE_PATH_SEGMENT_RE.match(segment):
        raise ValueError(f"Invalid blob path segment: {segment!r}")
    return segment


def _get_credential() -> ManagedIdentityCredential:
    """Return Managed Identity credential."""
    settings = get_settings()
    return ManagedIdentityCredential(
        client_id=settings.managed_identity_client_id or None
    )


def create_container_client(container_name: str) -> ContainerClient:
    """Create a ContainerClient for the given container."""
    settings = get_settings()
    account_url = f"https://{settings.azure_storage_account}.blob.core.windows.net"
    return ContainerClient(
        account_url=account_url,
        container_name=container_name,
        credential=_get_credential(),
    )


def _get_container_client() -> ContainerClient:
    """Return the shared content container client (lazy singleton)."""
    global _container_client
    if _container_client is None:
        _container_client = create_container_client(
            get_settings().azure_content_container
        )
    return _container_client


def check_storage_connectivity() -> bool:
    """Lightweight storage connectivity check: lists 1 blob."""
    try:
        client = _get_container_client()
        next(client.list_blobs(results_per_page=1).__iter__())
        return True
    except StopIteration:
        # Container exists but is empty, still connected
        return True
    except Exception:
        return False


async def read_blob_versioned(name: str) -> tuple[bytes, str | None] | None:
    """Return ``(data, etag)`` for the blob, or None if it does not exist."""
    client = _get_container_client()
    try:
        downloader = client.get_blob_client(name).download_blob()
        return downloader.readall(), downloader.properties.etag
    except ResourceNotFoundError:
        return None
    except AzureError as e:
        logger.warning("Azure API error reading %s: %s", name, e)
        raise StoreUnavailable(f"Could not read {name} from storage") from e


async def read_blob(name: str) -> bytes | None:
    """Return the blob's bytes, or None if it does not exist."""
    found = await read_blob_versioned(name)
    return found[0] if found is not None else None


async def write_blob(
    name: str,
    data: str | bytes,
    *,
    content_settings: ContentSettings = JSON_CONTENT,
    create_only: bool = False,
    etag: str | None = None,
) -> str | None:
    """Upload a blob and return its new etag.

    With ``create_only`` the write fails with UniquenessViolation if the
    blob already exists. With ``etag`` it fails the same way unless the
    stored blob still has that etag.
    """
    client = _get_container_client()
    conditions = {}
    if etag is not None:
        conditions = {"etag": etag, "match_condition": MatchConditions.IfNotModified}
    try:
        result = client.get_blob_client(name).upload_blob(
            data,
            overwrite=not create_only,
            content_settings=content_settings,
            **conditions,
        )
    except ResourceExistsError as e:
        raise UniquenessViolation(f"{name} already exists") from e
    except ResourceModifiedError as e:
        raise UniquenessViolation(f"{name} was modified since it was read") from e
    except AzureError as e:
        logger.warning("Azure API error writing %s: %s", name, e)
        raise StoreUnavailable(f"Could not write {name} to storage") from e
    return result.get("etag") if result else None


async def delete_blob(name: str) -> bool:
    """Delete a blob. Returns False if it was already gone."""
    client = _get_container_client()
    try:
        client.get_blob_client(name).delete_blob()
        return True
    except ResourceNotFoundError:
        return False
    except AzureError as e:
        logger.warning("Azure API error deleting %s: %s", name, e)
        raise StoreUnavailable(f"Could not delete {name} from storage") from e


async def list_blob_names(prefix: str) -> list[str]:
    """List blob names under *prefix*."""
    client = _get_container_client()
    try:
        return [b.name for b in client.list_blobs(name_starts_with=prefix)]
    except AzureError as e:
        logger.warning("Azure API error listing %s: %s", prefix, e)
        raise StoreUnavailable(f"Could not list {prefix} in storage") from e


async def read_model_versioned(
    name: str, model: type[ModelT]
) -> tuple[ModelT, str | None] | None:
    """Read a JSON blob into *model* along with its etag, or None if missing."""
    found = await read_blob_versioned(name)
    if found is None:
        return None
    data, etag = found
    return model.model_validate_json(data), etag


async def read_model(name: str, model: type[ModelT]) -> ModelT | None:
    """Read a JSON blob into *model*, or None if missing."""
    found = await read_model_versioned(name, model)
    return found[0] if found is not None else None


async def write_model(
    name: str,
    obj: BaseModel,
    *,
    create_only: bool = False,
    etag: str | None = None,
) -> str | None:
    return await write_blob(
        name, obj.model_dump_json(indent=2), create_only=create_only, etag=etag
    )


async def list_models(prefix: str, model: type[ModelT]) -> list[ModelT]:
    """Read every JSON document under *prefix*.

    Documents deleted between the listing and the read are skipped.
    """
    results: list[ModelT] = []
    for name in await list_blob_names(prefix):
        obj = await read_model(name, model)
        if obj is not None:
            results.append(obj)
    return results
