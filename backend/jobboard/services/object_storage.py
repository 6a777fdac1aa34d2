"""
Object storage for uploaded files.

Objects are addressed by a canonical path "/objects/<entity id>". Two
backends are available: a local directory (default, used in development
and tests) and a Google Cloud Storage bucket. Both keep string metadata
next to the bytes, which is where the ACL policy lives.
"""
import base64
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

from starlette.concurrency import run_in_threadpool

from jobboard.config import settings
from jobboard.errors import NotFoundError, StorageError
from jobboard.services.object_acl import (
    ACL_POLICY_METADATA_KEY,
    ObjectAccessGroup,
    ObjectAccessGroupType,
    ObjectAclPolicy,
    ObjectAclRule,
    ObjectPermission,
)

logger = logging.getLogger(__name__)

OBJECTS_PREFIX = "/objects/"


class ObjectNotFoundError(NotFoundError):
    def __init__(self, path: str = ""):
        super().__init__("Object not found")
        self.path = path


@dataclass
class StoredObject:
    entity_id: str
    data: bytes
    content_type: str
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return f"{OBJECTS_PREFIX}{self.entity_id}"


def _check_entity_id(entity_id: str) -> str:
    parts = entity_id.split("/")
    if not entity_id or entity_id.startswith("/") or any(p in ("", ".", "..") for p in parts):
        raise ObjectNotFoundError(entity_id)
    return entity_id


class LocalObjectStore:
    """Files under a root directory with a ``<name>.meta.json`` sidecar."""

    def __init__(self, root):
        self.root = Path(root)

    def _file(self, entity_id: str) -> Path:
        return self.root / _check_entity_id(entity_id)

    def _meta_file(self, entity_id: str) -> Path:
        path = self._file(entity_id)
        return path.with_name(path.name + ".meta.json")

    async def put(self, entity_id: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        path = self._file(entity_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self._meta_file(entity_id).write_text(
            json.dumps({"content_type": content_type, "metadata": metadata})
        )

    async def get(self, entity_id: str) -> StoredObject:
        path = self._file(entity_id)
        if not path.is_file():
            raise ObjectNotFoundError(entity_id)
        meta = await self._read_meta(entity_id)
        return StoredObject(
            entity_id=entity_id,
            data=path.read_bytes(),
            content_type=meta.get("content_type") or "application/octet-stream",
            metadata=meta.get("metadata") or {},
        )

    async def _read_meta(self, entity_id: str) -> dict:
        meta_file = self._meta_file(entity_id)
        if not meta_file.is_file():
            return {}
        return json.loads(meta_file.read_text())

    async def get_metadata(self, entity_id: str) -> Dict[str, str]:
        if not self._file(entity_id).is_file():
            raise ObjectNotFoundError(entity_id)
        return (await self._read_meta(entity_id)).get("metadata") or {}

    async def set_metadata(self, entity_id: str, metadata: Dict[str, str]) -> None:
        if not self._file(entity_id).is_file():
            raise ObjectNotFoundError(entity_id)
        meta = await self._read_meta(entity_id)
        meta.setdefault("metadata", {}).update(metadata)
        self._meta_file(entity_id).write_text(json.dumps(meta))


class GCSObjectStore:
    """Objects stored as blobs under ``<prefix>/`` in a Cloud Storage bucket."""

    def __init__(self, bucket_name: str, prefix: str = "", project: Optional[str] = None,
                 service_account_b64: Optional[str] = None):
        from google.cloud import storage

        if service_account_b64:
            info = json.loads(base64.b64decode(service_account_b64))
            client = storage.Client.from_service_account_info(info, project=project or info.get("project_id"))
        else:
            client = storage.Client(project=project)
        self.bucket = client.bucket(bucket_name)
        self.prefix = prefix.strip("/")

    def _blob(self, entity_id: str):
        name = _check_entity_id(entity_id)
        if self.prefix:
            name = f"{self.prefix}/{name}"
        return self.bucket.blob(name)

    async def put(self, entity_id: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        blob = self._blob(entity_id)
        blob.metadata = metadata
        await run_in_threadpool(blob.upload_from_string, data, content_type=content_type)

    async def _load(self, entity_id: str):
        blob = self._blob(entity_id)
        if not await run_in_threadpool(blob.exists):
            raise ObjectNotFoundError(entity_id)
        await run_in_threadpool(blob.reload)
        return blob

    async def get(self, entity_id: str) -> StoredObject:
        blob = await self._load(entity_id)
        data = await run_in_threadpool(blob.download_as_bytes)
        return StoredObject(
            entity_id=entity_id,
            data=data,
            content_type=blob.content_type or "application/octet-stream",
            metadata=dict(blob.metadata or {}),
        )

    async def get_metadata(self, entity_id: str) -> Dict[str, str]:
        blob = await self._load(entity_id)
        return dict(blob.metadata or {})

    async def set_metadata(self, entity_id: str, metadata: Dict[str, str]) -> None:
        blob = await self._load(entity_id)
        blob.metadata = {**(blob.metadata or {}), **metadata}
        await run_in_threadpool(blob.patch)


_store = None


def get_object_store():
    """Backend selected by STORAGE_BACKEND, built on first use."""
    global _store
    if _store is None:
        if settings.storage_backend == "gcs":
            if not settings.gcs_bucket:
                raise StorageError("GCS_BUCKET not set")
            _store = GCSObjectStore(
                settings.gcs_bucket,
                prefix=settings.private_object_dir,
                project=settings.gcs_project_id,
                service_account_b64=settings.gcs_service_account_b64,
            )
        else:
            _store = LocalObjectStore(settings.upload_dir)
        logger.info(f"Object storage backend: {settings.storage_backend}")
    return _store


def entity_id_from_path(object_path: str) -> Optional[str]:
    """
    "/objects/uploads/abc.pdf" -> "uploads/abc.pdf". Full URLs pointing at
    this API are accepted too. Returns None for anything that is not an
    object path (e.g. an external resume link).
    """
    if not object_path:
        return None
    path = urlparse(object_path).path if "://" in object_path else object_path
    if not path.startswith(OBJECTS_PREFIX):
        return None
    entity_id = path[len(OBJECTS_PREFIX):]
    return entity_id or None


def new_entity_id(folder: str, extension: str = "") -> str:
    return f"{folder}/{uuid.uuid4()}{extension.lower()}"


async def save_object(
    entity_id: str,
    data: bytes,
    content_type: str,
    policy: ObjectAclPolicy,
    original_filename: Optional[str] = None,
) -> StoredObject:
    metadata = {ACL_POLICY_METADATA_KEY: policy.to_metadata_value()}
    if original_filename:
        metadata["filename"] = original_filename
    await get_object_store().put(entity_id, data, content_type, metadata)
    logger.info(f"Stored object {entity_id} ({len(data)} bytes, {policy.visibility})")
    return StoredObject(entity_id=entity_id, data=data, content_type=content_type, metadata=metadata)


async def get_object_acl_policy(entity_id: str) -> Optional[ObjectAclPolicy]:
    metadata = await get_object_store().get_metadata(entity_id)
    return ObjectAclPolicy.from_metadata(metadata)


async def set_object_acl_policy(entity_id: str, policy: ObjectAclPolicy) -> None:
    await get_object_store().set_metadata(entity_id, {ACL_POLICY_METADATA_KEY: policy.to_metadata_value()})


async def grant_company_read_access(object_path: str, company_id, owner_id) -> bool:
    """
    Let a company's members read an uploaded object (a resume sent with an
    application). Only objects that already carry a policy owned by owner_id
    are touched, and nothing is added when the company can already read it.

    Returns True when a rule was added.
    """
    entity_id = entity_id_from_path(object_path)
    if entity_id is None:
        return False

    try:
        policy = await get_object_acl_policy(entity_id)
    except ObjectNotFoundError:
        logger.warning(f"Cannot grant access to missing object {object_path}")
        return False
    if policy is None:
        return False
    if policy.owner != str(owner_id):
        logger.warning(f"User {owner_id} tried to share {object_path} owned by {policy.owner}")
        return False

    group = ObjectAccessGroup(type=ObjectAccessGroupType.COMPANY_MEMBERS, id=str(company_id))
    if policy.grants(group, ObjectPermission.READ):
        return False

    policy.acl_rules.append(ObjectAclRule(group=group, permission=ObjectPermission.READ))
    await set_object_acl_policy(entity_id, policy)
    logger.info(f"Granted company {company_id} read access to {object_path}")
    return True
