"""Object store interface for photo originals and their preview renditions.

Objects are addressed by ``(bucket, folder, name)``; the pipeline uses the
photo id as the folder so that every rendition of a photo can be listed or
removed together.
"""

import asyncio
import json
import mimetypes
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

import orjson
from dapr.clients import DaprClient

from photo_pipeline.common.exceptions import ObjectNotFoundError
from photo_pipeline.constants import (
    DAPR_MAX_GRPC_MESSAGE_LENGTH,
    OBJECT_STORE_BACKEND,
    OBJECT_STORE_NAME,
    STORAGE_ROOT_PATH,
)
from photo_pipeline.observability.logger_adaptor import get_logger

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
METADATA_SUFFIX = ".meta"

# Substrings of binding errors for a missing object (S3, Azure Blob, GCS, local)
NOT_FOUND_MARKERS = (
    "not found",
    "nosuchkey",
    "blobnotfound",
    "no such file",
    "does not exist",
)


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    folder: str
    name: str
    size: int
    content_type: str

    @property
    def key(self) -> str:
        return f"{self.bucket}/{self.folder}/{self.name}"


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def metadata_name(name: str) -> str:
    """Name of the hidden record that holds an object's size and content type."""
    return f".{name}{METADATA_SUFFIX}"


def is_hidden(name: str) -> bool:
    return name.startswith(".")


class ObjectStore(ABC):
    """Abstract object store.

    Implementations must make ``put_item`` an overwrite so that re-running a
    step rewrites the same object, and ``delete_folder`` a no-op for folders
    that do not exist. The content type given to ``put_item`` is kept with the
    object and returned by ``get_item`` and ``list_items``.
    """

    @abstractmethod
    async def put_item(
        self,
        bucket: str,
        folder: str,
        name: str,
        content: bytes,
        size: int,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        raise NotImplementedError

    @abstractmethod
    async def get_item(self, bucket: str, folder: str, name: str) -> StoredObject:
        raise NotImplementedError

    @abstractmethod
    async def get_item_content(self, item: StoredObject) -> bytes:
        raise NotImplementedError

    @abstractmethod
    async def delete_item(self, bucket: str, folder: str, name: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_folder(self, bucket: str, folder: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_items(self, bucket: str, folder: str) -> List[StoredObject]:
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    """Filesystem backed store rooted at ``root_path``.

    Layout is ``<root>/<bucket>/<folder>/<name>`` with a hidden
    ``.<name>.meta`` record beside each object. Writes land in a temp file
    next to the target and are renamed into place, so readers only ever see
    complete objects.
    """

    def __init__(self, root_path: str = STORAGE_ROOT_PATH):
        self.root_path = root_path

    def _folder_path(self, bucket: str, folder: str) -> str:
        return os.path.join(self.root_path, bucket, folder)

    def _item_path(self, bucket: str, folder: str, name: str) -> str:
        return os.path.join(self._folder_path(bucket, folder), name)

    def _write(self, path: str, content: bytes) -> None:
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _read(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def _content_type(self, bucket: str, folder: str, name: str) -> str:
        path = self._item_path(bucket, folder, metadata_name(name))
        try:
            return orjson.loads(self._read(path))["content_type"]
        except FileNotFoundError:
            return guess_content_type(name)

    async def put_item(
        self,
        bucket: str,
        folder: str,
        name: str,
        content: bytes,
        size: int,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        stored = StoredObject(
            bucket=bucket,
            folder=folder,
            name=name,
            size=size,
            content_type=content_type or guess_content_type(name),
        )
        path = self._item_path(bucket, folder, name)
        await asyncio.to_thread(self._write, path, content)
        await asyncio.to_thread(
            self._write,
            self._item_path(bucket, folder, metadata_name(name)),
            orjson.dumps({"size": size, "content_type": stored.content_type}),
        )
        logger.debug(f"Stored {len(content)} bytes at {path}")
        return stored

    async def get_item(self, bucket: str, folder: str, name: str) -> StoredObject:
        path = self._item_path(bucket, folder, name)
        try:
            size = os.stat(path).st_size
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object {bucket}/{folder}/{name} not found") from e
        return StoredObject(
            bucket=bucket,
            folder=folder,
            name=name,
            size=size,
            content_type=self._content_type(bucket, folder, name),
        )

    async def get_item_content(self, item: StoredObject) -> bytes:
        path = self._item_path(item.bucket, item.folder, item.name)
        try:
            return await asyncio.to_thread(self._read, path)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object {item.key} not found") from e

    async def delete_item(self, bucket: str, folder: str, name: str) -> None:
        path = self._item_path(bucket, folder, name)
        try:
            os.remove(path)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object {bucket}/{folder}/{name} not found") from e
        metadata_path = self._item_path(bucket, folder, metadata_name(name))
        if os.path.exists(metadata_path):
            os.remove(metadata_path)

    async def delete_folder(self, bucket: str, folder: str) -> None:
        path = self._folder_path(bucket, folder)
        if not os.path.isdir(path):
            logger.info(f"Folder {bucket}/{folder} does not exist, nothing to delete")
            return
        await asyncio.to_thread(shutil.rmtree, path)
        logger.info(f"Deleted folder {bucket}/{folder}")

    async def list_items(self, bucket: str, folder: str) -> List[StoredObject]:
        path = self._folder_path(bucket, folder)
        if not os.path.isdir(path):
            return []

        items = []
        for entry in sorted(os.scandir(path), key=lambda e: e.name):
            if not entry.is_file() or is_hidden(entry.name):
                continue
            items.append(
                StoredObject(
                    bucket=bucket,
                    folder=folder,
                    name=entry.name,
                    size=entry.stat().st_size,
                    content_type=self._content_type(bucket, folder, entry.name),
                )
            )
        return items


def is_not_found_error(error: Exception) -> bool:
    """Whether a binding error reports a missing object rather than an outage."""
    message = str(error).lower()
    return any(marker in message for marker in NOT_FOUND_MARKERS)


class DaprObjectStore(ObjectStore):
    """Object store backed by a Dapr output binding.

    Keys are ``<bucket>/<folder>/<name>``; the binding itself decides where
    the bytes end up (S3, GCS, Azure Blob, local disk). Each object has a
    small ``.<name>.meta`` record so it can be described without
    downloading it.
    """

    OBJECT_CREATE_OPERATION = "create"
    OBJECT_GET_OPERATION = "get"
    OBJECT_LIST_OPERATION = "list"
    OBJECT_DELETE_OPERATION = "delete"

    def __init__(self, binding_name: str = OBJECT_STORE_NAME):
        self.binding_name = binding_name

    @staticmethod
    def _create_file_metadata(key: str) -> dict[str, str]:
        return {"key": key, "fileName": key, "blobName": key}

    @staticmethod
    def _create_list_metadata(prefix: str) -> dict[str, str]:
        return {"prefix": prefix, "fileName": prefix} if prefix else {}

    async def _invoke_dapr_binding(
        self,
        operation: str,
        metadata: dict,
        data: Union[bytes, str] = "",
    ) -> bytes:
        """Invoke ``operation`` on the configured binding and return the response body."""

        def invoke() -> bytes:
            with DaprClient(
                max_grpc_message_length=DAPR_MAX_GRPC_MESSAGE_LENGTH
            ) as client:
                response = client.invoke_binding(
                    binding_name=self.binding_name,
                    operation=operation,
                    data=data,
                    binding_metadata=metadata,
                )
                return response.data

        return await asyncio.to_thread(invoke)

    async def _list_keys(self, prefix: str) -> List[str]:
        data = json.dumps({"prefix": prefix}).encode("utf-8")
        response_data = await self._invoke_dapr_binding(
            operation=self.OBJECT_LIST_OPERATION,
            metadata=self._create_list_metadata(prefix),
            data=data,
        )
        if not response_data:
            return []

        file_list = orjson.loads(response_data)

        # Bindings disagree on the list response shape
        if isinstance(file_list, list):
            paths = file_list
        elif isinstance(file_list, dict) and "Contents" in file_list:
            paths = [item["Key"] for item in file_list["Contents"] if "Key" in item]
        elif isinstance(file_list, dict):
            paths = file_list.get("files") or file_list.get("keys") or []
        else:
            return []

        keys = []
        for path in paths:
            if not isinstance(path, str):
                logger.warning(f"Skipping non-string path: {path}")
                continue
            keys.append(path[path.find(prefix) :] if prefix in path else path)
        return keys

    async def _put_key(self, key: str, content: bytes, metadata: dict) -> None:
        try:
            await self._invoke_dapr_binding(
                operation=self.OBJECT_CREATE_OPERATION,
                metadata=metadata,
                data=content,
            )
        except Exception as e:
            logger.error(f"Error uploading {key} to object store: {str(e)}")
            raise

    async def _get_content(self, key: str) -> bytes:
        data = json.dumps({"key": key}).encode("utf-8")
        try:
            response_data = await self._invoke_dapr_binding(
                operation=self.OBJECT_GET_OPERATION,
                metadata=self._create_file_metadata(key),
                data=data,
            )
        except Exception as e:
            if is_not_found_error(e):
                raise ObjectNotFoundError(f"Object {key} not found") from e
            logger.error(f"Error getting file content for {key}: {str(e)}")
            raise
        if not response_data:
            raise ObjectNotFoundError(f"No data received for object {key}")
        return response_data

    async def _delete_key(self, key: str) -> None:
        try:
            await self._invoke_dapr_binding(
                operation=self.OBJECT_DELETE_OPERATION,
                metadata=self._create_file_metadata(key),
                data=json.dumps({"key": key}).encode("utf-8"),
            )
        except Exception as e:
            logger.error(f"Error deleting file {key}: {str(e)}")
            raise
        logger.debug(f"Successfully deleted file: {key}")

    async def _describe(self, bucket: str, folder: str, name: str) -> StoredObject:
        record = orjson.loads(
            await self._get_content(f"{bucket}/{folder}/{metadata_name(name)}")
        )
        return StoredObject(
            bucket=bucket,
            folder=folder,
            name=name,
            size=record["size"],
            content_type=record["content_type"],
        )

    async def put_item(
        self,
        bucket: str,
        folder: str,
        name: str,
        content: bytes,
        size: int,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        stored = StoredObject(
            bucket=bucket,
            folder=folder,
            name=name,
            size=size,
            content_type=content_type or guess_content_type(name),
        )
        await self._put_key(
            stored.key,
            content,
            {
                **self._create_file_metadata(stored.key),
                "contentType": stored.content_type,
            },
        )
        # Written last so that an object is only visible once complete
        metadata_key = f"{bucket}/{folder}/{metadata_name(name)}"
        await self._put_key(
            metadata_key,
            orjson.dumps({"size": size, "content_type": stored.content_type}),
            self._create_file_metadata(metadata_key),
        )
        logger.debug(f"Successfully uploaded {stored.key}")
        return stored

    async def get_item(self, bucket: str, folder: str, name: str) -> StoredObject:
        try:
            return await self._describe(bucket, folder, name)
        except ObjectNotFoundError as e:
            raise ObjectNotFoundError(f"Object {bucket}/{folder}/{name} not found") from e

    async def get_item_content(self, item: StoredObject) -> bytes:
        return await self._get_content(item.key)

    async def delete_item(self, bucket: str, folder: str, name: str) -> None:
        await self._delete_key(f"{bucket}/{folder}/{name}")
        await self._delete_key(f"{bucket}/{folder}/{metadata_name(name)}")

    async def delete_folder(self, bucket: str, folder: str) -> None:
        prefix = f"{bucket}/{folder}/"
        keys = await self._list_keys(prefix)
        if not keys:
            logger.info(f"No files found under prefix: {prefix}")
            return

        logger.info(f"Deleting {len(keys)} files under prefix: {prefix}")
        for key in keys:
            await self._delete_key(key)

    async def list_items(self, bucket: str, folder: str) -> List[StoredObject]:
        prefix = f"{bucket}/{folder}/"
        names = [
            key[len(prefix) :]
            for key in await self._list_keys(prefix)
            if key.startswith(prefix) and not is_hidden(key[len(prefix) :])
        ]
        items = []
        for name in names:
            try:
                items.append(await self._describe(bucket, folder, name))
            except ObjectNotFoundError:
                logger.warning(f"No metadata record for {prefix}{name}")
                items.append(
                    StoredObject(bucket, folder, name, 0, guess_content_type(name))
                )
        return items


def get_object_store(backend: str = OBJECT_STORE_BACKEND) -> ObjectStore:
    """Build the object store selected by ``backend`` (``local`` or ``dapr``)."""
    if backend == "local":
        return LocalObjectStore(STORAGE_ROOT_PATH)
    if backend == "dapr":
        return DaprObjectStore(OBJECT_STORE_NAME)
    raise ValueError(f"Unknown object store backend: {backend}")
