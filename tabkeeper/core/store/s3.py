"""S3 key-value store.

Stores each key as a JSON object in S3 with optional namespace prefix::

    s3://{bucket}/{prefix}/store/{key}.json

When prefix is None, the path collapses to::

    s3://{bucket}/store/{key}.json

Uses ``anyio.to_thread.run_sync`` to run boto3 calls in the thread pool,
matching the same async pattern as LocalKeyValueStore.  A single PUT replaces
the whole object, so readers never see a partial value.
"""

from __future__ import annotations

from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tabkeeper.core.store.base import StorageUnavailableError


def _create_s3_client(
    endpoint_url: str,
    access_key: str,
    secret_key: str,
    region: str | None = None,
    path_style: bool = False,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: S3 endpoint URL.
        access_key: AWS access key ID.
        secret_key: AWS secret access key.
        region: AWS region name (optional, some endpoints require it).
        path_style: Use path-style addressing instead of virtual-hosted.
            Required by MinIO and some S3-compatible services.
    """
    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path" if path_style else "auto"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        config=config,
    )


class S3KeyValueStore:
    """S3 implementation of the KeyValueStore protocol.

    Layout::

        s3://{bucket}/{key_prefix}store/{key}.json

    Where ``key_prefix`` is ``{prefix}/`` if prefix is set, or empty string.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        prefix: str | None = None,
        region: str | None = None,
        path_style: bool = False,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or _create_s3_client(
            endpoint_url, access_key, secret_key, region=region, path_style=path_style
        )
        self._key_prefix = f"{prefix}/store/" if prefix else "store/"

    def object_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}.json"

    async def get(self, key: str) -> str | None:
        return await to_thread.run_sync(partial(self._get_object_body, self.object_key(key)))

    async def set(self, key: str, value: str) -> None:
        put = partial(
            self._client.put_object,
            Bucket=self._bucket,
            Key=self.object_key(key),
            Body=value.encode("utf-8"),
            ContentType="application/json",
        )
        try:
            await to_thread.run_sync(put)
        except (BotoCoreError, ClientError) as exc:
            msg = f"Cannot write s3://{self._bucket}/{self.object_key(key)}: {exc}"
            raise StorageUnavailableError(msg) from exc

    async def delete(self, key: str) -> None:
        # S3 delete is idempotent -- no error if key doesn't exist.
        remove = partial(self._client.delete_object, Bucket=self._bucket, Key=self.object_key(key))
        try:
            await to_thread.run_sync(remove)
        except (BotoCoreError, ClientError) as exc:
            msg = f"Cannot delete s3://{self._bucket}/{self.object_key(key)}: {exc}"
            raise StorageUnavailableError(msg) from exc

    def _get_object_body(self, object_key: str) -> str | None:
        """Get object and read body in the same thread.

        Reading the streaming body must happen in the same thread as
        get_object to avoid issues with chunked transfer encoding.
        """
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=object_key)
            return resp["Body"].read().decode("utf-8")
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            msg = f"Cannot read s3://{self._bucket}/{object_key}: {exc}"
            raise StorageUnavailableError(msg) from exc
        except BotoCoreError as exc:
            msg = f"Cannot read s3://{self._bucket}/{object_key}: {exc}"
            raise StorageUnavailableError(msg) from exc
