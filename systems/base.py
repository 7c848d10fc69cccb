"""
Async S3-compatible object storage system used by the download benchmark.

The benchmark core only relies on two capabilities exposed here:
listing the keys of the bucket and opening a streamed read of one object.
Protocol, authentication and transport concerns stay inside this module.
"""

import asyncio
import logging
import os
from typing import AsyncIterator, Optional

import aioboto3
import psutil
from aiohttp import ClientError as AiohttpClientError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from common.exceptions import ListingError, OpenRetrievalError, ReadRetrievalError
from configuration import (
    CONNECT_TIMEOUT_SECONDS,
    HTTP_ERROR_STATUS,
    HTTP_SUCCESS_STATUS,
    LIST_PAGE_SIZE,
    MAX_POOL_CONNECTIONS,
    READ_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


def _status_from_client_error(error: ClientError) -> int:
    """Extract the HTTP status code carried by a botocore ClientError."""
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status or HTTP_ERROR_STATUS


class ObjectStream:
    """Streamed body of one object, translating transport failures into ReadRetrievalError."""

    def __init__(self, key: str, body, status_code: int = HTTP_SUCCESS_STATUS):
        self.key = key
        self.status_code = status_code
        self._body = body

    async def read(self, amt: int) -> bytes:
        """Read up to amt bytes. Returns b'' at the end of the object."""
        try:
            return await self._body.read(amt)
        except ClientError as e:
            raise ReadRetrievalError(
                f"Read of {self.key} failed: {e}", self.key, _status_from_client_error(e)
            ) from e
        except (AiohttpClientError, BotoCoreError, asyncio.TimeoutError, OSError) as e:
            raise ReadRetrievalError(
                f"Read of {self.key} failed: {type(e).__name__}: {e}", self.key, HTTP_ERROR_STATUS
            ) from e

    def close(self) -> None:
        self._body.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ObjectStorageSystem:
    """Async S3-compatible storage with a shared connection pool."""

    def __init__(
        self,
        endpoint: str,
        bucket_name: str,
        credentials: dict,
        max_pool_connections: int = MAX_POOL_CONNECTIONS,
    ):
        self.endpoint = endpoint
        self.bucket_name = bucket_name
        self.credentials = credentials

        # Single source of truth for config
        self._config = self._create_config(max_pool_connections)

        self.session = aioboto3.Session(
            aws_access_key_id=credentials.get("access_key_id"),
            aws_secret_access_key=credentials.get("secret_access_key"),
            region_name=credentials.get("region_name") or None,
        )

        self.client = None

        logger.info(
            f"Initialized async storage for {endpoint} "
            f"(bucket={bucket_name}, max_pool_connections={self._config.max_pool_connections})"
        )

    def _create_config(self, max_pool_connections: int) -> Config:
        """Create the botocore config shared by every request."""
        return Config(
            max_pool_connections=max_pool_connections,
            connect_timeout=CONNECT_TIMEOUT_SECONDS,
            read_timeout=READ_TIMEOUT_SECONDS,
            retries={
                'max_attempts': 1,  # Failed objects are reported, never retried
                'mode': 'standard',
            },
            s3={
                'addressing_style': 'path',  # S3-compatible endpoints
            },
            tcp_keepalive=True,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self.client = await self.session.client(
            "s3",
            endpoint_url=self.endpoint,
            config=self._config,
        ).__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.client:
            await self.client.__aexit__(exc_type, exc_val, exc_tb)
            self.client = None

    def _require_client(self):
        if not self.client:
            raise RuntimeError("Storage client not initialized. Use async context manager.")
        return self.client

    async def list_keys(self) -> AsyncIterator[str]:
        """Lazily list every key of the bucket, page by page.

        Raises:
            ListingError: If any page of the listing fails
        """
        client = self._require_client()
        paginator = client.get_paginator("list_objects_v2")
        try:
            async for page in paginator.paginate(
                Bucket=self.bucket_name,
                PaginationConfig={"PageSize": LIST_PAGE_SIZE},
            ):
                for entry in page.get("Contents", []):
                    yield entry["Key"]
        except (ClientError, BotoCoreError, AiohttpClientError, asyncio.TimeoutError, OSError) as e:
            raise ListingError(f"Listing bucket {self.bucket_name} failed: {e}") from e

    async def open_object(self, key: str) -> ObjectStream:
        """Open a streamed read of one object.

        Raises:
            OpenRetrievalError: If the request fails before the body is available
        """
        client = self._require_client()
        try:
            response = await client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            raise OpenRetrievalError(
                f"Open of {key} failed: {e}", key, _status_from_client_error(e)
            ) from e
        except (BotoCoreError, AiohttpClientError, asyncio.TimeoutError, OSError) as e:
            raise OpenRetrievalError(
                f"Open of {key} failed: {type(e).__name__}: {e}", key, HTTP_ERROR_STATUS
            ) from e

        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode", HTTP_SUCCESS_STATUS)
        return ObjectStream(key, response["Body"], status)

    def get_connection_count(self) -> int:
        """Get number of established connections for this process."""
        try:
            process = psutil.Process(os.getpid())
            connections = process.net_connections(kind='inet')
            established = [c for c in connections if c.status == 'ESTABLISHED']
            return len(established)
        except psutil.Error as e:
            logger.debug(f"Failed to get connection count: {e}")
            return -1
