"""
Factory module for creating the storage system of a run.
"""

import logging

# CRITICAL: Suppress boto3/botocore logging BEFORE importing any boto3-related modules
logging.getLogger('botocore').setLevel(logging.CRITICAL)
logging.getLogger('botocore.credentials').setLevel(logging.CRITICAL)
logging.getLogger('boto3').setLevel(logging.CRITICAL)
logging.getLogger('aioboto3').setLevel(logging.CRITICAL)
logging.getLogger('aiobotocore').setLevel(logging.CRITICAL)
logging.getLogger('urllib3').setLevel(logging.CRITICAL)
logging.getLogger('s3transfer').setLevel(logging.CRITICAL)

from systems.base import ObjectStorageSystem
from configuration import MAX_POOL_CONNECTIONS

logger = logging.getLogger(__name__)


def create_storage_system(config) -> ObjectStorageSystem:
    """Create the storage system described by a run configuration.

    The connection pool is sized to at least the dispatcher concurrency so
    every pool worker can hold a connection.

    Args:
        config: Resolved RunConfig

    Returns:
        ObjectStorageSystem bound to the configured endpoint and bucket
    """
    credentials = {
        "access_key_id": config.access_key,
        "secret_access_key": config.secret_key,
        "region_name": config.region,
    }
    pool_size = max(config.concurrency, MAX_POOL_CONNECTIONS)
    logger.debug(f"Creating storage system for {config.endpoint_url} with pool size {pool_size}")
    return ObjectStorageSystem(
        endpoint=config.endpoint_url,
        bucket_name=config.bucket_name,
        credentials=credentials,
        max_pool_connections=pool_size,
    )
