"""
Configuration constants for the s3tonowhere download benchmark.

This module contains all tunable parameters including:
- Configuration file location and default limits
- Transport timeouts and connection pool sizing
- Dispatcher and collector parameters
- Statistics settings and unit constants
"""

import os
from typing import Tuple

# =============================================================================
# CONFIGURATION FILE
# =============================================================================

# rclone-style INI file holding endpoint and credentials per section
DEFAULT_CONFIG_FILE: str = os.getenv("S3TONOWHERE_CONFIG", "rclone.conf")

# Fallback credentials when the INI section does not provide them
AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
AWS_REGION: str = os.getenv("AWS_REGION", "")

# =============================================================================
# RUN LIMITS
# =============================================================================

# A negative value means no limit
DEFAULT_MAX_OBJECTS: int = -1
DEFAULT_MAX_SECONDS: int = -1

# =============================================================================
# TRANSPORT
# =============================================================================

CONNECT_TIMEOUT_SECONDS: int = 60
READ_TIMEOUT_SECONDS: int = 90  # Idle time allowed between received chunks
MAX_POOL_CONNECTIONS: int = 256

# Keys requested per listing page (<1000 causes more fetches but less memory)
LIST_PAGE_SIZE: int = 3000

# Size of each read from an object body
DOWNLOAD_CHUNK_SIZE: int = 1024 * 1024

# =============================================================================
# DISPATCHER / COLLECTOR
# =============================================================================

DEFAULT_CONCURRENCY: int = int(os.getenv("S3TONOWHERE_CONCURRENCY", "64"))
PROGRESS_INTERVAL_SECONDS: float = 2.0  # Minimum wall time between progress lines
CONNECTION_LOG_INTERVAL: int = 1000  # Log open connections every N dispatches

# =============================================================================
# HTTP STATUS CODES
# =============================================================================

HTTP_SUCCESS_STATUS: int = 200
HTTP_ERROR_STATUS: int = 500

# =============================================================================
# STATISTICS
# =============================================================================

PERCENTILES: Tuple[float, ...] = (0.50, 0.90, 0.95, 0.99)
SIZE_UNIT: str = "B"
RATE_UNIT: str = "B/s"

# =============================================================================
# UNIT CONSTANTS
# =============================================================================

BITS_PER_BYTE: int = 8
BYTES_PER_KB: int = 1000  # SI units, matching the progress output
GIGABITS_PER_GB: int = 1_000_000_000  # 1 Gigabit = 1,000,000,000 bits

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_SAMPLES_PREFIX: str = "samples"
