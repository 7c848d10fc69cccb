"""
Run configuration: an explicit, immutable value resolved from CLI options,
an rclone-style INI file and the environment.
"""

import configparser
import logging
import os
from typing import NamedTuple, Optional
from urllib.parse import urlparse

from common.exceptions import ConfigurationError
from configuration import (
    AWS_ACCESS_KEY_ID,
    AWS_REGION,
    AWS_SECRET_ACCESS_KEY,
    DEFAULT_CONCURRENCY,
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_OBJECTS,
    DEFAULT_MAX_SECONDS,
)

logger = logging.getLogger(__name__)


class RunConfig(NamedTuple):
    """Everything a benchmark run needs, fixed for the whole run."""

    endpoint_url: str
    host: str
    use_ssl: bool
    access_key: str
    secret_key: str
    region: str
    bucket_name: str
    max_objects: int = DEFAULT_MAX_OBJECTS
    max_seconds: int = DEFAULT_MAX_SECONDS
    concurrency: int = DEFAULT_CONCURRENCY
    verbose: bool = False
    samples_dir: Optional[str] = None

    def describe(self) -> dict:
        """Configuration as a dict with the secret key masked."""
        values = self._asdict()
        if values["secret_key"]:
            values["secret_key"] = "*" * 8
        return values


def parse_endpoint(endpoint: str):
    """Split an endpoint into (endpoint_url, host, use_ssl).

    An endpoint without a scheme is treated as HTTPS.
    """
    endpoint = endpoint.strip()
    if not endpoint:
        raise ConfigurationError("Endpoint is required")
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"

    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid endpoint: {endpoint}")

    endpoint_url = f"{parsed.scheme}://{parsed.netloc}"
    return endpoint_url, parsed.netloc, parsed.scheme == "https"


def read_section(config_file: str, section_name: str) -> configparser.SectionProxy:
    """Load one section of an rclone-style INI file."""
    if not os.path.isfile(config_file):
        raise ConfigurationError(f"Configuration file not found: {config_file}")

    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(config_file, encoding="utf-8") as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        raise ConfigurationError(f"Failed to read {config_file}: {e}") from e

    if not parser.has_section(section_name):
        raise ConfigurationError(f"Section '{section_name}' not found in {config_file}")
    return parser[section_name]


def validate_limits(max_seconds: int, concurrency: int) -> None:
    """Reject limit values that have no meaning.

    A duration limit of exactly zero would stop the run before anything is
    admitted, so it is refused; negative values mean unlimited.
    """
    if max_seconds == 0:
        raise ConfigurationError("Duration limit of zero seconds is not allowed; use a negative value for no limit")
    if concurrency < 1:
        raise ConfigurationError(f"Concurrency must be at least 1, got {concurrency}")


def load_config(
    bucket_name: str,
    section_name: str,
    config_file: Optional[str] = None,
    max_objects: int = DEFAULT_MAX_OBJECTS,
    max_seconds: int = DEFAULT_MAX_SECONDS,
    concurrency: int = DEFAULT_CONCURRENCY,
    verbose: bool = False,
    samples_dir: Optional[str] = None,
) -> RunConfig:
    """Resolve a RunConfig.

    Endpoint and credentials come from the INI section; credentials and
    region missing there fall back to the AWS_* environment variables.

    Raises:
        ConfigurationError: If any required value is missing or invalid
    """
    if not bucket_name:
        raise ConfigurationError("Bucket name is required")
    if not section_name:
        raise ConfigurationError("Section name is required")
    validate_limits(max_seconds, concurrency)

    config_file = config_file or DEFAULT_CONFIG_FILE
    logger.info(f"Loading configuration from {config_file}")
    section = read_section(config_file, section_name)

    endpoint_url, host, use_ssl = parse_endpoint(section.get("endpoint", ""))

    access_key = section.get("access_key_id", "") or AWS_ACCESS_KEY_ID
    secret_key = section.get("secret_access_key", "") or AWS_SECRET_ACCESS_KEY
    if not access_key or not secret_key:
        raise ConfigurationError(f"No credentials found in section '{section_name}' or environment")

    return RunConfig(
        endpoint_url=endpoint_url,
        host=host,
        use_ssl=use_ssl,
        access_key=access_key,
        secret_key=secret_key,
        region=section.get("region", "") or AWS_REGION,
        bucket_name=bucket_name,
        max_objects=max_objects,
        max_seconds=max_seconds,
        concurrency=concurrency,
        verbose=verbose,
        samples_dir=samples_dir,
    )
