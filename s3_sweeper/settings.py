from __future__ import annotations
"""Runtime configuration loaded from the environment."""

from dataclasses import dataclass
import os
from typing import Mapping

import keyring
from keyring.errors import KeyringError

DEFAULT_PAGE_SIZE = 100
DEFAULT_CONCURRENCY = 10

ENV_BUCKET = "S3_BUCKET"
ENV_REGION = "S3_REGION"
ENV_ENDPOINT = "S3_ENDPOINT"
ENV_ACCESS_KEY = "S3_ACCESS_KEY_ID"
ENV_SECRET_KEY = "S3_ACCESS_KEY_SECRET"


class ConfigurationError(RuntimeError):
    """Raised when required runtime settings are missing or invalid."""


@dataclass(frozen=True)
class SweepSettings:
    """Bucket identity and credentials for one run."""

    bucket: str
    region: str
    endpoint_url: str
    access_key: str
    secret_key: str


class KeychainStore:
    """Looks up secret keys saved in the OS keychain."""

    def __init__(self, service_name: str = "s3-sweeper"):
        self._service_name = service_name

    def get_secret(self, access_key: str) -> str:
        if not access_key:
            return ""
        try:
            return keyring.get_password(self._service_name, access_key) or ""
        except KeyringError:
            return ""


class SettingsLoader:
    """Builds :class:`SweepSettings` from environment variables.

    When ``S3_ACCESS_KEY_SECRET`` is not set, the secret is read from the
    keychain entry stored under the access key id.
    """

    def __init__(self, keychain: KeychainStore | None = None):
        self._keychain = keychain or KeychainStore()

    def load(self, environ: Mapping[str, str] | None = None) -> SweepSettings:
        if environ is None:
            environ = os.environ

        def read(name: str) -> str:
            return (environ.get(name) or "").strip()

        values = {
            ENV_BUCKET: read(ENV_BUCKET),
            ENV_REGION: read(ENV_REGION),
            ENV_ENDPOINT: read(ENV_ENDPOINT),
            ENV_ACCESS_KEY: read(ENV_ACCESS_KEY),
            ENV_SECRET_KEY: read(ENV_SECRET_KEY),
        }
        if not values[ENV_SECRET_KEY]:
            values[ENV_SECRET_KEY] = self._keychain.get_secret(values[ENV_ACCESS_KEY])

        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigurationError(f"missing required settings: {', '.join(missing)}")

        return SweepSettings(
            bucket=values[ENV_BUCKET],
            region=values[ENV_REGION],
            endpoint_url=values[ENV_ENDPOINT],
            access_key=values[ENV_ACCESS_KEY],
            secret_key=values[ENV_SECRET_KEY],
        )


def sanitize_positive_int(value: object, default: int) -> int:
    """Return ``value`` as a positive int, or ``default`` when it is not one."""

    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return number
