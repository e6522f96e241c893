from __future__ import annotations
"""Remote listing and deletion against an S3-compatible store."""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterator

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import ListedObject, ObjectPage
from .settings import SweepSettings

logger = logging.getLogger(__name__)


class ListingError(RuntimeError):
    """Raised when a listing page cannot be fetched."""

    def __init__(self, page_number: int, cause: Exception):
        super().__init__(f"Can not list page {page_number}: {cause}")
        self.page_number = page_number
        self.cause = cause


class DeletionError(RuntimeError):
    """Raised when a single object cannot be deleted."""

    def __init__(self, key: str, cause: Exception):
        super().__init__(f"Can not delete {key}: {cause}")
        self.key = key
        self.cause = cause


class S3SweeperService:
    """Wraps the two remote operations a sweep needs."""

    def __init__(
        self,
        settings: SweepSettings,
        client_factory: Callable[..., object] | None = None,
    ):
        self._settings = settings
        self._client_factory = client_factory or boto3.client
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        config = Config(signature_version="s3v4")
        return self._client_factory(
            "s3",
            endpoint_url=self._settings.endpoint_url,
            region_name=self._settings.region,
            aws_access_key_id=self._settings.access_key,
            aws_secret_access_key=self._settings.secret_key,
            config=config,
        )

    def iter_pages(self, bucket: str, *, prefix: str = "", page_size: int = 100) -> Iterator[ObjectPage]:
        """Yield listing pages lazily until the store reports no more.

        Raises:
            ListingError: when a page cannot be fetched; pages already yielded
                stay valid.
        """
        request_token: str | None = None
        page_number = 1

        while True:
            list_params = {"Bucket": bucket, "MaxKeys": page_size}
            if prefix:
                list_params["Prefix"] = prefix
            if request_token:
                list_params["ContinuationToken"] = request_token

            try:
                response = self.client.list_objects_v2(**list_params)
            except (ClientError, BotoCoreError) as exc:
                raise ListingError(page_number, exc) from exc

            objects = [
                ListedObject(key=entry["Key"], last_modified=_to_utc_seconds(entry["LastModified"]))
                for entry in response.get("Contents", [])
                if "Key" in entry and entry.get("LastModified") is not None
            ]
            logger.debug("Fetched page %d with %d objects", page_number, len(objects))
            yield ObjectPage(number=page_number, objects=objects)

            response_token = response.get("NextContinuationToken")
            if not response.get("IsTruncated", False) or not response_token:
                return
            request_token = response_token
            page_number += 1

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object.

        Raises:
            DeletionError: when the store rejects or fails the request.
        """
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise DeletionError(key, exc) from exc


def _to_utc_seconds(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)
