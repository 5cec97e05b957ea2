"""
Solo Parent Backend: Blob Storage
==================================

What:  Image storage for ID cards and announcement pictures.
How:   `BlobStorage` is the interface the services depend on;
       `CloudinaryStorage` implements it against Cloudinary's signed upload
       REST endpoint with httpx.

Upload request (multipart form):
    file       base64 data URI sent by the client
    folder     e.g. id_cards/<codeId>, announcements
    public_id  optional; with overwrite=true re-uploads replace the asset
    timestamp, api_key, signature
               signature = sha1("k1=v1&k2=v2..." sorted by key + api_secret)

Resilience:
    Transport errors (connect/read timeouts, resets) are retried by tenacity
    with exponential backoff. Any failure that survives the retries, and any
    4xx/5xx answer, becomes BlobStorageError (502).
"""

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from soloparent.config import settings
from soloparent.exceptions import BlobStorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedBlob:
    secure_url: str
    public_id: Optional[str] = None


class BlobStorage(ABC):
    """
    Abstract image store.

    Implementations must be safe to call concurrently from request handlers
    and must raise BlobStorageError (never a transport-specific exception).
    """

    @abstractmethod
    async def upload(
        self, data_uri: str, folder: str, public_id: Optional[str] = None
    ) -> UploadedBlob:
        """
        Store one image.

        Args:
            data_uri:  "data:image/png;base64,..." as sent by the client.
            folder:    Logical folder for the asset.
            public_id: Stable name inside the folder (optional).

        Returns:
            UploadedBlob with the public HTTPS URL.

        Raises:
            BlobStorageError: storage unreachable, misconfigured, or rejected the upload.
        """
        ...


class CloudinaryStorage(BlobStorage):
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        upload_url: str = "https://api.cloudinary.com/v1_1",
        timeout_seconds: int = 30,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.upload_url = upload_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls) -> "CloudinaryStorage":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            upload_url=settings.cloudinary_upload_url,
            timeout_seconds=settings.blob_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: Dict[str, str]) -> str:
        payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1((payload + self.api_secret).encode("utf-8")).hexdigest()

    async def upload(
        self, data_uri: str, folder: str, public_id: Optional[str] = None
    ) -> UploadedBlob:
        if not self.configured:
            raise BlobStorageError("Image storage is not configured")

        params = {
            "folder": folder,
            "overwrite": "true",
            "timestamp": str(int(time.time())),
        }
        if public_id:
            params["public_id"] = public_id

        form = dict(params)
        form["api_key"] = self.api_key
        form["signature"] = self.sign(params)
        form["file"] = data_uri

        url = f"{self.upload_url}/{self.cloud_name}/image/upload"
        try:
            response = await self._post(url, form)
        except httpx.HTTPError as e:
            logger.error("Image upload to %s failed: %s", folder, str(e))
            raise BlobStorageError(
                message="Image upload failed. Please try again.",
                context={"folder": folder, "error_type": type(e).__name__},
            )

        if response.status_code >= 400:
            logger.error(
                "Image storage rejected upload to %s: HTTP %d %s",
                folder,
                response.status_code,
                response.text[:200],
            )
            raise BlobStorageError(
                message="Image upload was rejected by the storage service.",
                context={"folder": folder, "status_code": response.status_code},
            )

        body = response.json()
        secure_url = body.get("secure_url")
        if not secure_url:
            raise BlobStorageError(
                message="Image storage returned no URL.",
                context={"folder": folder},
            )
        logger.info("Uploaded image to %s (%s)", folder, body.get("public_id"))
        return UploadedBlob(secure_url=secure_url, public_id=body.get("public_id"))

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.blob_retry_attempts),
        wait=wait_exponential_jitter(initial=1, max=8, jitter=1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _post(self, url: str, form: Dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, data=form)


blob_storage: BlobStorage = CloudinaryStorage.from_settings()
