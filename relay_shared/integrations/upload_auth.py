"""
Upload Authorization.

Issues short-lived signed credentials that let clients upload media
straight to ImageKit. The relay never sees the file itself.

Signing is done by the ImageKit SDK; this module only chooses the
expiry and the object key, and shapes the response for the client.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from imagekitio import ImageKit

from relay_shared.config.logging import get_logger
from relay_shared.config.settings import Settings

logger = get_logger(__name__)


class UploadAuthError(Exception):
    """Upload credentials could not be produced."""


@dataclass(frozen=True)
class AuthenticationParameters:
    """Token, signature and expiry handed to the client."""

    token: str
    expire: int
    signature: str


class UploadAuthorizer(Protocol):
    """Narrow interface to the credential service."""

    def get_upload_authorization(self) -> dict[str, Any]: ...


class ImageKitUploadAuthorizer:
    """
    Produces signed upload credentials through the ImageKit SDK.

    The SDK client is built on first use, so a relay without upload keys
    still starts and only the upload route fails.

    Usage:
        authorizer = ImageKitUploadAuthorizer.from_settings(settings)
        auth = authorizer.get_upload_authorization()
        # {"publicKey", "token", "signature", "expire", "key", "fileName", "folder"}
    """

    def __init__(
        self,
        public_key: str,
        private_key: str,
        url_endpoint: str,
        folder: str,
        token_ttl: int = 30 * 60,
        client: ImageKit | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._public_key = public_key
        self._private_key = private_key
        self._url_endpoint = url_endpoint
        self._folder = folder.strip("/")
        self._token_ttl = token_ttl
        self._client = client
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, client: ImageKit | None = None
    ) -> "ImageKitUploadAuthorizer":
        return cls(
            public_key=settings.upload_public_key,
            private_key=settings.upload_private_key,
            url_endpoint=settings.upload_url_endpoint,
            folder=settings.upload_folder,
            token_ttl=settings.upload_token_ttl,
            client=client,
        )

    @property
    def client(self) -> ImageKit:
        """
        Raises:
            UploadAuthError: If the keys are missing or rejected by the SDK.
        """
        if self._client is None:
            if not self._private_key:
                raise UploadAuthError("Upload private key is not configured")
            try:
                self._client = ImageKit(
                    private_key=self._private_key,
                    public_key=self._public_key,
                    url_endpoint=self._url_endpoint,
                )
            except (TypeError, ValueError) as e:
                raise UploadAuthError(f"ImageKit client could not be created: {e}") from e
        return self._client

    def get_authentication_parameters(self) -> AuthenticationParameters:
        """
        Raises:
            UploadAuthError: If no client can be built or signing fails.
        """
        client = self.client
        expire = int(self._clock()) + self._token_ttl
        try:
            params = client.get_authentication_parameters(expire=expire)
        except Exception as e:
            raise UploadAuthError(f"ImageKit signing failed: {e}") from e

        return AuthenticationParameters(
            token=params["token"],
            expire=int(params["expire"]),
            signature=params["signature"],
        )

    def new_file_name(self) -> str:
        """``<epoch millis>_<0..999>.jpg``, unique enough per folder."""
        return f"{int(self._clock() * 1000)}_{random.randint(0, 999)}.jpg"

    def get_upload_authorization(self) -> dict[str, Any]:
        """
        Credentials for one upload.

        Raises:
            UploadAuthError: If no private key is configured or signing fails.
        """
        params = self.get_authentication_parameters()
        file_name = self.new_file_name()
        key = f"{self._folder}/{file_name}"

        logger.info("Upload authorization issued", key=key, expire=params.expire)
        return {
            "publicKey": self._public_key,
            "token": params.token,
            "signature": params.signature,
            "expire": params.expire,
            "key": key,
            "fileName": file_name,
            "folder": self._folder,
        }


def describe_credentials(settings: Settings) -> dict[str, Any]:
    """Which upload credentials are set, without revealing them."""
    return {
        "UPLOAD_PUBLIC_KEY_SET": bool(settings.upload_public_key),
        "UPLOAD_PRIVATE_KEY_SET": bool(settings.upload_private_key),
        "UPLOAD_URL_ENDPOINT_SET": bool(settings.upload_url_endpoint),
        "UPLOAD_PUBLIC_KEY_LENGTH": len(settings.upload_public_key),
        "UPLOAD_PRIVATE_KEY_LENGTH": len(settings.upload_private_key),
    }
