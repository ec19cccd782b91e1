import base64
import binascii
import logging
import os
from typing import Optional

import requests

from posterlink import config
from posterlink.errors import RelayNotConfigured, UploadRelayFailure

logger = logging.getLogger(__name__)


def split_data_url(image_data: str) -> str:
    """Return the base64 payload of a ``data:<type>;base64,<payload>`` URL."""
    header, sep, payload = (image_data or "").partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise UploadRelayFailure("Image data must be a base64 data URL.", status_code=400)
    payload = payload.strip()
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadRelayFailure("Image data is not valid base64.", status_code=400) from e
    return payload


class ImgbbService:
    """Forwards exported posters to imgbb and returns the hosted URL."""

    def __init__(self, api_key: Optional[str] = None, upload_url: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = None):
        self.api_key = api_key if api_key is not None else config.IMGBB_API_KEY
        self.upload_url = upload_url or config.IMGBB_UPLOAD_URL
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def upload(self, image_data: str, filename: str) -> str:
        if not self.configured:
            raise RelayNotConfigured()

        payload = split_data_url(image_data)
        name = os.path.splitext(os.path.basename(filename))[0]

        try:
            response = self.session.post(
                self.upload_url,
                params={"key": self.api_key},
                data={"image": payload, "name": name},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("imgbb request failed: %s", e)
            raise UploadRelayFailure() from e

        try:
            data = response.json()
        except ValueError:
            logger.warning("imgbb answered %s with a non-JSON body", response.status_code)
            raise UploadRelayFailure()

        if data.get("success"):
            url = (data.get("data") or {}).get("url")
            if url:
                return url

        message = (data.get("error") or {}).get("message") or "Error uploading the image to imgbb."
        logger.warning("imgbb rejected upload %r: %s", filename, message)
        raise UploadRelayFailure(message, status_code=400)
