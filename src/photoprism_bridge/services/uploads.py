"""Upload local files to PhotoPrism and resolve their photo UID."""

import asyncio
import hashlib
import logging
import secrets
import string
from dataclasses import dataclass
from pathlib import Path

import httpx

from photoprism_bridge.adapters.photoprism_client import PhotoPrismClient
from photoprism_bridge.domain.photos import PhotoUID
from photoprism_bridge.errors import (
    IndexingFailed,
    MalformedResponse,
    PhotoNotFoundByHash,
    ProtocolError,
    UploadFailed,
)

UNKNOWN_EXTENSION = "unknown"
UPLOAD_TOKEN_LENGTH = 12
HASH_CHUNK_SIZE = 64 * 1024

_TOKEN_ALPHABET = string.ascii_letters + string.digits

_logger = logging.getLogger(__name__)


@dataclass
class UploadService:
    """Upload, index and locate photos on a PhotoPrism server.

    PhotoPrism does not return the photo UID from the upload endpoints, so the
    photo is looked up afterwards by the SHA-1 of the local file.
    """

    client: PhotoPrismClient
    search_attempts: int = 1
    search_retry_delay_seconds: float = 1.0

    async def upload_and_locate(self, file_path: Path | str) -> PhotoUID:
        """Upload a file and return the UID PhotoPrism assigned to it."""
        path = Path(file_path)
        session = await self.client.current_session()
        upload_path = f"/users/{session.user_uid}/upload/{generate_upload_token()}"

        with path.open("rb") as file:
            upload_response = await self.client.send(
                "POST",
                upload_path,
                files={"files": (upload_file_name(path), file)},
            )
        if upload_response.status_code != httpx.codes.OK:
            raise UploadFailed(file=str(path), details=upload_response.text)

        index_response = await self.client.send(
            "PUT", upload_path, json={"albums": []}
        )
        if index_response.status_code != httpx.codes.OK:
            raise IndexingFailed(file=str(path), details=index_response.text)

        file_hash = await asyncio.to_thread(calculate_sha1, path)
        _logger.debug("Uploaded %s, sha1=%s", path, file_hash)
        return await self._locate(file_hash)

    async def _locate(self, file_hash: str) -> PhotoUID:
        attempt = 0
        while True:
            attempt += 1
            photo_uid = await self.search_by_hash(file_hash)
            if photo_uid is not None:
                return photo_uid
            if attempt >= self.search_attempts:
                _logger.warning(
                    "Photo with hash %s not found after indexing "
                    "(attempt %s/%s); backend indexing may be delayed",
                    file_hash,
                    attempt,
                    self.search_attempts,
                )
                raise PhotoNotFoundByHash(file_hash)
            await asyncio.sleep(self.search_retry_delay_seconds)

    async def search_by_hash(self, file_hash: str) -> PhotoUID | None:
        """Return the newest photo whose file hash matches, if any."""
        response = await self.client.send(
            "GET",
            "/photos",
            params={
                "q": f"quality:-100 hash:{file_hash}",
                "count": 1,
                "order": "newest",
            },
        )
        if response.status_code != httpx.codes.OK:
            raise ProtocolError(
                f"PhotoPrism photo search failed ({response.status_code}): "
                f"{response.text}"
            )
        try:
            photos = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                "Photo search response is not JSON", response.text
            ) from exc
        if not isinstance(photos, list):
            raise MalformedResponse("Photo search response is not a list", photos)
        if not photos:
            return None
        first = photos[0]
        uid = first.get("UID") if isinstance(first, dict) else None
        if not isinstance(uid, str):
            raise MalformedResponse("UID is missing in photo search result", first)
        return PhotoUID(uid)


def generate_upload_token() -> str:
    """Return a random token naming one upload batch."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(UPLOAD_TOKEN_LENGTH))


def upload_file_name(path: Path) -> str:
    """Return a synthetic file name that keeps only the extension."""
    extension = path.suffix.lstrip(".") or UNKNOWN_EXTENSION
    return f"{UNKNOWN_EXTENSION}.{extension}"


def calculate_sha1(path: Path) -> str:
    """Hash a file in fixed-size chunks."""
    digest = hashlib.sha1()  # noqa: S324
    with path.open("rb") as file:
        while chunk := file.read(HASH_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()
