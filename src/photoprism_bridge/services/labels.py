"""Label assignment for PhotoPrism photos."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import httpx

from photoprism_bridge.adapters.photoprism_client import PhotoPrismClient
from photoprism_bridge.domain.photos import Label, PhotoUID
from photoprism_bridge.errors import AddLabelFailed, MalformedResponse, ProtocolError

_logger = logging.getLogger(__name__)


@dataclass
class LabelService:
    """Add labels to photos that were already located."""

    client: PhotoPrismClient

    async def add_label(self, photo_uid: PhotoUID, name: str) -> None:
        """Attach one label to a photo."""
        response = await self.client.send(
            "POST",
            f"/photos/{photo_uid.value}/label",
            json=Label(name=name).to_payload(),
        )
        if response.status_code != httpx.codes.OK:
            _logger.warning(
                "Adding label %s to %s failed (%s): %s",
                name,
                photo_uid,
                response.status_code,
                response.text,
            )
            raise AddLabelFailed(label=name, photo_uid=photo_uid.value)

    async def add_labels(self, photo_uid: PhotoUID, names: Iterable[str]) -> None:
        """Attach labels one request at a time, stopping at the first failure."""
        for name in names:
            await self.add_label(photo_uid, name)

    async def list_labels(self, photo_uid: PhotoUID) -> list[str]:
        """Return the label names currently attached to a photo."""
        response = await self.client.send("GET", f"/photos/{photo_uid.value}")
        if response.status_code != httpx.codes.OK:
            raise ProtocolError(
                f"Fetching photo {photo_uid} failed ({response.status_code})"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                "Photo details response is not JSON", response.text
            ) from exc
        labels = payload.get("Labels") if isinstance(payload, dict) else None
        if labels is None:
            return []
        if not isinstance(labels, list):
            raise MalformedResponse("Labels is not a list", payload)
        names: list[str] = []
        for entry in labels:
            label = entry.get("Label") if isinstance(entry, dict) else None
            name = label.get("Name") if isinstance(label, dict) else None
            if isinstance(name, str):
                names.append(name)
        return names
