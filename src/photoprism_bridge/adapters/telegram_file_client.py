"""Telegram file download client."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from photoprism_bridge.adapters.telegram_client import DEFAULT_TELEGRAM_API_SERVER

UNKNOWN_EXTENSION = "unknown"


class TelegramFileClient(Protocol):
    """Interface for downloading Telegram files."""

    async def download_file(self, file_id: str, working_dir: Path) -> Path:
        """Make a Telegram file available on disk and return its path."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Telegram file client using httpx."""

    bot_token: str
    http_client: httpx.AsyncClient
    api_server: str = DEFAULT_TELEGRAM_API_SERVER

    @classmethod
    def create(
        cls, bot_token: str, api_server: str = DEFAULT_TELEGRAM_API_SERVER
    ) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(
            bot_token=bot_token,
            http_client=httpx.AsyncClient(),
            api_server=api_server,
        )

    async def download_file(self, file_id: str, working_dir: Path) -> Path:
        """Resolve a file via getFile and stream it to disk.

        A Bot API server running in local mode returns an absolute path and
        has already stored the file, so nothing is downloaded in that case.
        A partly written download is removed before the error propagates.
        """
        server = self.api_server.rstrip("/")
        response = await self.http_client.get(
            f"{server}/bot{self.bot_token}/getFile",
            params={"file_id": file_id},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise RuntimeError("Telegram getFile failed")
        file_path = payload["result"]["file_path"]
        remote_path = Path(file_path)
        if remote_path.is_absolute():
            return remote_path

        extension = remote_path.suffix.lstrip(".") or UNKNOWN_EXTENSION
        destination = working_dir / f"{file_id}.{extension}"
        download_url = f"{server}/file/bot{self.bot_token}/{file_path}"
        try:
            async with self.http_client.stream(
                "GET", download_url, timeout=60
            ) as stream:
                stream.raise_for_status()
                with destination.open("wb") as file:
                    async for chunk in stream.aiter_bytes():
                        file.write(chunk)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        return destination

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
