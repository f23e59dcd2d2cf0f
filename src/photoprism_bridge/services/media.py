"""Handle media messages: download, upload to PhotoPrism, offer tags."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from photoprism_bridge.adapters.telegram_client import TelegramClient
from photoprism_bridge.adapters.telegram_file_client import TelegramFileClient
from photoprism_bridge.services.tag_keyboard import initial_state, render_keyboard
from photoprism_bridge.services.uploads import UploadService

ATTACH_AS_DOCUMENT_TEXT = (
    "Compressed photos and videos are not accepted. "
    "Please attach the file as a document."
)
NO_MEDIA_TEXT = "Send a photo, a video or a file to upload it to PhotoPrism."
UPLOAD_STARTED_TEXT = "Upload started..."
UPLOADED_TEXT = "File uploaded. Choose tags and press Save."

_logger = logging.getLogger(__name__)


@dataclass
class MediaUploadHandler:
    """Upload one Telegram media item and reply with the tag keyboard."""

    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    upload_service: UploadService
    working_dir: Path
    tags: list[str] = field(default_factory=list)
    disallow_compressed_files: bool = False

    async def handle(
        self,
        chat_id: int,
        message_id: int,
        file_id: str | None,
        is_document: bool,
    ) -> None:
        """Process a media message from the configured chat."""
        if file_id is None:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=NO_MEDIA_TEXT, reply_to_message_id=message_id
            )
            return
        if self.disallow_compressed_files and not is_document:
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text=ATTACH_AS_DOCUMENT_TEXT,
                reply_to_message_id=message_id,
            )
            return

        status_message_id = await self.telegram_client.send_message(
            chat_id=chat_id, text=UPLOAD_STARTED_TEXT, reply_to_message_id=message_id
        )
        downloaded = await self.telegram_file_client.download_file(
            file_id, self.working_dir
        )
        _logger.debug("Downloaded %s to %s", file_id, downloaded)
        try:
            photo_uid = await self.upload_service.upload_and_locate(downloaded)
        finally:
            downloaded.unlink(missing_ok=True)

        _logger.info("Uploaded Telegram file %s as photo %s", file_id, photo_uid)
        await self.telegram_client.edit_message_text(
            chat_id=chat_id,
            message_id=status_message_id,
            text=UPLOADED_TEXT,
            reply_markup=render_keyboard(initial_state(photo_uid.value), self.tags),
        )
