"""Handle tag keyboard callbacks."""

import logging
from dataclasses import dataclass, field

from photoprism_bridge.adapters.telegram_client import TelegramClient
from photoprism_bridge.domain.photos import PhotoUID
from photoprism_bridge.domain.tags import SaveTags
from photoprism_bridge.services.labels import LabelService
from photoprism_bridge.services.tag_keyboard import apply_toggle

NO_TAGS_TEXT = "Saved without tags."

_logger = logging.getLogger(__name__)


@dataclass
class TagCallbackHandler:
    """Advance the tag keyboard or commit the chosen labels."""

    telegram_client: TelegramClient
    label_service: LabelService
    tags: list[str] = field(default_factory=list)

    async def handle(self, chat_id: int, message_id: int, data: str) -> None:
        """Process one button press of the tag keyboard."""
        action = apply_toggle(data, self.tags)
        if isinstance(action, SaveTags):
            await self.label_service.add_labels(
                PhotoUID(action.photo_uid), action.tag_names
            )
            _logger.info(
                "Labelled photo %s with %s", action.photo_uid, action.tag_names
            )
            await self.telegram_client.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=format_saved_tags(action.tag_names),
            )
            return
        await self.telegram_client.edit_message_reply_markup(
            chat_id=chat_id,
            message_id=message_id,
            reply_markup=action.reply_markup,
        )


def format_saved_tags(tag_names: list[str]) -> str:
    """Return the confirmation shown after labels are saved."""
    if not tag_names:
        return NO_TAGS_TEXT
    return f"Tags saved: {', '.join(tag_names)}"
