"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from photoprism_bridge.adapters.photoprism_client import HttpxPhotoPrismClient
from photoprism_bridge.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from photoprism_bridge.adapters.telegram_file_client import (
    HttpxTelegramFileClient,
    TelegramFileClient,
)
from photoprism_bridge.config import Settings, parse_tags
from photoprism_bridge.services.labels import LabelService
from photoprism_bridge.services.media import MediaUploadHandler
from photoprism_bridge.services.tagging import TagCallbackHandler
from photoprism_bridge.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    upload_service: UploadService
    label_service: LabelService
    media_handler: MediaUploadHandler
    tag_callback_handler: TagCallbackHandler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    tags = parse_tags(resolved_settings.tags)
    photoprism_client = HttpxPhotoPrismClient.create(
        base_url=resolved_settings.photoprism_url,
        username=resolved_settings.photoprism_username,
        password=resolved_settings.photoprism_password,
        session_ttl_seconds=resolved_settings.photoprism_session_refresh_sec,
    )
    telegram_client = HttpxTelegramClient.create(
        resolved_settings.telegram_bot_token,
        api_server=resolved_settings.telegram_bot_api_server,
    )
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token,
        api_server=resolved_settings.telegram_bot_api_server,
    )
    upload_service = UploadService(
        client=photoprism_client,
        search_attempts=resolved_settings.photoprism_search_attempts,
        search_retry_delay_seconds=resolved_settings.photoprism_search_retry_delay_sec,
    )
    label_service = LabelService(photoprism_client)
    media_handler = MediaUploadHandler(
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        upload_service=upload_service,
        working_dir=Path(resolved_settings.working_dir),
        tags=tags,
        disallow_compressed_files=resolved_settings.disallow_compressed_files,
    )
    tag_callback_handler = TagCallbackHandler(
        telegram_client=telegram_client,
        label_service=label_service,
        tags=tags,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        await photoprism_client.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        upload_service=upload_service,
        label_service=label_service,
        media_handler=media_handler,
        tag_callback_handler=tag_callback_handler,
        close_resources=close_resources,
    )
