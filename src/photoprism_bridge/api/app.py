"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from photoprism_bridge.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
)
from photoprism_bridge.app_logging import configure_logging
from photoprism_bridge.containers import AppContainer

UPLOAD_ERROR_TEXT = "Something went wrong while uploading the file."
TAGS_ERROR_TEXT = "Something went wrong while saving tags."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    chat_id = container.settings.telegram_chat_id

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        if update.callback_query:
            await _handle_callback(state_container, update.callback_query)
            return {"status": "ok"}

        message = update.message or update.channel_post
        if message is None or message.chat.id != chat_id:
            return {"status": "ok"}
        await _handle_media(state_container, message)
        return {"status": "ok"}

    async def _handle_media(
        state_container: AppContainer, message: TelegramMessage
    ) -> None:
        file_id = _select_file_id(message)
        try:
            await state_container.media_handler.handle(
                chat_id=message.chat.id,
                message_id=message.message_id,
                file_id=file_id,
                is_document=message.document is not None,
            )
        except Exception as exc:
            logger.exception("Failed to upload Telegram file %s", file_id)
            await state_container.telegram_client.send_message(
                chat_id=message.chat.id,
                text=_format_error(state_container, exc, UPLOAD_ERROR_TEXT),
                reply_to_message_id=message.message_id,
            )

    async def _handle_callback(
        state_container: AppContainer, callback: TelegramCallbackQuery
    ) -> None:
        await state_container.telegram_client.answer_callback_query(callback.id)
        message = callback.message
        if message is None or message.chat.id != chat_id or not callback.data:
            return
        try:
            await state_container.tag_callback_handler.handle(
                chat_id=message.chat.id,
                message_id=message.message_id,
                data=callback.data,
            )
        except Exception as exc:
            logger.exception("Failed to handle tag callback %s", callback.data)
            await state_container.telegram_client.edit_message_text(
                chat_id=message.chat.id,
                message_id=message.message_id,
                text=_format_error(state_container, exc, TAGS_ERROR_TEXT),
            )

    return app


def _select_file_id(message: TelegramMessage) -> str | None:
    """Prefer an uncompressed document, then the largest photo, then video."""
    if message.document:
        return message.document.file_id
    if message.photo:
        return _select_largest_photo(message.photo).file_id
    if message.video:
        return message.video.file_id
    return None


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _format_error(state_container: AppContainer, exc: Exception, fallback: str) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
