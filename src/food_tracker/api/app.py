"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request

from food_tracker.api.telegram_models import (
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
    TelegramUser,
)
from food_tracker.app_logging import configure_logging
from food_tracker.config import normalize_username, parse_allowed_user_ids
from food_tracker.containers import AppContainer
from food_tracker.domain.messages import IncomingMessage
from food_tracker.telegram_commands import (
    CHAT_MENU_BUTTON,
    parse_command,
    telegram_commands,
)

PRIVATE_TEXT = "This bot is private."
FAILURE_TEXT = "Sorry, something went wrong. Please try again."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )
    allowed_username = normalize_username(container.settings.telegram_allowed_username)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
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
        message = update.message
        if message is None or message.from_user is None:
            return {"status": "ok"}
        chat_id = message.chat.id
        if not _is_user_allowed(message.from_user, allowed_user_ids, allowed_username):
            await state_container.telegram_client.send_message(
                chat_id=chat_id, text=PRIVATE_TEXT
            )
            return {"status": "ok"}

        text = (message.text or message.caption or "").strip()
        parsed = parse_command(text)
        image_bytes: bytes | None = None
        if (
            parsed is None
            and message.photo
            and state_container.dispatcher.expects_image(chat_id)
        ):
            photo = _select_largest_photo(message.photo)
            try:
                image_bytes = (
                    await state_container.telegram_file_client.download_file_bytes(
                        photo.file_id
                    )
                )
            except Exception as exc:
                logger.exception(
                    "Failed to download Telegram photo",
                    extra={"file_id": photo.file_id},
                )
                await state_container.telegram_client.send_message(
                    chat_id=chat_id,
                    text=_format_error(
                        state_container, exc, "Couldn't download that photo."
                    ),
                )
                return {"status": "ok"}

        incoming = _to_incoming_message(message, text, image_bytes, parsed)
        try:
            reply = await state_container.dispatcher.dispatch(incoming)
        except Exception as exc:
            logger.exception(
                "Failed to handle Telegram message",
                extra={"chat_id": chat_id, "command": incoming.command},
            )
            await state_container.telegram_client.send_message(
                chat_id=chat_id,
                text=_format_error(state_container, exc, FAILURE_TEXT),
            )
            return {"status": "ok"}

        if reply is not None:
            await state_container.telegram_client.send_message(
                chat_id=chat_id, text=reply.text
            )
        return {"status": "ok"}

    return app


def _to_incoming_message(
    message: TelegramMessage,
    text: str,
    image_bytes: bytes | None,
    parsed: tuple[str, str] | None,
) -> IncomingMessage:
    sender = message.from_user
    return IncomingMessage(
        conversation_id=message.chat.id,
        sender_id=sender.id if sender else None,
        sender_handle=sender.username if sender else None,
        timestamp=datetime.fromtimestamp(message.date, tz=UTC),
        text=text,
        image_bytes=image_bytes,
        command=parsed[0] if parsed else None,
        command_args=parsed[1] if parsed else "",
    )


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _is_user_allowed(
    user: TelegramUser,
    allowed_ids: set[int] | None,
    allowed_username: str | None,
) -> bool:
    """Return true when the user passes the configured id or username gate.

    With neither gate configured everyone is allowed; otherwise matching
    either one is enough.
    """
    if allowed_ids is None and allowed_username is None:
        return True
    if allowed_ids is not None and user.id in allowed_ids:
        return True
    return (
        allowed_username is not None
        and normalize_username(user.username) == allowed_username
    )


def _format_error(state_container: AppContainer, exc: Exception, fallback: str) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
