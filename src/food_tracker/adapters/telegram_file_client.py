"""Telegram file download client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class TelegramFileError(RuntimeError):
    """Raised when Telegram cannot provide a file."""


class TelegramFileClient(Protocol):
    """Interface for downloading Telegram files."""

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download a Telegram file and return its bytes."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Telegram file client using httpx."""

    bot_token: str
    http_client: httpx.AsyncClient
    max_file_bytes: int = 20 * 1024 * 1024

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Resolve the file path with getFile, then download the file."""
        response = await self.http_client.get(
            f"https://api.telegram.org/bot{self.bot_token}/getFile",
            params={"file_id": file_id},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        result = payload.get("result") or {}
        file_path = result.get("file_path")
        if not payload.get("ok") or not file_path:
            raise TelegramFileError(f"Telegram getFile failed for {file_id}")
        size = result.get("file_size")
        if isinstance(size, int) and size > self.max_file_bytes:
            raise TelegramFileError(f"Telegram file {file_id} is too large ({size})")

        file_response = await self.http_client.get(
            f"https://api.telegram.org/file/bot{self.bot_token}/{file_path}",
            timeout=20,
        )
        if file_response.is_error:
            raise TelegramFileError(
                f"Telegram file download failed with {file_response.status_code}"
            )
        return file_response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
