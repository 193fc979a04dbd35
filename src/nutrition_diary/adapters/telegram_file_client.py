"""Telegram file download client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from nutrition_diary.adapters.telegram_client import TELEGRAM_API_URL


class TelegramFileClient(Protocol):
    """Interface for downloading Telegram files."""

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download a Telegram file and return its bytes."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Telegram file client using httpx."""

    bot_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download Telegram file bytes via getFile."""
        response = await self.http_client.get(
            f"{TELEGRAM_API_URL}/bot{self.bot_token}/getFile",
            params={"file_id": file_id},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise RuntimeError(f"Telegram getFile failed for {file_id}")
        file_path = payload["result"]["file_path"]
        file_response = await self.http_client.get(
            f"{TELEGRAM_API_URL}/file/bot{self.bot_token}/{file_path}", timeout=20
        )
        file_response.raise_for_status()
        return file_response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
