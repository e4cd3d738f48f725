"""Barcode resolution from message text or images."""

import re
from dataclasses import dataclass
from typing import Protocol

from food_tracker.domain.messages import IncomingMessage

_DIGIT_RUN = re.compile(r"(?:[0-9][\s-]*){8,14}")
_NON_DIGIT = re.compile(r"[^0-9]")
_PRODUCT_BARCODE = re.compile(r"^(?:[0-9]{8}|[0-9]{12,14})$")
_MIN_DIGITS = 8
_MAX_DIGITS = 14


class ImageBarcodeDecoder(Protocol):
    """Interface for reading a barcode out of image bytes."""

    async def decode(self, image_bytes: bytes) -> str | None:
        """Return the decoded barcode text, if any."""


@dataclass
class BarcodeResolver:
    """Turn an image or free text into a product identifier."""

    decoder: ImageBarcodeDecoder

    async def resolve(self, message: IncomingMessage) -> str | None:
        """Return a candidate identifier for the message, if one is found."""
        if message.image_bytes is not None:
            return await self.decoder.decode(message.image_bytes)
        return extract_barcode_from_text(message.text)


def extract_barcode_from_text(text: str) -> str | None:
    """Return the first 8-14 digit run, ignoring space and hyphen separators."""
    for match in _DIGIT_RUN.finditer(text):
        digits = _NON_DIGIT.sub("", match.group())
        if _MIN_DIGITS <= len(digits) <= _MAX_DIGITS:
            return digits
    return None


def pick_best_barcode(texts: list[str]) -> str | None:
    """Prefer a retail-length numeric code among decoded texts."""
    candidates = [text.strip() for text in texts if text and text.strip()]
    for candidate in candidates:
        if _PRODUCT_BARCODE.match(candidate):
            return candidate
    return candidates[0] if candidates else None
