"""Barcode decoding from images with zbar."""

import asyncio
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from food_tracker.services.barcodes import ImageBarcodeDecoder, pick_best_barcode

_FOOD_SYMBOL_NAMES = (
    "EAN13",
    "EAN8",
    "UPCA",
    "UPCE",
    "DATABAR",
    "DATABAR_EXP",
    "I25",
    "CODE128",
)

_logger = logging.getLogger(__name__)


@dataclass
class PyzbarBarcodeDecoder(ImageBarcodeDecoder):
    """Decode retail barcodes from photos using pyzbar.

    Food symbologies are tried first; when none is found the image is decoded
    again with every symbology zbar supports.
    """

    async def decode(self, image_bytes: bytes) -> str | None:
        return await asyncio.to_thread(self._decode_sync, image_bytes)

    def _decode_sync(self, image_bytes: bytes) -> str | None:
        # pyzbar loads the native zbar library on import.
        from pyzbar import pyzbar

        try:
            image = Image.open(io.BytesIO(image_bytes))
            image = ImageOps.exif_transpose(image).convert("L")
        except (UnidentifiedImageError, OSError):
            _logger.warning("Could not open image for barcode decoding")
            return None

        food_symbols = [getattr(pyzbar.ZBarSymbol, name) for name in _FOOD_SYMBOL_NAMES]
        results = pyzbar.decode(image, symbols=food_symbols) or pyzbar.decode(image)
        texts = [result.data.decode("utf-8", errors="ignore") for result in results]
        barcode = pick_best_barcode(texts)
        if barcode is None:
            _logger.info("No barcode found in image")
            return None

        symbology = next(
            (
                result.type
                for result in results
                if result.data.decode("utf-8", errors="ignore").strip() == barcode
            ),
            None,
        )
        _logger.info("Barcode found: %s (%s)", barcode, symbology)
        return barcode
