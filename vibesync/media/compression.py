"""JPEG compression applied to every image before upload."""

import asyncio
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_CONTENT_TYPE = "image/jpeg"


class ImageCompressionError(ValueError):
    """Raised when the input bytes are not a decodable image."""


class ImageCompressor:
    """Re-encodes images as JPEG, bounded to a maximum edge length."""

    def __init__(self, quality: int = 90, max_dimension: int = 2048):
        """Initialize compressor.

        Args:
            quality: JPEG quality (1-95)
            max_dimension: Longest edge in pixels; larger images are downscaled
        """
        self.quality = quality
        self.max_dimension = max_dimension

    def compress(self, data: bytes) -> bytes:
        """Compress image bytes to JPEG.

        Raises:
            ImageCompressionError: If the bytes cannot be decoded
        """
        try:
            with Image.open(BytesIO(data)) as source:
                image = ImageOps.exif_transpose(source) or source
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                image.thumbnail((self.max_dimension, self.max_dimension))
                output = BytesIO()
                image.save(output, format="JPEG", quality=self.quality, optimize=True)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageCompressionError(f"Could not encode image as JPEG: {e}") from e
        return output.getvalue()

    async def compress_async(self, data: bytes) -> bytes:
        """Compress in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.compress, data)
