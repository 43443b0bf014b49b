"""Image helpers for the thumbnail pipeline."""

import io
from typing import Any, Dict, Tuple

from PIL import Image, ImageOps

DEFAULT_THUMBNAIL_SIZE: Tuple[int, int] = (200, 200)
DEFAULT_THUMBNAIL_PREFIX = "thumbnails/"


def load_image(image_bytes: bytes) -> Image.Image:
    """
    Decode image bytes, forcing the pixel data to load.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a supported image
    """
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def cover_resize(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Scale the image so that it fills a width x height box, then crop the
    overflow around the centre. The aspect ratio is preserved.

    Args:
        img: PIL Image to resize
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        A new image of exactly width x height pixels
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid thumbnail size: {width}x{height}")
    return ImageOps.fit(img, (width, height), method=Image.Resampling.BICUBIC)


def image_format(img: Image.Image) -> str:
    """
    Format of a decoded image, as understood by Image.save.

    Multi-picture JPEGs (camera and phone photos) open as "MPO"; their
    thumbnails are plain JPEGs.
    """
    if not img.format:
        raise ValueError("Unable to determine the image format")
    if img.format == "MPO":
        return "JPEG"
    return img.format


def content_type_for(format_name: str) -> str:
    """MIME type for a Pillow format name ("PNG" -> "image/png")."""
    Image.init()
    return Image.MIME.get(format_name.upper(), "application/octet-stream")


def encode_image(img: Image.Image, format_name: str) -> bytes:
    """
    Encode an image in the given format.

    JPEG cannot store an alpha channel, so such images are flattened to RGB
    first.
    """
    if format_name.upper() == "JPEG" and img.mode not in ("RGB", "L", "CMYK"):
        img = img.convert("RGB")

    output_stream = io.BytesIO()
    save_kwargs: Dict[str, Any] = {}
    if format_name.upper() == "JPEG":
        save_kwargs["quality"] = 90
    img.save(output_stream, format=format_name, **save_kwargs)
    return output_stream.getvalue()


def describe_image(img: Image.Image) -> Dict[str, Any]:
    """Basic image information for log lines."""
    return {
        "width": img.width,
        "height": img.height,
        "format": img.format or "unknown",
        "mode": img.mode,
    }


def calculate_thumbnail_key(source_key: str, prefix: str = DEFAULT_THUMBNAIL_PREFIX) -> str:
    """
    Destination key of a thumbnail: the leading path segment of the source
    key (up to and including the first "/") is replaced by the prefix.

    "images/cat.png" -> "thumbnails/cat.png"
    "images/a/b.png" -> "thumbnails/a/b.png"
    "cat.png"        -> "thumbnails/cat.png"
    """
    relative_key = source_key[source_key.find("/") + 1 :]
    return f"{prefix}{relative_key}"
