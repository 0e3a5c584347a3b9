"""Stateless conversion of fragment data between supported formats."""

import io
from dataclasses import dataclass

from markdown_it import MarkdownIt
from PIL import Image, UnidentifiedImageError

from common.logging_config import get_logger
from fragments.exceptions import ConversionError
from fragments.formats import (
    APPLICATION_JSON,
    EXTENSIONS,
    IMAGE_EXTENSIONS,
    TEXT_CSV,
    TEXT_HTML,
    TEXT_MARKDOWN,
    TEXT_PLAIN,
)

logger = get_logger(__name__)

# Retagged as text/plain with the payload unchanged; no markup is stripped.
PLAIN_TEXT_SOURCES = frozenset({TEXT_MARKDOWN, TEXT_HTML, TEXT_CSV, APPLICATION_JSON})

# Modes each writer accepts as-is; anything else is flattened first.
# WEBP and AVIF writers convert on their own.
_WRITER_MODES = {
    "JPEG": frozenset({"RGB", "L", "CMYK"}),
    "PNG": frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}),
    "GIF": frozenset({"1", "L", "P", "RGB", "RGBA"}),
}

_markdown = MarkdownIt("js-default")


@dataclass(frozen=True)
class ConversionResult:
    """
    Converted bytes and the content type they should be served with.
    """
    data: bytes
    content_type: str


def render_markdown(data: bytes) -> bytes:
    """
    Render Markdown source to HTML.

    Args:
        data: UTF-8 encoded Markdown

    Returns:
        UTF-8 encoded HTML markup
    """
    return _markdown.render(data.decode("utf-8", errors="replace")).encode("utf-8")


def _writable(image: Image.Image, image_format: str) -> Image.Image:
    """Convert an image into a mode the target writer can encode."""
    modes = _WRITER_MODES.get(image_format)
    if modes is None or image.mode in modes:
        return image
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    if has_alpha and image_format != "JPEG":
        return image.convert("RGBA")
    return image.convert("RGB")


def transcode_image(data: bytes, image_format: str) -> bytes:
    """
    Re-encode an image into another container using Pillow's defaults.

    Args:
        data: Encoded source image (any format Pillow can read)
        image_format: Pillow format name (PNG, JPEG, WEBP, GIF, AVIF)

    Returns:
        Encoded image bytes

    Raises:
        ConversionError: If the source cannot be decoded or the target cannot be written
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            image = _writable(image, image_format)
            output = io.BytesIO()
            image.save(output, format=image_format)
    except (UnidentifiedImageError, OSError, ValueError, KeyError) as e:
        logger.warning(f"Image conversion to {image_format} failed: {e}")
        raise ConversionError(f"unable to convert image to {image_format.lower()}: {e}") from e

    return output.getvalue()


def convert(data: bytes, source_mime: str, extension: str) -> ConversionResult:
    """
    Convert fragment data to the format named by a file extension.

    Rules, first match wins:
        1. image source, image extension: transcode the pixels
        2. Markdown source, '.html': render Markdown
        3. Markdown, HTML, CSV or JSON source, '.txt': same bytes, text/plain
        4. anything else: same bytes, source type

    Callers are expected to check the conversion matrix first; this function
    does not reject unsupported pairs.

    Args:
        data: Source bytes
        source_mime: Base mime type of the source
        extension: Target extension including the dot (e.g., '.html')

    Returns:
        ConversionResult with the converted bytes and their base mime type
    """
    extension = extension.lower()

    if source_mime.startswith("image/") and extension in IMAGE_EXTENSIONS:
        converted = transcode_image(data, IMAGE_EXTENSIONS[extension])
        return ConversionResult(data=converted, content_type=EXTENSIONS[extension])

    if source_mime == TEXT_MARKDOWN and extension == ".html":
        return ConversionResult(data=render_markdown(data), content_type=TEXT_HTML)

    if source_mime in PLAIN_TEXT_SOURCES and extension == ".txt":
        return ConversionResult(data=data, content_type=TEXT_PLAIN)

    return ConversionResult(data=data, content_type=source_mime)
