"""Supported content types, the conversion matrix and the extension table."""

from typing import Dict, FrozenSet, Optional, Tuple

from fragments.exceptions import ConfigurationError


TEXT_PLAIN = "text/plain"
TEXT_MARKDOWN = "text/markdown"
TEXT_HTML = "text/html"
TEXT_CSV = "text/csv"
APPLICATION_JSON = "application/json"
APPLICATION_YAML = "application/yaml"
IMAGE_PNG = "image/png"
IMAGE_JPEG = "image/jpeg"
IMAGE_WEBP = "image/webp"
IMAGE_AVIF = "image/avif"
IMAGE_GIF = "image/gif"

IMAGE_TYPES: Tuple[str, ...] = (IMAGE_PNG, IMAGE_JPEG, IMAGE_WEBP, IMAGE_GIF, IMAGE_AVIF)

SUPPORTED_TYPES: FrozenSet[str] = frozenset({
    TEXT_PLAIN,
    TEXT_MARKDOWN,
    TEXT_HTML,
    TEXT_CSV,
    APPLICATION_JSON,
    APPLICATION_YAML,
    *IMAGE_TYPES,
})

# Text converts only toward plain text, except JSON->YAML, CSV->JSON and
# Markdown->HTML. Images interconvert freely.
CONVERSIONS: Dict[str, Tuple[str, ...]] = {
    TEXT_PLAIN: (TEXT_PLAIN,),
    TEXT_MARKDOWN: (TEXT_MARKDOWN, TEXT_HTML, TEXT_PLAIN),
    TEXT_HTML: (TEXT_HTML, TEXT_PLAIN),
    TEXT_CSV: (TEXT_CSV, TEXT_PLAIN, APPLICATION_JSON),
    APPLICATION_JSON: (APPLICATION_JSON, APPLICATION_YAML, TEXT_PLAIN),
    APPLICATION_YAML: (APPLICATION_YAML, TEXT_PLAIN),
    **{image_type: IMAGE_TYPES for image_type in IMAGE_TYPES},
}

EXTENSIONS: Dict[str, str] = {
    ".txt": TEXT_PLAIN,
    ".md": TEXT_MARKDOWN,
    ".html": TEXT_HTML,
    ".json": APPLICATION_JSON,
    ".yaml": APPLICATION_YAML,
    ".yml": APPLICATION_YAML,
    ".csv": TEXT_CSV,
    ".png": IMAGE_PNG,
    ".jpg": IMAGE_JPEG,
    ".jpeg": IMAGE_JPEG,
    ".webp": IMAGE_WEBP,
    ".gif": IMAGE_GIF,
    ".avif": IMAGE_AVIF,
}

# Pillow format names keyed by image extension
IMAGE_EXTENSIONS: Dict[str, str] = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".webp": "WEBP",
    ".gif": "GIF",
    ".avif": "AVIF",
}


def formats_for(mime_type: str) -> Tuple[str, ...]:
    """
    Get the base mime types a fragment of the given base mime can become.

    Args:
        mime_type: Base mime type of the fragment

    Returns:
        Conversion targets, always including mime_type itself
    """
    return CONVERSIONS.get(mime_type, (mime_type,))


def mime_for_extension(extension: str) -> Optional[str]:
    """
    Resolve a file extension such as '.md' to a base mime type.

    Returns:
        The base mime, or None for an unknown extension
    """
    return EXTENSIONS.get(extension.lower()) if extension else None


def check_tables() -> None:
    """
    Verify the type, conversion and extension tables agree with each other.

    Raises:
        ConfigurationError: If any supported type lacks a conversion row or an
            extension, or a table refers to an unsupported type
    """
    missing_rows = SUPPORTED_TYPES - CONVERSIONS.keys()
    if missing_rows:
        raise ConfigurationError(f"no conversion row for {sorted(missing_rows)}")

    for source, targets in CONVERSIONS.items():
        if source not in SUPPORTED_TYPES:
            raise ConfigurationError(f"conversion row for unsupported type {source}")
        if source not in targets:
            raise ConfigurationError(f"{source} cannot convert to itself")
        unknown = set(targets) - SUPPORTED_TYPES
        if unknown:
            raise ConfigurationError(f"{source} converts to unsupported {sorted(unknown)}")

    unreachable = SUPPORTED_TYPES - set(EXTENSIONS.values())
    if unreachable:
        raise ConfigurationError(f"no extension for {sorted(unreachable)}")

    for extension in IMAGE_EXTENSIONS:
        if EXTENSIONS[extension] not in IMAGE_TYPES:
            raise ConfigurationError(f"{extension} is not an image extension")


check_tables()
