"""Image helpers for building inline model payloads."""

import base64
import re
from typing import Tuple, Union

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,(?P<data>.*)$", re.S)

# Leading bytes of the formats phone cameras and scanners usually produce.
_MAGIC_NUMBERS = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF8", "image/gif"),
)


def sniff_mime_type(content: bytes) -> str:
    """Guess an image MIME type from its first bytes."""
    for magic, mime in _MAGIC_NUMBERS:
        if content.startswith(magic):
            return mime
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    if content[4:12] in (b"ftypheic", b"ftypheix", b"ftypmif1"):
        return "image/heic"
    return DEFAULT_MIME_TYPE


def to_inline_image(image: Union[bytes, str]) -> Tuple[str, str]:
    """
    Convert raw bytes or a (data URL / bare) base64 string to inline data.

    Args:
        image: File content, a data URL such as ``data:image/png;base64,...``,
            or an already base64-encoded string

    Returns:
        (mime_type, base64_data)
    """
    if isinstance(image, bytes):
        return sniff_mime_type(image), base64.b64encode(image).decode("ascii")

    match = _DATA_URL.match(image)
    if match:
        return match.group("mime") or DEFAULT_MIME_TYPE, match.group("data")
    return DEFAULT_MIME_TYPE, image
