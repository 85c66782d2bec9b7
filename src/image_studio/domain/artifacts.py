"""Immutable image payloads."""

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass
from functools import cached_property

_DATA_URL_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$"
)


@dataclass(frozen=True)
class Artifact:
    """Opaque image bytes identified by their content."""

    data: bytes
    name: str = "image.png"
    mime_type: str = "image/png"

    @cached_property
    def digest(self) -> str:
        """Return the SHA-256 hex digest of the payload."""
        return hashlib.sha256(self.data).hexdigest()

    @classmethod
    def from_bytes(cls, data: bytes, name: str) -> "Artifact":
        """Create an artifact, sniffing the MIME type from the payload."""
        return cls(data=data, name=name, mime_type=detect_mime_type(data))

    def renamed(self, name: str) -> "Artifact":
        """Return the same payload under a different file name."""
        return Artifact(data=self.data, name=name, mime_type=self.mime_type)

    def to_data_url(self) -> str:
        """Encode the payload as a base64 data URL."""
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


def artifact_from_data_url(data_url: str, name: str) -> Artifact:
    """Decode a base64 data URL into an artifact."""
    match = _DATA_URL_PATTERN.match(data_url.strip())
    if match is None:
        raise ValueError("Invalid data URL")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError("Invalid base64 payload in data URL") from exc
    if not data:
        raise ValueError("Data URL has an empty payload")
    return Artifact(data=data, name=name, mime_type=match.group("mime"))


def detect_mime_type(data: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/png"


def extension_for(mime_type: str) -> str:
    """Return a file extension for a MIME type."""
    return {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/gif": "gif",
    }.get(mime_type, "png")


def file_stem(name: str) -> str:
    """Return a file name without its last extension."""
    return name.rsplit(".", 1)[0] if "." in name else name
