"""Form fields for multipart uploads (audio, image edits, files)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

# (magic prefix, extension, content type)
_SIGNATURES: list[tuple[bytes, str, str]] = [
    (b"\x89PNG\r\n\x1a\n", "png", "image/png"),
    (b"\xff\xd8\xff", "jpeg", "image/jpeg"),
    (b"GIF87a", "gif", "image/gif"),
    (b"GIF89a", "gif", "image/gif"),
    (b"ID3", "mp3", "audio/mpeg"),
    (b"fLaC", "flac", "audio/flac"),
    (b"OggS", "ogg", "audio/ogg"),
]


def sniff_content_type(data: bytes) -> tuple[str, str]:
    """Return ``(extension, content_type)`` guessed from magic numbers.

    Unrecognised bytes are treated as mp3, which the audio endpoints
    accept for most raw uploads.
    """
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return "wav", "audio/wav"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp", "image/webp"
    for magic, ext, ctype in _SIGNATURES:
        if data.startswith(magic):
            return ext, ctype
    return "mp3", "application/octet-stream"


@dataclass(frozen=True)
class PlainField:
    value: Any


@dataclass(frozen=True)
class FileField:
    data: bytes
    filename: str | None = None
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> FileField:
        p = Path(path)
        return cls(data=p.read_bytes(), filename=p.name)


FormField = Union[PlainField, FileField]


def encode_form(
    fields: dict[str, FormField],
) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]:
    """Split *fields* into httpx ``data=`` and ``files=`` arguments."""
    data: dict[str, str] = {}
    files: dict[str, tuple[str, bytes, str]] = {}
    for name, item in fields.items():
        if isinstance(item, FileField):
            ext, sniffed = sniff_content_type(item.data)
            files[name] = (
                item.filename or f"{name}.{ext}",
                item.data,
                item.content_type or sniffed,
            )
        else:
            value = item.value
            if isinstance(value, bool):
                value = "true" if value else "false"
            data[name] = str(value)
    return data, files
