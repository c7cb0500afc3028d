from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class ContainerFormat(str, Enum):
	JPEG = "jpeg"
	PNG = "png"
	WEBP = "webp"
	HEIC = "heic"
	UNKNOWN = "unknown"


# Containers that get the full read/modify/write treatment. Everything else is passthrough.
FULLY_SUPPORTED = frozenset({ContainerFormat.JPEG})

_EXTENSIONS = {
	".jpg": ContainerFormat.JPEG,
	".jpeg": ContainerFormat.JPEG,
	".png": ContainerFormat.PNG,
	".webp": ContainerFormat.WEBP,
	".heic": ContainerFormat.HEIC,
	".heif": ContainerFormat.HEIC,
}

_MIME_TYPES = {
	"image/jpeg": ContainerFormat.JPEG,
	"image/jpg": ContainerFormat.JPEG,
	"image/pjpeg": ContainerFormat.JPEG,
	"image/png": ContainerFormat.PNG,
	"image/webp": ContainerFormat.WEBP,
	"image/heic": ContainerFormat.HEIC,
	"image/heif": ContainerFormat.HEIC,
}


def detect_format(filename: Optional[str], content_type: Optional[str] = None) -> ContainerFormat:
	if filename:
		fmt = _EXTENSIONS.get(Path(filename).suffix.lower())
		if fmt is not None:
			return fmt
	if content_type:
		mime = content_type.split(";", 1)[0].strip().lower()
		return _MIME_TYPES.get(mime, ContainerFormat.UNKNOWN)
	return ContainerFormat.UNKNOWN


def supports_exif_write(fmt: ContainerFormat) -> bool:
	return fmt in FULLY_SUPPORTED


def is_allowed_upload(fmt: ContainerFormat) -> bool:
	return fmt is not ContainerFormat.UNKNOWN


_CANONICAL_EXTENSIONS = {
	ContainerFormat.JPEG: ".jpg",
	ContainerFormat.PNG: ".png",
	ContainerFormat.WEBP: ".webp",
	ContainerFormat.HEIC: ".heic",
}


def storage_extension(filename: Optional[str], fmt: ContainerFormat) -> str:
	"""Suffix for a stored copy, so detect_format(stored_name) gives back fmt."""
	suffix = Path(filename or "").suffix.lower()
	if _EXTENSIONS.get(suffix) is fmt:
		return suffix
	return _CANONICAL_EXTENSIONS.get(fmt, "")
