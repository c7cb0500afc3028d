from __future__ import annotations

import io
import math
import struct
from dataclasses import dataclass
from typing import Any, Dict, Optional

import piexif  # relies on pyproject dependencies

from geotag_api.services.coordinates import hemisphere_ref, signed_degrees, to_dms
from geotag_api.services.errors import InvalidMetadataError, MetadataEncodeError
from geotag_api.services.formats import ContainerFormat, supports_exif_write


EmbeddedBlock = Dict[str, Any]

OUTPUT_PREFIX = "geotagged_"
UNSUPPORTED_FORMAT_WARNING = (
	"Geotagging for non-JPG formats may not be fully supported. "
	"JPG format is recommended for reliable geotagging."
)

_JPEG_SOI = b"\xff\xd8"
_APP0_MARKER = b"\xff\xe0"


@dataclass(frozen=True)
class GeoCoordinate:
	lat: float
	lon: float


@dataclass(frozen=True)
class MetadataRecord:
	"""None means absent / leave untouched. An empty string is a real value."""
	coordinate: Optional[GeoCoordinate] = None
	description: Optional[str] = None
	keywords: Optional[str] = None

	def is_empty(self) -> bool:
		return self.coordinate is None and self.description is None and self.keywords is None


@dataclass(frozen=True)
class WriteResult:
	data: bytes
	filename: str
	warning: Optional[str] = None
	success: bool = True


def empty_block() -> EmbeddedBlock:
	return {"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None}


def load_block_or_empty(data: bytes, fmt: ContainerFormat) -> EmbeddedBlock:
	"""
	Parse the EXIF block of a supported container. Anything that cannot be
	parsed (no APP1 segment, truncated IFDs, bad offsets) yields an empty block.
	"""
	if not supports_exif_write(fmt) or bytes(data[:2]) != _JPEG_SOI:
		return empty_block()
	try:
		block = piexif.load(bytes(data))
	except Exception:
		return empty_block()
	for section, default in empty_block().items():
		if block.get(section) is None:
			block[section] = default
	return block


# ----- tag value decoding -----

def _bytes_to_str(v: Any) -> Optional[str]:
	if v is None:
		return None
	if isinstance(v, (bytes, bytearray)):
		return bytes(v).decode("utf-8", errors="replace")
	if isinstance(v, str):
		return v
	return str(v)


def _xp_to_str(v: Any) -> Optional[str]:
	# XP* tags are BYTE arrays of NUL-terminated UCS-2 little-endian text
	if v is None:
		return None
	if isinstance(v, str):
		return v
	try:
		raw = bytes(v)
	except (TypeError, ValueError):
		return None
	if len(raw) % 2:
		raw = raw[:-1]
	return raw.decode("utf-16-le", errors="replace").rstrip("\x00")


def _str_to_xp(text: str) -> bytes:
	return text.encode("utf-16-le") + b"\x00\x00"


def _is_dms(v: Any) -> bool:
	if not isinstance(v, (tuple, list)) or len(v) != 3:
		return False
	for part in v:
		if isinstance(part, (tuple, list)):
			if len(part) != 2:
				return False
		elif not isinstance(part, (int, float)):
			return False
	return True


def _extract_coordinate(gps: Dict[int, Any]) -> Optional[GeoCoordinate]:
	lat_dms = gps.get(piexif.GPSIFD.GPSLatitude)
	lon_dms = gps.get(piexif.GPSIFD.GPSLongitude)
	if not (_is_dms(lat_dms) and _is_dms(lon_dms)):
		return None
	lat_ref = (_bytes_to_str(gps.get(piexif.GPSIFD.GPSLatitudeRef)) or "N").strip().upper()
	lon_ref = (_bytes_to_str(gps.get(piexif.GPSIFD.GPSLongitudeRef)) or "E").strip().upper()
	return GeoCoordinate(
		lat=signed_degrees(lat_dms, lat_ref, "S"),
		lon=signed_degrees(lon_dms, lon_ref, "W"),
	)


def record_from_block(block: EmbeddedBlock) -> MetadataRecord:
	zeroth = block.get("0th") or {}
	return MetadataRecord(
		coordinate=_extract_coordinate(block.get("GPS") or {}),
		description=_bytes_to_str(zeroth.get(piexif.ImageIFD.ImageDescription)),
		keywords=_xp_to_str(zeroth.get(piexif.ImageIFD.XPKeywords)),
	)


def extract_metadata(data: bytes, fmt: ContainerFormat) -> MetadataRecord:
	"""Never raises; unsupported formats and unreadable blocks give an empty record."""
	if not supports_exif_write(fmt):
		return MetadataRecord()
	return record_from_block(load_block_or_empty(data, fmt))


# ----- writing -----

def _is_number(v: Any) -> bool:
	return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_update(update: Any) -> MetadataRecord:
	if not isinstance(update, MetadataRecord):
		raise InvalidMetadataError("update must be a MetadataRecord")
	coord = update.coordinate
	if coord is not None:
		if not isinstance(coord, GeoCoordinate):
			raise InvalidMetadataError("coordinate must be a GeoCoordinate")
		for name in ("lat", "lon"):
			value = getattr(coord, name)
			if not _is_number(value):
				raise InvalidMetadataError(f"{name} must be a number, got {type(value).__name__}")
			if not math.isfinite(value):
				raise InvalidMetadataError(f"{name} must be finite, got {value!r}")
	for name in ("description", "keywords"):
		value = getattr(update, name)
		if value is not None and not isinstance(value, str):
			raise InvalidMetadataError(f"{name} must be text, got {type(value).__name__}")
	return update


def merge_into_block(block: EmbeddedBlock, update: MetadataRecord) -> EmbeddedBlock:
	"""Overwrite only the entries for fields present in the update."""
	if update.coordinate is not None:
		lat = float(update.coordinate.lat)
		lon = float(update.coordinate.lon)
		gps = block["GPS"]
		gps[piexif.GPSIFD.GPSLatitude] = to_dms(abs(lat))
		gps[piexif.GPSIFD.GPSLatitudeRef] = hemisphere_ref(lat, "N", "S")
		gps[piexif.GPSIFD.GPSLongitude] = to_dms(abs(lon))
		gps[piexif.GPSIFD.GPSLongitudeRef] = hemisphere_ref(lon, "E", "W")
	if update.description is not None:
		block["0th"][piexif.ImageIFD.ImageDescription] = update.description.encode("utf-8")
	if update.keywords is not None:
		block["0th"][piexif.ImageIFD.XPKeywords] = _str_to_xp(update.keywords)
	return block


def _leading_app0(data: bytes) -> bytes:
	if bytes(data[2:4]) != _APP0_MARKER or len(data) < 6:
		return b""
	length = struct.unpack(">H", bytes(data[4:6]))[0]
	return bytes(data[2:4 + length])


def _restore_app0(spliced: bytes, app0: bytes) -> bytes:
	# piexif.insert drops or overwrites the JFIF APP0 segment; keep it ahead of the new APP1
	if not app0 or spliced[2:4] == _APP0_MARKER:
		return spliced
	return spliced[:2] + app0 + spliced[2:]


def output_filename(filename: str, prefix: str = OUTPUT_PREFIX) -> str:
	return prefix + filename


def write_metadata(
	data: bytes,
	fmt: ContainerFormat,
	update: MetadataRecord,
	filename: str = "image.jpg",
	prefix: str = OUTPUT_PREFIX,
) -> WriteResult:
	"""
	parse-or-empty -> merge -> serialize -> splice.
	Raises InvalidMetadataError before touching anything, MetadataEncodeError
	if the merged block cannot be written back. Unsupported formats come back
	unchanged with a warning.
	"""
	validate_update(update)
	out_name = output_filename(filename, prefix)
	if not supports_exif_write(fmt):
		return WriteResult(data=bytes(data), filename=out_name, warning=UNSUPPORTED_FORMAT_WARNING)

	block = merge_into_block(load_block_or_empty(data, fmt), update)
	try:
		exif_bytes = piexif.dump(block)
		buf = io.BytesIO()
		piexif.insert(exif_bytes, bytes(data), buf)
	except Exception as e:
		raise MetadataEncodeError(f"could not write EXIF block: {e}") from e
	return WriteResult(data=_restore_app0(buf.getvalue(), _leading_app0(data)), filename=out_name)
