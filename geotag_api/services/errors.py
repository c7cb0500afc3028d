from __future__ import annotations


class GeotagError(Exception):
	pass


class InvalidMetadataError(GeotagError, ValueError):
	"""Update record rejected before any block mutation."""


class MetadataEncodeError(GeotagError):
	"""Merged block could not be serialized or spliced back into the image."""


class InvalidFilenameError(GeotagError, ValueError):
	pass


class StoredFileNotFoundError(GeotagError, FileNotFoundError):
	pass
