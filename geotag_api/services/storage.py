from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Optional, Union

from geotag_api.services.errors import InvalidFilenameError, StoredFileNotFoundError

logger = logging.getLogger(__name__)


def _safe_name(name: str) -> str:
	if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
		raise InvalidFilenameError(f"invalid filename: {name!r}")
	return name


class UploadStore:
	"""Flat directory of uploaded and geotagged files, addressed by basename."""

	def __init__(self, root: Union[str, Path]):
		self.root = Path(root)

	def path(self, name: str) -> Path:
		return self.root / _safe_name(name)

	def save(self, data: bytes, original_name: str, ext: Optional[str] = None) -> str:
		if ext is None:
			ext = Path(original_name).suffix.lower()
		stored = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
		self.write(stored, data)
		logger.info("Stored upload %s as %s (%d bytes)", original_name, stored, len(data))
		return stored

	def write(self, name: str, data: bytes) -> Path:
		self.root.mkdir(parents=True, exist_ok=True)
		p = self.path(name)
		with p.open("wb") as f:
			f.write(data)
		return p

	def read(self, name: str) -> bytes:
		p = self.path(name)
		if not p.is_file():
			raise StoredFileNotFoundError(name)
		with p.open("rb") as f:
			return f.read()

	def delete(self, name: str) -> bool:
		p = self.path(name)
		if not p.exists():
			return False
		p.unlink()
		logger.info("Removed %s", name)
		return True
