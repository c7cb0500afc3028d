from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	model_config = SettingsConfigDict(
		env_prefix="GEOTAG_",
		env_file=".env",
		extra="ignore",
	)

	upload_dir: str = "uploads"
	max_upload_bytes: int = 50 * 1024 * 1024
	# caller-side limits; the codec itself accepts any length
	max_description_length: int = 1300
	max_keywords_length: int = 6600
	output_prefix: str = "geotagged_"
	cors_origins: List[str] = ["*"]
	log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
	return Settings()
