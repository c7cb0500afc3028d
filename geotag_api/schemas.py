from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GeoPoint(BaseModel):
	lat: float
	lon: float


class UploadResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	success: bool = True
	filename: str
	original_name: str = Field(alias="originalName")
	existing_geo: Optional[GeoPoint] = Field(default=None, alias="existingGeo")
	existing_description: Optional[str] = Field(default=None, alias="existingDescription")
	existing_keywords: Optional[str] = Field(default=None, alias="existingKeywords")
	image_data: Optional[str] = Field(default=None, alias="imageData")


class GeotagRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	filename: str = Field(min_length=1)
	lat: Optional[float] = Field(default=None, ge=-90, le=90)
	lon: Optional[float] = Field(default=None, ge=-180, le=180)
	description: Optional[str] = None
	keywords: Optional[str] = None
	# base64 payload for stateless use; when omitted the stored upload is used
	image_data: Optional[str] = Field(default=None, alias="imageData")

	@model_validator(mode="after")
	def _coordinate_pair(self) -> "GeotagRequest":
		if (self.lat is None) != (self.lon is None):
			raise ValueError("lat and lon must be provided together")
		return self


class GeotagResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	success: bool = True
	download_filename: str = Field(alias="downloadFilename")
	warning: Optional[str] = None
	image_data: Optional[str] = Field(default=None, alias="imageData")
