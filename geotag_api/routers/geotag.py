from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from geotag_api.config import Settings, get_settings
from geotag_api.schemas import GeoPoint, GeotagRequest, GeotagResponse, UploadResponse
from geotag_api.services.errors import (
	InvalidFilenameError,
	InvalidMetadataError,
	MetadataEncodeError,
	StoredFileNotFoundError,
)
from geotag_api.services.formats import detect_format, is_allowed_upload, storage_extension
from geotag_api.services.metadata import GeoCoordinate, MetadataRecord, extract_metadata, write_metadata
from geotag_api.services.storage import UploadStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["geotag"])


def get_store(settings: Settings = Depends(get_settings)) -> UploadStore:
	return UploadStore(settings.upload_dir)


def _check_text_limits(req: GeotagRequest, settings: Settings) -> None:
	if req.description is not None and len(req.description) > settings.max_description_length:
		raise HTTPException(
			status_code=400,
			detail=f"Description must be {settings.max_description_length} characters or fewer",
		)
	if req.keywords is not None and len(req.keywords) > settings.max_keywords_length:
		raise HTTPException(
			status_code=400,
			detail=f"Keywords must be {settings.max_keywords_length} characters or fewer",
		)


@router.post("/upload", response_model=UploadResponse, summary="Upload an image and read its existing geotag")
async def upload(
	image: UploadFile = File(...),
	# stateless clients get the bytes back for a later inline /api/geotag call
	return_image_data: bool = Form(False, alias="returnImageData"),
	settings: Settings = Depends(get_settings),
	store: UploadStore = Depends(get_store),
):
	original_name = Path(image.filename or "image.jpg").name
	fmt = detect_format(original_name, image.content_type)
	if not is_allowed_upload(fmt):
		raise HTTPException(status_code=400, detail="Only JPG, PNG, HEIC, and WebP images are allowed!")
	data = await image.read()
	if not data:
		raise HTTPException(status_code=400, detail="No image file provided")
	if len(data) > settings.max_upload_bytes:
		raise HTTPException(status_code=413, detail="Image exceeds the upload size limit")

	record = extract_metadata(data, fmt)
	stored = store.save(data, original_name, ext=storage_extension(original_name, fmt))
	geo = None
	if record.coordinate is not None:
		geo = GeoPoint(lat=record.coordinate.lat, lon=record.coordinate.lon)
	return UploadResponse(
		filename=stored,
		original_name=original_name,
		existing_geo=geo,
		existing_description=record.description,
		existing_keywords=record.keywords,
		image_data=base64.b64encode(data).decode("ascii") if return_image_data else None,
	)


@router.post(
	"/geotag",
	response_model=GeotagResponse,
	response_model_exclude_none=True,
	summary="Write coordinates, description and keywords into an image",
)
def geotag(
	req: GeotagRequest,
	settings: Settings = Depends(get_settings),
	store: UploadStore = Depends(get_store),
):
	_check_text_limits(req, settings)
	inline = req.image_data is not None
	if inline:
		filename = Path(req.filename).name
		try:
			data = base64.b64decode(req.image_data, validate=True)
		except (binascii.Error, ValueError):
			raise HTTPException(status_code=400, detail="imageData is not valid base64")
	else:
		filename = req.filename
		try:
			data = store.read(filename)
		except InvalidFilenameError as e:
			raise HTTPException(status_code=400, detail=str(e))
		except StoredFileNotFoundError:
			raise HTTPException(status_code=404, detail="File not found")

	coordinate = None
	if req.lat is not None and req.lon is not None:
		coordinate = GeoCoordinate(lat=req.lat, lon=req.lon)
	update = MetadataRecord(coordinate=coordinate, description=req.description, keywords=req.keywords)

	try:
		result = write_metadata(data, detect_format(filename), update, filename=filename, prefix=settings.output_prefix)
	except InvalidMetadataError as e:
		raise HTTPException(status_code=400, detail=str(e))
	except MetadataEncodeError as e:
		logger.error("Geotag error for %s: %s", filename, e)
		raise HTTPException(status_code=500, detail=str(e))
	if result.warning:
		logger.warning("%s: %s", filename, result.warning)

	if inline:
		return GeotagResponse(
			download_filename=result.filename,
			warning=result.warning,
			image_data=base64.b64encode(result.data).decode("ascii"),
		)
	store.write(result.filename, result.data)
	return GeotagResponse(download_filename=result.filename, warning=result.warning)


@router.get("/download/{filename}", summary="Download a stored image")
def download(filename: str, store: UploadStore = Depends(get_store)):
	try:
		p = store.path(filename)
	except InvalidFilenameError as e:
		raise HTTPException(status_code=400, detail=str(e))
	if not p.is_file():
		raise HTTPException(status_code=404, detail="File not found")
	return FileResponse(p, filename=filename)


@router.delete("/cleanup/{filename}", summary="Delete a stored image")
def cleanup(filename: str, store: UploadStore = Depends(get_store)):
	try:
		store.delete(filename)
	except InvalidFilenameError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return {"success": True}
