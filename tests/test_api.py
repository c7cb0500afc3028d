import base64

import piexif

from conftest import with_exif
from geotag_api.services.formats import ContainerFormat
from geotag_api.services.metadata import UNSUPPORTED_FORMAT_WARNING, extract_metadata


def _upload(client, data, name="photo.jpg", content_type="image/jpeg"):
    return client.post("/api/upload", files={"image": (name, data, content_type)})


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_upload_reports_existing_metadata(client, jpeg_bytes):
    data = with_exif(jpeg_bytes, {
        "0th": {piexif.ImageIFD.ImageDescription: "pier"},
        "GPS": {
            piexif.GPSIFD.GPSLatitudeRef: "S",
            piexif.GPSIFD.GPSLatitude: ((33, 1), (30, 1), (0, 1)),
            piexif.GPSIFD.GPSLongitudeRef: "E",
            piexif.GPSIFD.GPSLongitude: ((151, 1), (15, 1), (0, 1)),
        },
    })
    response = _upload(client, data)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["originalName"] == "photo.jpg"
    assert body["filename"].endswith(".jpg")
    assert body["existingGeo"] == {"lat": -33.5, "lon": 151.25}
    assert body["existingDescription"] == "pier"
    assert body["existingKeywords"] is None


def test_upload_rejects_unknown_type(client):
    response = _upload(client, b"GIF89a", name="anim.gif", content_type="image/gif")
    assert response.status_code == 400


def test_upload_rejects_oversized_file(client, settings, jpeg_bytes):
    settings.max_upload_bytes = 10
    response = _upload(client, jpeg_bytes)
    assert response.status_code == 413


def test_geotag_stored_file_then_download(client, jpeg_bytes):
    stored = _upload(client, jpeg_bytes).json()["filename"]
    response = client.post("/api/geotag", json={
        "filename": stored,
        "lat": 40.7128,
        "lon": -74.0060,
        "description": "Manhattan",
        "keywords": "city;night",
    })
    assert response.status_code == 200
    body = response.json()
    assert body == {"success": True, "downloadFilename": f"geotagged_{stored}"}

    download = client.get(f"/api/download/{body['downloadFilename']}")
    assert download.status_code == 200
    record = extract_metadata(download.content, ContainerFormat.JPEG)
    assert abs(record.coordinate.lat - 40.7128) < 1e-4
    assert abs(record.coordinate.lon + 74.0060) < 1e-4
    assert record.description == "Manhattan"
    assert record.keywords == "city;night"


def test_geotag_inline_image_data(client, jpeg_bytes):
    response = client.post("/api/geotag", json={
        "filename": "beach.jpg",
        "lat": 0,
        "lon": 0,
        "imageData": base64.b64encode(jpeg_bytes).decode("ascii"),
    })
    assert response.status_code == 200
    body = response.json()
    assert body["downloadFilename"] == "geotagged_beach.jpg"
    tagged = base64.b64decode(body["imageData"])
    coord = extract_metadata(tagged, ContainerFormat.JPEG).coordinate
    assert coord.lat == 0.0
    assert coord.lon == 0.0


def test_geotag_png_returns_warning_and_original_bytes(client, png_bytes):
    stored = _upload(client, png_bytes, name="shot.png", content_type="image/png").json()["filename"]
    response = client.post("/api/geotag", json={"filename": stored, "lat": 1.0, "lon": 2.0})
    assert response.status_code == 200
    body = response.json()
    assert body["warning"] == UNSUPPORTED_FORMAT_WARNING
    assert client.get(f"/api/download/{body['downloadFilename']}").content == png_bytes


def test_geotag_missing_file(client):
    response = client.post("/api/geotag", json={"filename": "missing.jpg", "lat": 1, "lon": 1})
    assert response.status_code == 404


def test_geotag_requires_both_coordinates(client, jpeg_bytes):
    stored = _upload(client, jpeg_bytes).json()["filename"]
    response = client.post("/api/geotag", json={"filename": stored, "lat": 1.0})
    assert response.status_code == 422


def test_geotag_rejects_out_of_range_latitude(client, jpeg_bytes):
    stored = _upload(client, jpeg_bytes).json()["filename"]
    response = client.post("/api/geotag", json={"filename": stored, "lat": 91, "lon": 0})
    assert response.status_code == 422


def test_geotag_enforces_description_limit(client, settings, jpeg_bytes):
    stored = _upload(client, jpeg_bytes).json()["filename"]
    response = client.post("/api/geotag", json={
        "filename": stored,
        "description": "x" * (settings.max_description_length + 1),
    })
    assert response.status_code == 400


def test_geotag_rejects_bad_base64(client):
    response = client.post("/api/geotag", json={"filename": "a.jpg", "imageData": "***"})
    assert response.status_code == 400


def test_download_missing(client):
    assert client.get("/api/download/nothing.jpg").status_code == 404


def test_cleanup(client, jpeg_bytes):
    stored = _upload(client, jpeg_bytes).json()["filename"]
    assert client.delete(f"/api/cleanup/{stored}").json() == {"success": True}
    assert client.get(f"/api/download/{stored}").status_code == 404
    assert client.delete(f"/api/cleanup/{stored}").json() == {"success": True}


def test_upload_without_extension_is_geotagged_as_jpeg(client, jpeg_bytes):
    stored = _upload(client, jpeg_bytes, name="camera_upload").json()["filename"]
    assert stored.endswith(".jpg")

    body = client.post("/api/geotag", json={"filename": stored, "lat": 1.0, "lon": 2.0}).json()
    assert "warning" not in body
    tagged = client.get(f"/api/download/{body['downloadFilename']}").content
    coord = extract_metadata(tagged, ContainerFormat.JPEG).coordinate
    assert abs(coord.lat - 1.0) < 1e-4
    assert abs(coord.lon - 2.0) < 1e-4


def test_upload_can_echo_image_data_for_inline_geotag(client, jpeg_bytes):
    body = client.post(
        "/api/upload",
        files={"image": ("photo.jpg", jpeg_bytes, "image/jpeg")},
        data={"returnImageData": "true"},
    ).json()
    assert base64.b64decode(body["imageData"]) == jpeg_bytes

    response = client.post("/api/geotag", json={
        "filename": body["originalName"],
        "keywords": "echo",
        "imageData": body["imageData"],
    })
    tagged = base64.b64decode(response.json()["imageData"])
    assert extract_metadata(tagged, ContainerFormat.JPEG).keywords == "echo"


def test_upload_omits_image_data_by_default(client, jpeg_bytes):
    assert _upload(client, jpeg_bytes).json()["imageData"] is None
