import io
import struct

import piexif
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from geotag_api.config import Settings, get_settings
from geotag_api.main import app


def make_image(fmt="JPEG", size=(16, 12), color=(200, 40, 90)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def with_exif(jpeg, exif_dict):
    out = io.BytesIO()
    piexif.insert(piexif.dump(exif_dict), jpeg, out)
    return out.getvalue()


def with_raw_app1(jpeg, payload):
    # splice an APP1 segment right after SOI without validating its content
    seg = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    return jpeg[:2] + seg + jpeg[2:]


def scan_data(jpeg):
    return jpeg[jpeg.index(b"\xff\xda"):]


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
