"""Shared fixtures for the assessment tests."""

import base64
import io

import pytest
from PIL import Image

from app.schemas.assessment import PatientProfile


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    color = (200, 60, 60, 255) if mode == "RGBA" else (200, 60, 60)
    img = Image.new(mode, (width, height), color[: len(mode)])
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def to_data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def elderly_profile() -> PatientProfile:
    return PatientProfile(age=70, has_high_bp=True, has_diabetes=True, medications="")


@pytest.fixture
def young_profile() -> PatientProfile:
    return PatientProfile(age=30)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes(1024, 768)
