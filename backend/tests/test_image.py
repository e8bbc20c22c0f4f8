"""Tests for image preparation."""

import base64
import io

import pytest
from PIL import Image

from app.errors import ImageProcessingError
from app.services.image import prepare, scaled_dimensions
from conftest import make_image_bytes, to_data_uri


def _decode(payload):
    return Image.open(io.BytesIO(base64.b64decode(payload.encoded_data)))


class TestScaledDimensions:

    @pytest.mark.parametrize("size, expected", [
        ((1024, 768), (512, 384)),
        ((768, 1024), (384, 512)),
        ((400, 1000), (205, 512)),
        ((2000, 2000), (512, 512)),
        ((300, 200), (300, 200)),
        ((512, 100), (512, 100)),
        ((5000, 1), (512, 1)),
    ])
    def test_fits_longest_edge(self, size, expected):
        assert scaled_dimensions(*size, max_edge=512) == expected


class TestPrepare:

    def test_large_png_is_resized_to_jpeg(self, png_bytes):
        payload = prepare(png_bytes)

        assert payload.mime_type == "image/jpeg"
        img = _decode(payload)
        assert img.format == "JPEG"
        assert img.size == (512, 384)

    def test_small_image_not_upscaled(self):
        payload = prepare(make_image_bytes(120, 80))
        assert _decode(payload).size == (120, 80)

    def test_data_uri_input(self):
        uri = to_data_uri(make_image_bytes(800, 1600), "image/png")
        payload = prepare(uri)
        assert payload.mime_type == "image/jpeg"
        assert _decode(payload).size == (256, 512)

    def test_bare_base64_input(self):
        data = base64.b64encode(make_image_bytes(64, 64)).decode("ascii")
        assert _decode(prepare(data)).size == (64, 64)

    def test_alpha_channel_flattened(self):
        payload = prepare(make_image_bytes(600, 600, mode="RGBA"))
        img = _decode(payload)
        assert img.mode == "RGB"
        assert img.size == (512, 512)

    def test_respects_custom_edge_and_quality(self, png_bytes):
        payload = prepare(png_bytes, max_edge=256, quality=30)
        assert _decode(payload).size == (256, 192)

    def test_exif_rotation_applied_before_resize(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 degrees clockwise on display
        buf = io.BytesIO()
        Image.new("RGB", (1024, 512), (120, 40, 40)).save(buf, format="JPEG", exif=exif)

        payload = prepare(buf.getvalue())

        assert _decode(payload).size == (256, 512)

    def test_undecodable_data_uri_passes_original_through(self):
        payload = prepare("data:image/heic;base64,AAAA")
        assert payload.mime_type == "image/heic"
        assert payload.encoded_data == "AAAA"

    def test_undecodable_bytes_pass_through_with_default_mime(self):
        payload = prepare(b"not an image")
        assert payload.mime_type == "image/jpeg"
        assert base64.b64decode(payload.encoded_data) == b"not an image"

    def test_data_uri_without_mime_uses_default(self):
        payload = prepare("data:;base64,AAAA")
        assert payload.mime_type == "image/jpeg"

    @pytest.mark.parametrize("source", ["", "   ", b"", "data:image/png;base64,", "data:image/png;base64"])
    def test_empty_source_raises(self, source):
        with pytest.raises(ImageProcessingError):
            prepare(source)
