from __future__ import annotations

from typing import Callable, List, Tuple

import pytest
from PIL import Image

from imgbudget.models.image_model import EncodedCandidate
from imgbudget.services.image_service import ImageService
from tests.images import encode, gradient_image


class CountingImageService(ImageService):
    """ImageService that counts decode and header-sniff calls."""

    def __init__(self) -> None:
        super().__init__()
        self.decode_calls = 0
        self.sniff_calls = 0

    def decode(self, data: bytes):
        self.decode_calls += 1
        return super().decode(data)

    def sniff_content_type(self, data: bytes):
        self.sniff_calls += 1
        return super().sniff_content_type(data)


@pytest.fixture
def counting_image_service() -> CountingImageService:
    return CountingImageService()


@pytest.fixture
def attempt_log() -> Tuple[List[EncodedCandidate], Callable[[EncodedCandidate], None]]:
    attempts: List[EncodedCandidate] = []
    return attempts, attempts.append


@pytest.fixture
def small_png() -> bytes:
    return encode(Image.new("RGB", (64, 48), color=(200, 40, 40)))


@pytest.fixture
def flat_png_1000x750() -> bytes:
    return encode(Image.new("RGB", (1000, 750), color=(30, 120, 200)))


@pytest.fixture
def gradient_bmp_1000x500() -> bytes:
    return encode(gradient_image(1000, 500), fmt="BMP")
