"""Движок перекомпрессии: подбор (разрешение, качество) под бюджет в байтах.

Порядок поиска:
1. Вход уже укладывается в бюджет -> возвращается без изменений, без декодирования.
2. Декодирование и однократное уменьшение до `max_width` с сохранением пропорций.
3. Лестница качества 0.7, 0.6, ... 0.1 на текущем разрешении; первый подходящий
   кандидат возвращается сразу.
4. Лестница исчерпана и ширина > `min_width` -> стороны умножаются на
   `resize_factor`, качество сбрасывается на `resize_quality`, лестница повторяется.
5. Лестница исчерпана при ширине <= `min_width` -> возвращается последний
   кандидат, даже если он больше бюджета.

Поиск реализован итеративно: число попыток ограничено
O(log(W / min_width) * 7), бесконечный цикл невозможен.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Tuple

from imgbudget.config import DEFAULT_SETTINGS, CompressionSettings
from imgbudget.models.image_model import (
    JPEG_CONTENT_TYPE,
    CompressionResult,
    EncodedCandidate,
    PixelBuffer,
    Quality,
    SearchState,
    UploadFile,
    round_half_up,
)
from imgbudget.services.image_service import ImageService

logger = logging.getLogger(__name__)

AttemptCallback = Callable[[EncodedCandidate], None]


class CompressService:
    """Recompression Engine.

    Каждый вызов владеет своим буфером пикселей и состоянием поиска;
    между вызовами общего изменяемого состояния нет.
    """

    def __init__(
        self,
        settings: CompressionSettings = DEFAULT_SETTINGS,
        image_service: Optional[ImageService] = None,
        on_attempt: Optional[AttemptCallback] = None,
    ) -> None:
        self.settings = settings
        self.image_service = image_service or ImageService(background=settings.background)
        self.on_attempt = on_attempt

    def compress(self, data: bytes, max_size_bytes: int) -> bytes:
        """Возвращает байты изображения размером не больше `max_size_bytes`, если это достижимо.

        Raises:
            ValueError: если бюджет не положительное целое.
            DecodeError: если вход не декодируется.
            EncodeError: если кодировщик не смог выдать JPEG.
        """
        return self.compress_detailed(data, max_size_bytes).data

    def compress_detailed(self, data: bytes, max_size_bytes: int) -> CompressionResult:
        """Как `compress`, но с размерами, качеством и флагами результата."""
        _validate_budget(max_size_bytes)

        if len(data) <= max_size_bytes:
            logger.debug("Input already fits: %d <= %d bytes", len(data), max_size_bytes)
            return CompressionResult(data=data)

        source = self.image_service.decode(data)
        width, height = self._initial_size(source)
        state = SearchState(
            width=width,
            height=height,
            quality=Quality.from_value(self.settings.start_quality),
        )
        working = self.image_service.resize(source, state.width, state.height)
        attempts = 0

        while True:
            candidate = self._encode(working, state)
            attempts += 1

            if candidate.size <= max_size_bytes:
                logger.info(
                    "Compressed %d -> %d bytes at %dx%d q=%s (%d attempts)",
                    len(data), candidate.size, candidate.width, candidate.height, candidate.quality, attempts,
                )
                return self._result(candidate, attempts, best_effort=False)

            if not state.quality.is_minimum:
                state.quality = state.quality.step_down()
                continue

            if state.width > self.settings.min_width:
                state.shrink(self.settings.resize_factor)
                state.quality = Quality.from_value(self.settings.resize_quality)
                logger.debug("Shrinking to %dx%d, quality reset to %s", state.width, state.height, state.quality)
                # resample from the decoded source into a fresh buffer
                working = self.image_service.resize(source, state.width, state.height)
                continue

            logger.warning(
                "Best-effort result: %d bytes at %dx%d exceeds budget of %d bytes",
                candidate.size, candidate.width, candidate.height, max_size_bytes,
            )
            return self._result(candidate, attempts, best_effort=True)

    def compress_file(self, upload: UploadFile, max_size_kb: Optional[float] = None) -> UploadFile:
        """Сжимает загруженный файл под бюджет в килобайтах (1 KB = 1024 байта).

        Имя файла сохраняется; после перекодирования тип становится `image/jpeg`,
        а время изменения обновляется.
        """
        if max_size_kb is None:
            max_size_kb = self.settings.default_max_size_kb
        if max_size_kb <= 0:
            raise ValueError(f"max_size_kb должен быть > 0: {max_size_kb}")
        max_size_bytes = max(1, int(max_size_kb * 1024))

        result = self.compress_detailed(upload.data, max_size_bytes)
        if not result.reencoded:
            return upload
        return replace(
            upload,
            data=result.data,
            content_type=JPEG_CONTENT_TYPE,
            last_modified=int(time.time() * 1000),
        )

    # ---- Helpers ----
    def _initial_size(self, source: PixelBuffer) -> Tuple[int, int]:
        max_width = self.settings.max_width
        if source.width <= max_width:
            return source.width, source.height
        height = max(1, round_half_up(source.height * max_width / source.width))
        return max_width, height

    def _encode(self, working: PixelBuffer, state: SearchState) -> EncodedCandidate:
        candidate = EncodedCandidate(
            data=self.image_service.encode_jpeg(working, state.quality),
            quality=state.quality,
            width=working.width,
            height=working.height,
        )
        state.last_candidate = candidate
        if self.on_attempt is not None:
            self.on_attempt(candidate)
        return candidate

    @staticmethod
    def _result(candidate: EncodedCandidate, attempts: int, best_effort: bool) -> CompressionResult:
        return CompressionResult(
            data=candidate.data,
            width=candidate.width,
            height=candidate.height,
            quality=candidate.quality,
            attempts=attempts,
            content_type=JPEG_CONTENT_TYPE,
            reencoded=True,
            best_effort=best_effort,
        )


def _validate_budget(max_size_bytes: int) -> None:
    if isinstance(max_size_bytes, bool) or not isinstance(max_size_bytes, int):
        raise ValueError(f"max_size_bytes должен быть целым: {max_size_bytes!r}")
    if max_size_bytes <= 0:
        raise ValueError(f"max_size_bytes должен быть > 0: {max_size_bytes}")


def compress(data: bytes, max_size_bytes: int) -> bytes:
    """Сжатие с настройками по умолчанию."""
    return CompressService().compress(data, max_size_bytes)
