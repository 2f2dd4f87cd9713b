"""Контроллер загрузки: связывает вызывающую сторону и движок перекомпрессии.

SOLID:
- SRP: класс управляет потоком «файл -> движок -> результат/ошибка», без логики сжатия.
- DIP: зависит от сервисов как от ролей; конкретные реализации подставляются снаружи.
Clean Code:
- Обработчики компактны; подбор качества и разрешения вынесен в `CompressService`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from imgbudget.config import settings_from_env
from imgbudget.errors import CompressionError, DecodeError, EncodeError
from imgbudget.models.image_model import UploadFile
from imgbudget.services.compress_service import CompressService
from imgbudget.services.image_service import ImageService

logger = logging.getLogger(__name__)

DECODE_ERROR_MESSAGE = "Не удалось прочитать изображение. Выберите другой файл."
ENCODE_ERROR_MESSAGE = "Не удалось сжать изображение. Попробуйте ещё раз."


def _default_compress_service() -> CompressService:
    return CompressService(settings=settings_from_env())


@dataclass
class UploadController:
    """Обрабатывает одно событие загрузки за раз.

    Ответственности:
    - Чтение файла через `ImageService` (если передан путь).
    - Сжатие под бюджет через `CompressService`.
    - Передача результата в `on_result` или текста ошибки в `on_error`.

    При ошибке движка `current_upload` сбрасывается в `None`, частичный
    результат никогда не передаётся дальше.
    """
    max_size_kb: Optional[float] = None
    on_result: Optional[Callable[[UploadFile], None]] = None
    on_error: Optional[Callable[[str], None]] = None

    _image_service: ImageService = field(default_factory=ImageService)
    _compress_service: CompressService = field(default_factory=_default_compress_service)
    current_upload: Optional[UploadFile] = None

    def handle_upload(self, source: Union[str, Path, UploadFile]) -> Optional[UploadFile]:
        """Сжимает выбранный файл и сообщает результат через колбэки.

        Returns:
            Сжатый `UploadFile` или `None`, если сжать не удалось.

        Raises:
            FileNotFoundError: если путь не существует.
        """
        if isinstance(source, UploadFile):
            upload = source
        else:
            upload = self._image_service.load_upload(source)

        self.current_upload = None
        try:
            compressed = self._compress_service.compress_file(upload, self.max_size_kb)
        except DecodeError as exc:
            self._report(upload, exc, DECODE_ERROR_MESSAGE)
            return None
        except EncodeError as exc:
            self._report(upload, exc, ENCODE_ERROR_MESSAGE)
            return None

        self.current_upload = compressed
        if self.on_result:
            self.on_result(compressed)
        return compressed

    def clear(self) -> None:
        self.current_upload = None

    # ---- Helpers ----
    def _report(self, upload: UploadFile, exc: CompressionError, message: str) -> None:
        logger.warning("Upload %r rejected: %s", upload.name, exc)
        if self.on_error:
            self.on_error(message)
