"""Декодирование, масштабирование и JPEG-кодирование изображений.

Принципы:
- SRP: класс отвечает только за ввод/вывод пикселей; решения о бюджете принимает движок.
- OCP: новые источники (стрим, URL) можно добавить отдельными методами.
- Ошибки PIL оборачиваются в `DecodeError`/`EncodeError` на границе сервиса.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from imgbudget.errors import DecodeError, EncodeError
from imgbudget.models.image_model import PixelBuffer, Quality, UploadFile

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError)


class ImageService:
    def __init__(self, background: Tuple[int, int, int] = (0, 0, 0)) -> None:
        self._background = background

    def decode(self, data: bytes) -> PixelBuffer:
        """Декодирует байты в `PixelBuffer`.

        Ориентация из EXIF применяется сразу, поэтому размеры совпадают
        с тем, как изображение отображается.

        Raises:
            DecodeError: если байты не распознаны или повреждены.
        """
        try:
            with Image.open(io.BytesIO(data)) as opened:
                source_format = opened.format
                opened.load()
                image = ImageOps.exif_transpose(opened)
                if image is opened:
                    image = opened.copy()
        except _DECODE_ERRORS as exc:
            raise DecodeError(f"Байты не являются изображением: {exc}") from exc

        width, height = image.size
        if width <= 0 or height <= 0:
            raise DecodeError(f"Пустое изображение: {width}x{height}")
        return PixelBuffer(image=image, width=width, height=height, source_format=source_format)

    def resize(self, buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
        """Возвращает новый буфер заданного размера; исходный не мутируется."""
        if (width, height) == (buffer.width, buffer.height):
            return buffer
        resized = buffer.image.resize((width, height), Image.Resampling.LANCZOS)
        return PixelBuffer(image=resized, width=width, height=height, source_format=buffer.source_format)

    def encode_jpeg(self, buffer: PixelBuffer, quality: Quality) -> bytes:
        """Кодирует буфер в JPEG с качеством `quality`.

        Raises:
            EncodeError: если PIL не смог записать JPEG или результат пуст.
        """
        out = io.BytesIO()
        try:
            self._flatten(buffer.image).save(out, format="JPEG", quality=quality.pillow_quality)
        except (OSError, ValueError, MemoryError) as exc:
            raise EncodeError(
                f"Не удалось закодировать JPEG {buffer.width}x{buffer.height} q={quality}: {exc}"
            ) from exc
        data = out.getvalue()
        if not data:
            raise EncodeError(f"Пустой результат кодирования {buffer.width}x{buffer.height} q={quality}")
        return data

    def sniff_content_type(self, data: bytes) -> Optional[str]:
        """MIME-тип по заголовку файла без полного декодирования."""
        try:
            with Image.open(io.BytesIO(data)) as opened:
                return opened.get_format_mimetype()
        except _DECODE_ERRORS:
            return None

    def load_upload(self, file_path: str | Path) -> UploadFile:
        """Читает файл с диска и упаковывает его в `UploadFile`.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        data = path.read_bytes()
        try:
            last_modified: Optional[int] = int(path.stat().st_mtime * 1000)
        except OSError:
            last_modified = None

        return UploadFile(
            name=path.name,
            data=data,
            content_type=self.sniff_content_type(data),
            last_modified=last_modified,
        )

    # ---- Helpers ----
    def _flatten(self, image: Image.Image) -> Image.Image:
        """Приводит изображение к RGB, подкладывая фон под прозрачные пиксели."""
        if image.mode == "RGB":
            return image
        if image.mode == "P" and "transparency" in image.info:
            image = image.convert("RGBA")
        if image.mode in ("RGBA", "LA", "PA"):
            rgba = image.convert("RGBA")
            canvas = Image.new("RGB", rgba.size, self._background)
            canvas.paste(rgba, mask=rgba.getchannel("A"))
            return canvas
        return image.convert("RGB")
