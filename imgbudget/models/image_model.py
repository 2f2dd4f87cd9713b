"""Модели данных движка перекомпрессии.

Принципы:
- SRP: только структура данных и инварианты, без кодирования/декодирования.
- Чистый код: неизменяемость (`frozen=True`) везде, кроме состояния поиска.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image

JPEG_CONTENT_TYPE = "image/jpeg"


def round_half_up(value: float) -> int:
    """Округление к ближайшему целому, половины вверх (как `Math.round`)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Quality:
    """Качество JPEG в десятых долях: 1..9 соответствует 0.1..0.9.

    Хранение в целых десятых исключает накопление ошибки при шаге 0.1,
    а проверка в конструкторе делает значения вне диапазона непредставимыми.
    """
    tenths: int

    MIN_TENTHS = 1
    MAX_TENTHS = 9

    def __post_init__(self) -> None:
        if not self.MIN_TENTHS <= self.tenths <= self.MAX_TENTHS:
            raise ValueError(f"качество вне диапазона [0.1, 0.9]: {self.tenths / 10}")

    @classmethod
    def from_value(cls, value: float) -> "Quality":
        return cls(round_half_up(value * 10))

    @property
    def value(self) -> float:
        return self.tenths / 10

    @property
    def pillow_quality(self) -> int:
        """Шкала Pillow (1..95): 0.7 -> 70."""
        return self.tenths * 10

    @property
    def is_minimum(self) -> bool:
        return self.tenths == self.MIN_TENTHS

    def step_down(self) -> "Quality":
        return Quality(max(self.MIN_TENTHS, self.tenths - 1))

    def __str__(self) -> str:
        return f"{self.value:.1f}"


@dataclass(frozen=True)
class PixelBuffer:
    """Декодированное изображение, которым владеет один вызов движка.

    Fields:
        image: Изображение PIL.
        width: Ширина, px.
        height: Высота, px.
        source_format: Формат исходных байт по данным PIL, например "PNG".
    """
    image: Image.Image
    width: int
    height: int
    source_format: Optional[str] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"некорректные размеры: {self.width}x{self.height}")


@dataclass(frozen=True)
class EncodedCandidate:
    """Результат одной попытки кодирования при заданных (ширина, высота, качество)."""
    data: bytes
    quality: Quality
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class SearchState:
    """Изменяемое состояние поиска в пределах одного вызова."""
    width: int
    height: int
    quality: Quality
    last_candidate: Optional[EncodedCandidate] = None

    def shrink(self, factor: float) -> None:
        # new size derives from the previous step, not from the source image;
        # every side above 1 px strictly decreases, whatever the factor
        self.width = max(1, min(self.width - 1, round_half_up(self.width * factor)))
        self.height = max(1, min(self.height - 1, round_half_up(self.height * factor)))


@dataclass(frozen=True)
class CompressionResult:
    """Итог вызова движка.

    Fields:
        data: Выходные байты.
        width: Ширина результата, px (None, если декодирования не было).
        height: Высота результата, px (None, если декодирования не было).
        quality: Качество последнего кодирования (None при коротком пути).
        attempts: Число попыток кодирования.
        content_type: MIME-тип выходных байт после перекодирования (None при коротком пути: вход не читается).
        reencoded: Были ли байты перекодированы в JPEG.
        best_effort: Бюджет не достигнут, возвращён последний кандидат.
    """
    data: bytes
    width: Optional[int] = None
    height: Optional[int] = None
    quality: Optional[Quality] = None
    attempts: int = 0
    content_type: Optional[str] = None
    reencoded: bool = False
    best_effort: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadFile:
    """Загруженный пользователем файл: имя, содержимое и метаданные.

    Fields:
        name: Имя файла, как его выбрал пользователь.
        data: Содержимое файла.
        content_type: MIME-тип, если известен.
        last_modified: Время изменения, миллисекунды от эпохи.
    """
    name: str
    data: bytes = field(repr=False)
    content_type: Optional[str] = None
    last_modified: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data)
