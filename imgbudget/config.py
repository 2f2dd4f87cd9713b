"""Параметры движка перекомпрессии.

Принципы:
- SRP: только константы поиска, без логики кодирования.
- Неизменяемость (`frozen=True`): настройки разделяются между вызовами безопасно.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class CompressionSettings:
    """Константы лестницы качества и разрешения.

    Fields:
        max_width: Ширина, до которой изображение уменьшается перед поиском, px.
        min_width: Порог ширины, ниже которого поиск прекращается, px.
        start_quality: Начальное качество лестницы.
        resize_quality: Качество, с которого лестница начинается после уменьшения.
        resize_factor: Множитель сторон на каждом шаге уменьшения.
        default_max_size_kb: Бюджет по умолчанию для `compress_file`, KB.
        background: Цвет подложки для прозрачных пикселей (RGB).
    """
    max_width: int = 800
    min_width: int = 200
    start_quality: float = 0.7
    resize_quality: float = 0.5
    resize_factor: float = 0.7
    default_max_size_kb: float = 25.0
    background: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if self.max_width <= 0 or self.min_width <= 0:
            raise ValueError("max_width и min_width должны быть > 0")
        if not 0.0 < self.resize_factor < 1.0:
            raise ValueError(f"resize_factor должен быть в (0, 1): {self.resize_factor}")
        for name in ("start_quality", "resize_quality"):
            value = getattr(self, name)
            if not 0.1 <= value <= 0.9:
                raise ValueError(f"{name} должен быть в [0.1, 0.9]: {value}")
        if self.default_max_size_kb <= 0:
            raise ValueError("default_max_size_kb должен быть > 0")
        if len(self.background) != 3 or any(not 0 <= c <= 255 for c in self.background):
            raise ValueError(f"некорректный цвет подложки: {self.background!r}")


DEFAULT_SETTINGS = CompressionSettings()


def _parse_background(raw: str) -> Tuple[int, int, int]:
    # "255,255,255"
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 3:
        raise ValueError(f"ожидается R,G,B: {raw!r}")
    r, g, b = (int(p) for p in parts)
    return (r, g, b)


def settings_from_env(
    prefix: str = "IMGBUDGET_",
    environ: Optional[Mapping[str, str]] = None,
    base: CompressionSettings = DEFAULT_SETTINGS,
) -> CompressionSettings:
    """Собирает настройки из переменных окружения поверх `base`.

    Имя переменной: префикс + имя поля в верхнем регистре,
    например `IMGBUDGET_MAX_WIDTH=1024`.

    Raises:
        ValueError: если значение не приводится к типу поля или нарушает ограничения.
    """
    env = os.environ if environ is None else environ
    overrides = {}
    for f in fields(CompressionSettings):
        raw = env.get(prefix + f.name.upper())
        if raw is None or raw.strip() == "":
            continue
        current = getattr(base, f.name)
        if f.name == "background":
            overrides[f.name] = _parse_background(raw)
        elif isinstance(current, int):
            overrides[f.name] = int(raw)
        else:
            overrides[f.name] = float(raw)
    if not overrides:
        return base
    return replace(base, **overrides)
