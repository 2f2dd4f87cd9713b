"""Ошибки движка перекомпрессии.

Поиск по лестнице качества/разрешения не является обработкой сбоев:
эти исключения означают, что вызов завершён без результата.
"""
from __future__ import annotations


class CompressionError(Exception):
    """Базовое исключение для всех ошибок движка."""


class DecodeError(CompressionError):
    """Входные байты не удалось декодировать как растровое изображение."""


class EncodeError(CompressionError):
    """Кодировщик не смог выдать JPEG для заданных (ширина, высота, качество)."""
