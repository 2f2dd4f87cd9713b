from __future__ import annotations

import pytest
from PIL import Image

from imgbudget.models.image_model import (
    EncodedCandidate,
    PixelBuffer,
    Quality,
    SearchState,
    UploadFile,
    round_half_up,
)


def test_quality_ladder_is_exact_tenths() -> None:
    q = Quality.from_value(0.7)
    seen = [q.value]
    while not q.is_minimum:
        q = q.step_down()
        seen.append(q.value)
    assert seen == [0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1]


def test_quality_step_down_clamps_at_minimum() -> None:
    assert Quality(1).step_down() == Quality(1)


@pytest.mark.parametrize("tenths", [0, 10, -1])
def test_quality_out_of_range_is_unrepresentable(tenths: int) -> None:
    with pytest.raises(ValueError):
        Quality(tenths)


def test_quality_pillow_scale_and_str() -> None:
    assert Quality(7).pillow_quality == 70
    assert Quality(1).pillow_quality == 10
    assert str(Quality(3)) == "0.3"


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (533.33, 533), (191.8, 192), (274.4, 274)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


def test_pixel_buffer_requires_positive_dimensions() -> None:
    image = Image.new("RGB", (1, 1))
    with pytest.raises(ValueError):
        PixelBuffer(image=image, width=0, height=1)


def test_search_state_shrinks_from_previous_step() -> None:
    state = SearchState(width=800, height=533, quality=Quality(1))
    state.shrink(0.7)
    assert (state.width, state.height) == (560, 373)
    state.shrink(0.7)
    assert (state.width, state.height) == (392, 261)


def test_search_state_never_reaches_zero() -> None:
    state = SearchState(width=1, height=1, quality=Quality(5))
    state.shrink(0.1)
    assert (state.width, state.height) == (1, 1)


def test_sizes_are_byte_lengths() -> None:
    candidate = EncodedCandidate(data=b"abc", quality=Quality(5), width=1, height=1)
    assert candidate.size == 3
    assert UploadFile(name="a.jpg", data=b"12345").size == 5


@pytest.mark.parametrize("factor", [0.999, 0.9999, 0.5])
def test_search_state_shrink_always_makes_progress(factor: float) -> None:
    state = SearchState(width=500, height=400, quality=Quality(1))
    state.shrink(factor)
    assert state.width < 500
    assert state.height < 400
