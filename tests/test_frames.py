import numpy as np
import pytest

from curconvert.frames import compose_sprite_sheet, limit_frames, resize_pixels, select_frame_indices
from curconvert.models import DecodedFrame

from helpers import solid_rgba


def numbered_frames(count, size=4):
    return [DecodedFrame(solid_rgba(size, size, (i, 0, 0, 255))) for i in range(count)]


def test_thirty_frames_down_to_twenty_four():
    indices = select_frame_indices(30, 24)

    assert len(indices) == 24
    assert indices[0] == 0
    assert indices[-1] == 29
    assert indices == sorted(indices)


@pytest.mark.parametrize("count", [25, 31, 48, 100, 1000])
def test_selection_invariants(count):
    indices = select_frame_indices(count)

    assert len(indices) == 24
    assert (indices[0], indices[-1]) == (0, count - 1)
    assert all(0 <= i < count for i in indices)
    assert all(a <= b for a, b in zip(indices, indices[1:]))


def test_selection_without_downsampling():
    assert select_frame_indices(5) == [0, 1, 2, 3, 4]
    assert select_frame_indices(10, 1) == [0]


def test_compose_stacks_in_order():
    sheet = compose_sprite_sheet(numbered_frames(3))

    assert sheet.shape == (12, 4, 4)
    assert [int(sheet[i * 4, 0, 0]) for i in range(3)] == [0, 1, 2]


def test_compose_single_frame_is_passthrough():
    frame = numbered_frames(1)[0]
    assert compose_sprite_sheet([frame]) is frame.pixels


def test_compose_resizes_to_first_frame():
    frames = [DecodedFrame(solid_rgba(8, 8, (1, 2, 3, 255))), DecodedFrame(solid_rgba(16, 16, (7, 7, 7, 255)))]
    sheet = compose_sprite_sheet(frames)

    assert sheet.shape == (16, 8, 4)
    assert np.abs(sheet[12, 4].astype(int) - (7, 7, 7, 255)).max() <= 1


def test_compose_requires_frames():
    with pytest.raises(ValueError):
        compose_sprite_sheet([])


def test_resize_pixels():
    resized = resize_pixels(solid_rgba(2, 3, (5, 6, 7, 255)), 6, 9)
    assert resized.shape == (9, 6, 4)


def test_limit_frames_scales_duration():
    sheet = compose_sprite_sheet(numbered_frames(30))
    limited, count, duration = limit_frames(sheet, 30, 0.05)

    assert count == 24
    assert limited.shape == (24 * 4, 4, 4)
    assert duration == pytest.approx(0.05 * 30 / 24)
    assert int(limited[0, 0, 0]) == 0
    assert int(limited[-1, 0, 0]) == 29


def test_limit_frames_under_ceiling_is_untouched():
    sheet = np.zeros((8, 4, 4), np.uint8)
    limited, count, duration = limit_frames(sheet, 2, 0.1)
    assert limited is sheet
    assert (count, duration) == (2, 0.1)
