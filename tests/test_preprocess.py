"""
Preprocessing Tests
===================

Tests for FramePreprocessor and the individual transforms.
"""

import itertools

import numpy as np
import pytest

from regionwatch.imaging.preprocess import FramePreprocessor, binarize_threshold_value
from regionwatch.models import Frame, PreprocessConfig


def grey_frame(values, alpha: int = 255) -> Frame:
    """Frame from a 2D list of grey levels."""
    grey = np.array(values, dtype=np.uint8)
    pixels = np.empty(grey.shape + (4,), dtype=np.uint8)
    pixels[:, :, :3] = grey[:, :, np.newaxis]
    pixels[:, :, 3] = alpha
    return Frame(pixels=pixels, timestamp=100.0, frame_id=7)


@pytest.fixture
def preprocessor():
    return FramePreprocessor()


class TestFramePreprocessor:
    """Tests for the canonicalization pipeline."""

    def test_default_config_is_identity(self, preprocessor, half_frame):
        result = preprocessor.process(half_frame, PreprocessConfig())
        assert np.array_equal(result.pixels, half_frame.pixels)
        assert result is not half_frame
        assert result.timestamp == half_frame.timestamp
        assert result.frame_id == half_frame.frame_id

    def test_input_not_modified(self, preprocessor, half_frame):
        before = half_frame.pixels.copy()
        config = PreprocessConfig(
            binarize_enabled=True, blur_radius=2, dilate_enabled=True, invert=True
        )
        preprocessor.process(half_frame, config)
        assert np.array_equal(half_frame.pixels, before)

    def test_deterministic(self, preprocessor, half_frame):
        config = PreprocessConfig(binarize_enabled=True, blur_radius=1, invert=True)
        a = preprocessor.process(half_frame, config)
        b = preprocessor.process(half_frame, config)
        assert np.array_equal(a.pixels, b.pixels)

    @pytest.mark.parametrize(
        "binarize, invert, dilate, blur_radius",
        list(itertools.product([False, True], [False, True], [False, True], [0, 100])),
    )
    @pytest.mark.parametrize(
        "empty",
        [
            Frame.empty(timestamp=3.0, frame_id=4),
            Frame(pixels=np.zeros((5, 0, 4), dtype=np.uint8), timestamp=3.0, frame_id=4),
            Frame(pixels=np.zeros((0, 5, 4), dtype=np.uint8), timestamp=3.0, frame_id=4),
        ],
        ids=["0x0", "0x5", "5x0"],
    )
    def test_empty_frame_short_circuits(
        self, preprocessor, empty, binarize, invert, dilate, blur_radius
    ):
        config = PreprocessConfig(
            binarize_enabled=binarize,
            invert=invert,
            dilate_enabled=dilate,
            blur_radius=blur_radius,
        )
        result = preprocessor.process(empty, config)
        assert result.is_empty
        assert result.timestamp == 3.0
        assert result.frame_id == 4
        assert preprocessor.get_metrics()["empty_count"] == 1

    def test_binarize(self, preprocessor):
        frame = grey_frame([[200, 100], [128, 127]], alpha=77)
        result = preprocessor.process(frame, PreprocessConfig(binarize_enabled=True))

        # 50% → cutoff 128
        assert result.pixels[0, 0, :3].tolist() == [255, 255, 255]
        assert result.pixels[0, 1, :3].tolist() == [0, 0, 0]
        assert result.pixels[1, 0, :3].tolist() == [255, 255, 255]
        assert result.pixels[1, 1, :3].tolist() == [0, 0, 0]
        assert (result.pixels[:, :, 3] == 77).all()

    def test_binarize_threshold_extremes(self, preprocessor):
        frame = grey_frame([[0, 254, 255]])

        low = preprocessor.process(
            frame, PreprocessConfig(binarize_enabled=True, binarize_threshold=0)
        )
        assert (low.pixels[:, :, :3] == 255).all()

        high = preprocessor.process(
            frame, PreprocessConfig(binarize_enabled=True, binarize_threshold=100)
        )
        assert high.pixels[0, :, 0].tolist() == [0, 0, 255]

    def test_threshold_mapping(self):
        assert binarize_threshold_value(0) == 0
        assert binarize_threshold_value(50) == 128
        assert binarize_threshold_value(100) == 255

    def test_invert_preserves_alpha(self, preprocessor):
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0] = [10, 20, 30, 40]
        result = preprocessor.process(Frame(pixels=pixels), PreprocessConfig(invert=True))
        assert result.pixels[0, 0].tolist() == [245, 235, 225, 40]

    def test_dilate_grows_bright_pixel(self, preprocessor):
        values = [[0] * 5 for _ in range(5)]
        values[2][2] = 255
        result = preprocessor.process(
            grey_frame(values), PreprocessConfig(dilate_enabled=True)
        )
        bright = result.pixels[:, :, 0] == 255
        assert bright.sum() == 9
        assert bright[1:4, 1:4].all()
        assert (result.pixels[:, :, 3] == 255).all()

    def test_blur_spreads_bright_pixel(self, preprocessor):
        values = [[0] * 5 for _ in range(5)]
        values[2][2] = 255
        result = preprocessor.process(grey_frame(values), PreprocessConfig(blur_radius=1))
        assert 0 < result.pixels[2, 2, 0] < 255
        assert result.pixels[2, 1, 0] > 0
        assert result.pixels[0, 0, 0] == 0

    def test_blur_uniform_image_unchanged(self, preprocessor, make_frame):
        frame = make_frame(90, width=8, height=8)
        result = preprocessor.process(frame, PreprocessConfig(blur_radius=3))
        assert np.array_equal(result.pixels, frame.pixels)

    def test_binarize_runs_before_invert(self, preprocessor):
        frame = grey_frame([[200]])
        result = preprocessor.process(
            frame, PreprocessConfig(binarize_enabled=True, invert=True)
        )
        assert result.pixels[0, 0, :3].tolist() == [0, 0, 0]


class TestPreprocessConfig:
    """Tests for PreprocessConfig validation."""

    def test_defaults(self):
        config = PreprocessConfig()
        assert not config.binarize_enabled
        assert config.binarize_threshold == 50
        assert config.blur_radius == 0
        assert not config.invert
        assert not config.dilate_enabled

    def test_threshold_range(self):
        with pytest.raises(ValueError):
            PreprocessConfig(binarize_threshold=101)
        with pytest.raises(ValueError):
            PreprocessConfig(blur_radius=-1)
