"""
Unit tests for the color classifier.
"""

from core.color import classify, classify_sample
from core.config import ColorThresholds
from core.types import BlockColor, ColorSample


class TestClassify:
    def test_blue(self):
        assert classify(r=10, g=10, b=60, c=255) == BlockColor.BLUE

    def test_yellow(self):
        assert classify(r=80, g=90, b=20, c=255) == BlockColor.YELLOW

    def test_dark_reading_is_unknown(self):
        assert classify(r=0, g=0, b=0, c=0) == BlockColor.UNKNOWN

    def test_thresholds_are_strict(self):
        """b must exceed the minimum, not equal it."""
        assert classify(r=10, g=10, b=40, c=255) == BlockColor.UNKNOWN
        assert classify(r=10, g=75, b=60, c=255) == BlockColor.UNKNOWN

    def test_overlap_resolves_to_unknown(self):
        """r,g in (50, 75) and b in (40, 45) satisfy both rules."""
        assert classify(r=60, g=60, b=42, c=255) == BlockColor.UNKNOWN

    def test_clear_channel_is_ignored(self):
        assert classify(10, 10, 60, 0) == classify(10, 10, 60, 9999)

    def test_custom_thresholds(self):
        strict = ColorThresholds(blue_b_min=100)
        assert classify(10, 10, 60, 255, strict) == BlockColor.UNKNOWN
        assert classify(10, 10, 120, 255, strict) == BlockColor.BLUE


def test_classify_sample():
    assert classify_sample(ColorSample(80, 90, 20, 255)) == BlockColor.YELLOW
