"""
Color Classifier - Single responsibility: map a raw light reading to a label

Pure functions, no state. Thresholds come from configuration.
"""

from .config import ColorThresholds
from .types import BlockColor, ColorSample


DEFAULT_THRESHOLDS = ColorThresholds()


def is_blue(r: float, g: float, b: float, thresholds: ColorThresholds = DEFAULT_THRESHOLDS) -> bool:
    return b > thresholds.blue_b_min and r < thresholds.blue_rg_max and g < thresholds.blue_rg_max


def is_yellow(r: float, g: float, b: float, thresholds: ColorThresholds = DEFAULT_THRESHOLDS) -> bool:
    return r > thresholds.yellow_rg_min and g > thresholds.yellow_rg_min and b < thresholds.yellow_b_max


def classify(
    r: float,
    g: float,
    b: float,
    c: float,
    thresholds: ColorThresholds = DEFAULT_THRESHOLDS,
) -> BlockColor:
    """
    Classify a reading as Blue, Yellow or Unknown.

    The clear channel `c` is accepted for completeness but does not take
    part in the decision. A reading that satisfies both the blue and the
    yellow rule is ambiguous and resolves to Unknown.
    """
    blue = is_blue(r, g, b, thresholds)
    yellow = is_yellow(r, g, b, thresholds)
    if blue and not yellow:
        return BlockColor.BLUE
    if yellow and not blue:
        return BlockColor.YELLOW
    return BlockColor.UNKNOWN


def classify_sample(sample: ColorSample, thresholds: ColorThresholds = DEFAULT_THRESHOLDS) -> BlockColor:
    return classify(sample.r, sample.g, sample.b, sample.c, thresholds)
