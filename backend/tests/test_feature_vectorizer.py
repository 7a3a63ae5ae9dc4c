import math

import pytest

from hydrowatch.ml.errors import InvalidFeatureError
from hydrowatch.ml.feature_vectorizer import (
    encode_timeframe,
    feature_vector,
    health_risk_features,
    quality_readings,
    source_detection_features,
)


@pytest.mark.parametrize(
    "timeframe, expected",
    [("6months", 0.5), ("1year", 1.0), ("5years", 5.0), ("10years", 1.0), ("", 1.0)],
)
def test_encode_timeframe(timeframe, expected):
    assert encode_timeframe(timeframe) == expected


def test_health_risk_vector_layout():
    assert health_risk_features(75, 100000, "5years") == (75.0, 100000.0, 5.0)


def test_source_detection_appends_coordinates():
    vec = source_detection_features([0.8, 0.6, 0.3, 0.9, 0.4], [26.9, 75.8])
    assert vec == (0.8, 0.6, 0.3, 0.9, 0.4, 26.9, 75.8)
    assert isinstance(vec, tuple)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_feature_vector_rejects_non_finite(bad):
    with pytest.raises(InvalidFeatureError) as exc_info:
        feature_vector([1.0, bad])

    assert exc_info.value.code == "INVALID_FEATURES"
    assert exc_info.value.details() == {"value": repr(bad)}


def test_feature_vector_rejects_non_numeric():
    with pytest.raises(InvalidFeatureError):
        feature_vector([1.0, "abc"])
    with pytest.raises(InvalidFeatureError):
        feature_vector([1.0, None])


def test_quality_readings_fills_missing_with_zero():
    vec = quality_readings({"arsenic": 0.01, "lead": "", "mercury": None, "iron": "0.3", "extra": 9})
    assert vec == (0.01, 0.0, 0.0, 0.3, 0.0)


def test_quality_readings_ignores_garbage():
    vec = quality_readings({"arsenic": "n/a", "lead": float("nan"), "uranium": 0.02})
    assert vec == (0.0, 0.0, 0.0, 0.0, 0.02)
