import pytest

from hydrowatch.ml.classifiers import Severity, categorize_severity, detect_anomalies


@pytest.mark.parametrize(
    "risk, expected",
    [
        (0.0, Severity.LOW),
        (0.19, Severity.LOW),
        (0.2, Severity.MODERATE),
        (0.49, Severity.MODERATE),
        (0.5, Severity.HIGH),
        (0.79, Severity.HIGH),
        (0.8, Severity.CRITICAL),
        (3.5, Severity.CRITICAL),
    ],
)
def test_categorize_severity_bounds(risk, expected):
    assert categorize_severity(risk) is expected


def test_severity_serializes_as_label():
    assert Severity.MODERATE.value == "Moderate"
    assert Severity("Critical") is Severity.CRITICAL


def test_detect_anomalies_reports_nothing():
    assert detect_anomalies([0.01, 0.02, 0.001, 0.3, 0.01], [0.75]) == []
    assert detect_anomalies([], []) == []
