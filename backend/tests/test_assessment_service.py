import pytest

from hydrowatch.ml.classifiers import Severity
from hydrowatch.services.assessment_service import (
    DISEASES,
    AssessmentService,
    diseases_for_risk,
    quality_suggestion,
)


class ScriptedHealthModel:
    """Renvoie une sortie différente selon l’horizon encodé (3e feature)."""

    def __init__(self, by_timeframe):
        self.by_timeframe = by_timeframe
        self.timeframes = []

    def predict(self, x):
        years = float(x[0][2])
        self.timeframes.append(years)
        return [self.by_timeframe[years]]


@pytest.fixture
def assessment(service):
    return AssessmentService(service)


@pytest.mark.parametrize(
    "risk, count",
    [(0.0, 0), (-3.0, 0), (0.35, 1), (20.0, 1), (20.1, 2), (100.0, 5), (250.0, 5)],
)
def test_diseases_for_risk(risk, count):
    assert diseases_for_risk(risk) == list(DISEASES[:count])


@pytest.mark.parametrize(
    "confidence, fragment",
    [
        (0.1, "highly suspicious"),
        (0.3, "needs verification"),
        (0.6, "acceptable but monitor"),
        (0.8, "passes all quality checks"),
    ],
)
def test_quality_suggestion_tiers(confidence, fragment):
    msg = quality_suggestion("lead", confidence)
    assert msg.startswith("lead reading")
    assert fragment in msg


def test_health_outlook_runs_one_prediction_per_timeframe(models, assessment, run):
    model = ScriptedHealthModel({0.5: [10.0, 0.9], 1.0: [30.0, 0.8], 5.0: [0.85, 0.6]})
    models["health-risk"] = model

    outlooks, trend = run(assessment.analyze_health_outlook(75, 100000))

    assert model.timeframes == [0.5, 1.0, 5.0]
    assert [o.timeframe for o in outlooks] == ["6months", "1year", "5years"]

    six, one, five = outlooks
    assert six.affected_population == 10000
    assert six.diseases == list(DISEASES[:1])
    assert six.severity is Severity.CRITICAL
    assert one.affected_population == 30000
    assert one.diseases == list(DISEASES[:2])
    assert five.affected_population == 850
    assert five.confidence == pytest.approx(0.6)

    assert [(p.month, p.population) for p in trend] == [(0, 0), (6, 10000), (12, 30000), (60, 850)]
    assert trend[0].risk == 0.0


def test_affected_population_rounds_half_up(models, assessment, run):
    models["health-risk"].outputs = [50.0, 0.9]

    outlooks, _ = run(assessment.analyze_health_outlook(75, 1))

    # 1 * 0.5 = 0.5 -> 1 (round() donnerait 0)
    assert {o.affected_population for o in outlooks} == {1}


def test_quality_report_uses_one_model_call(models, assessment, run):
    report = run(assessment.check_data_quality({"arsenic": 0.01, "lead": None, "mercury": 0.001}))

    assert len(models["data-quality"].calls) == 1
    assert [r.parameter for r in report.rows] == ["Arsenic", "Lead", "Mercury", "Iron", "Uranium"]
    assert [r.value for r in report.rows] == [0.01, 0.0, 0.001, 0.0, 0.0]
    assert all(r.is_valid and r.confidence == pytest.approx(0.75) for r in report.rows)
    assert report.rows[0].suggestion == "arsenic reading is acceptable but monitor for trends."
    assert report.overall_quality == pytest.approx(75.0)
    assert report.anomalies == []


def test_location_uses_default_profile(models, assessment, run):
    analysis = run(assessment.analyze_location(26.9, 75.8))

    seen = models["source-detection"].calls[-1]
    assert seen.tolist() == [[0.8, 0.6, 0.3, 0.9, 0.4, 26.9, 75.8]]
    assert [label for label, _ in analysis.sources] == ["industrial", "urban", "agricultural", "natural"]
    assert analysis.sources[0][1] == pytest.approx(70.0)


def test_location_with_custom_profile(models, assessment, run):
    run(assessment.analyze_location(-12.0, 40.0, [0.1, 0.2, 0.3, 0.4, 0.5]))

    assert models["source-detection"].calls[-1].tolist() == [[0.1, 0.2, 0.3, 0.4, 0.5, -12.0, 40.0]]
