"""Unit tests for the advisory system recommendation"""

from dataclasses import replace
import pytest
from finrisk_gateway.domain.models import (
    FlagSeverity,
    InternalCreditScore,
    LivenessResult,
    RiskCategory,
    RiskFlag,
    ScoreFactors,
)
from finrisk_gateway.domain.recommendation import (
    CONDITIONAL_APPROVE,
    CONFIDENT_APPROVE,
    MANUAL_REVIEW,
    REJECT_RECOMMENDATION,
    recommendation_confidence,
    system_recommendation,
)
from finrisk_gateway.domain.scoring import categorize_score

LOW_FLAG = RiskFlag("RENTED_RESIDENCE", FlagSeverity.LOW, "Rented")
HIGH_FLAG = RiskFlag("HIGH_DTI", FlagSeverity.HIGH, "High DTI")


def _with_score(application, score, flags=()):
    credit_score = InternalCreditScore(
        score=score, factors=ScoreFactors(), risk_flags=tuple(flags), category=categorize_score(score)
    )
    return replace(application, credit_score=credit_score)


@pytest.mark.parametrize(
    "score, flags, verdict",
    [
        (780, (), CONFIDENT_APPROVE),
        (780, (LOW_FLAG,), CONDITIONAL_APPROVE),
        (700, (HIGH_FLAG,), CONDITIONAL_APPROVE),  # score rule is checked before flags
        (600, (HIGH_FLAG,), REJECT_RECOMMENDATION),
        (540, (), REJECT_RECOMMENDATION),
        (600, (LOW_FLAG,), MANUAL_REVIEW),
        (550, (), MANUAL_REVIEW),
    ],
)
def test_verdicts(submitted_application, score, flags, verdict):
    application = _with_score(submitted_application, score, flags)
    assert system_recommendation(application).verdict == verdict


@pytest.mark.parametrize("score, confidence", [(300, 0), (900, 100), (600, 50), (890, 98), (750, 75)])
def test_confidence(score, confidence):
    assert recommendation_confidence(score) == confidence


def test_unscored_application_defaults_to_floor(draft_application):
    recommendation = system_recommendation(draft_application)

    assert recommendation.verdict == REJECT_RECOMMENDATION
    assert recommendation.confidence == 0


def test_summary_lists_supporting_reasons(submitted_application):
    application = replace(submitted_application, liveness_result=LivenessResult(True, 97, "Live"))

    recommendation = system_recommendation(application)

    assert recommendation.verdict == CONFIDENT_APPROVE
    assert recommendation.confidence == 98
    assert "clean repayment history (0 bounces)" in recommendation.summary
    assert "high income stability" in recommendation.summary
    assert "internal risk score of 890" in recommendation.summary
    # Only the first three reasons are cited
    assert "verified biometric liveness" not in recommendation.summary


def test_summary_names_flag_codes(submitted_application):
    application = replace(submitted_application, statement_analysis=None)
    application = _with_score(application, 600, (HIGH_FLAG,))

    assert "notable risk factors: HIGH_DTI" in system_recommendation(application).summary


def test_recommendation_does_not_change_application(submitted_application):
    snapshot = replace(submitted_application)
    system_recommendation(submitted_application)
    assert submitted_application == snapshot
    assert submitted_application.credit_score.category == RiskCategory.LOW
