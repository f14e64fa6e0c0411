"""Advisory system recommendation for underwriters (never drives transitions)"""

from dataclasses import dataclass
from typing import List

from finrisk_gateway.domain.models import FlagSeverity, LoanApplication
from finrisk_gateway.domain.scoring import MAX_SCORE, MIN_SCORE

CONFIDENT_APPROVE = "CONFIDENT APPROVE"
CONDITIONAL_APPROVE = "CONDITIONAL APPROVE"
REJECT_RECOMMENDATION = "REJECT RECOMMENDATION"
MANUAL_REVIEW = "MANUAL REVIEW"


@dataclass(frozen=True)
class SystemRecommendation:
    verdict: str
    confidence: int
    summary: str


def recommendation_confidence(score: int) -> int:
    return round((score - MIN_SCORE) / (MAX_SCORE - MIN_SCORE) * 100)


def system_recommendation(application: LoanApplication) -> SystemRecommendation:
    """
    Derive a qualitative verdict from score, flags and verification signals.

    Rules are checked in order:
    - CONFIDENT APPROVE: score >= 750 and no flags
    - CONDITIONAL APPROVE: score >= 650
    - REJECT RECOMMENDATION: score < 550 or any HIGH severity flag
    - MANUAL REVIEW: everything else
    """
    credit_score = application.credit_score
    score = credit_score.score if credit_score else MIN_SCORE
    flags = credit_score.risk_flags if credit_score else ()
    confidence = recommendation_confidence(score)

    if score >= 750 and not flags:
        verdict = CONFIDENT_APPROVE
    elif score >= 650:
        verdict = CONDITIONAL_APPROVE
    elif score < 550 or any(f.severity == FlagSeverity.HIGH for f in flags):
        verdict = REJECT_RECOMMENDATION
    else:
        verdict = MANUAL_REVIEW

    reasons: List[str] = []
    analysis = application.statement_analysis
    if analysis:
        if analysis.bounces == 0:
            reasons.append("clean repayment history (0 bounces)")
        if analysis.income_stability_score > 80:
            reasons.append("high income stability")
        if application.monthly_income > 50_000:
            reasons.append("strong debt service coverage")
    if application.liveness_result and application.liveness_result.is_live:
        reasons.append("verified biometric liveness")
    if flags:
        reasons.append(f"notable risk factors: {', '.join(f.code for f in flags)}")

    supported_by = ", ".join(reasons[:3]) or "no supporting signals"
    summary = (
        f"System suggests {verdict} with {confidence}% confidence. "
        f"Decision is supported by {supported_by} and an internal risk score of {score}."
    )
    return SystemRecommendation(verdict=verdict, confidence=confidence, summary=summary)
