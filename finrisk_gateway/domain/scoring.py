"""Credit scoring engine - core business logic for internal credit scores"""

from typing import List, Optional, Tuple

from finrisk_gateway.domain.models import (
    ApplicantProfile,
    BankStatementAnalysis,
    EmploymentType,
    FlagSeverity,
    InternalCreditScore,
    ResidenceType,
    RiskCategory,
    RiskFlag,
    ScoreFactors,
)

BASE_SCORE = 450
MIN_SCORE = 300
MAX_SCORE = 900

KYC_POINTS = 50  # verification is complete by the time an application is scored
STABILITY_POINTS = 20


def _bank_behavior(analysis: Optional[BankStatementAnalysis]) -> Tuple[int, List[RiskFlag]]:
    """
    Score banking conduct from the statement analysis.

    The negative balance penalty and the bounce flag are evaluated
    independently and stack when both conditions hold.
    """
    if analysis is None:
        return 0, []

    points = 0
    flags: List[RiskFlag] = []

    if analysis.avg_monthly_balance > 50_000:
        points += 80
    if analysis.salary_credits > 0:
        points += 70
    if analysis.bounces == 0:
        points += 60
    if analysis.negative_balance_days > 2:
        points -= 100
        flags.append(
            RiskFlag("NEGATIVE_BALANCE", FlagSeverity.HIGH, "Recent negative balance instances detected")
        )
    if analysis.bounces > 0:
        flags.append(RiskFlag("BOUNCE_DETECTED", FlagSeverity.HIGH, "Cheque/NACH bounce history"))
    if analysis.existing_emis > 2:
        points -= 60

    return points, flags


def _income_employment(profile: ApplicantProfile) -> Tuple[int, List[RiskFlag]]:
    points = 0
    flags: List[RiskFlag] = []

    if profile.employment_type == EmploymentType.SALARIED:
        points += 70
    if profile.monthly_income < 15_000:
        points -= 60
        flags.append(
            RiskFlag("LOW_INCOME", FlagSeverity.MEDIUM, "Net monthly income below risk threshold")
        )
    elif profile.monthly_income > 100_000:
        points += 30

    return points, flags


def _residence(profile: ApplicantProfile) -> Tuple[int, List[RiskFlag]]:
    if profile.residence_type == ResidenceType.OWN:
        return 50, []
    if profile.residence_type == ResidenceType.RENTED:
        return -40, [RiskFlag("RENTED_RESIDENCE", FlagSeverity.LOW, "Applicant resides in rented property")]
    return 0, []


def debt_to_income_ratio(profile: ApplicantProfile, analysis: Optional[BankStatementAnalysis]) -> float:
    """Monthly EMI outflow over monthly income; 0 when either is unknown or zero"""
    if analysis is None or profile.monthly_income <= 0:
        return 0.0
    return analysis.emi_amount / profile.monthly_income


def _discipline(profile: ApplicantProfile, analysis: Optional[BankStatementAnalysis]) -> Tuple[int, List[RiskFlag]]:
    # Zero income carries no repayment signal either way
    if profile.monthly_income <= 0:
        return 0, []

    dti = debt_to_income_ratio(profile, analysis)
    if dti <= 0.4:
        return 40, []
    if dti > 0.5:
        return -80, [RiskFlag("HIGH_DTI", FlagSeverity.HIGH, "Debt-to-Income ratio exceeds 50%")]
    return 0, []


def calculate_score_factors(
    profile: ApplicantProfile,
    analysis: Optional[BankStatementAnalysis],
) -> Tuple[ScoreFactors, List[RiskFlag]]:
    """
    Compute the six independent factor contributions and the flags they raise.

    Factors (relative weight in the scorecard):
    - Bank behavior (40%)
    - Income & employment (25%)
    - Residence (10%)
    - KYC strength (10%)
    - Repayment discipline (10%)
    - Stability (5%)
    """
    bank_points, bank_flags = _bank_behavior(analysis)
    income_points, income_flags = _income_employment(profile)
    residence_points, residence_flags = _residence(profile)
    discipline_points, discipline_flags = _discipline(profile, analysis)

    factors = ScoreFactors(
        bank_behavior=bank_points,
        income_employment=income_points,
        residence=residence_points,
        kyc=KYC_POINTS,
        discipline=discipline_points,
        stability=STABILITY_POINTS,
    )
    flags = bank_flags + income_flags + residence_flags + discipline_flags
    return factors, flags


def categorize_score(score: int) -> RiskCategory:
    """
    Map a clamped score to its risk category.

    Bands:
    - 750-900: LOW
    - 650-749: MEDIUM
    - 550-649: HIGH
    - 300-549: VERY_HIGH
    """
    if score >= 750:
        return RiskCategory.LOW
    elif score >= 650:
        return RiskCategory.MEDIUM
    elif score >= 550:
        return RiskCategory.HIGH
    else:
        return RiskCategory.VERY_HIGH


def clamp_score(raw_score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, raw_score))


def score_application(
    profile: ApplicantProfile,
    analysis: Optional[BankStatementAnalysis] = None,
) -> InternalCreditScore:
    """
    Main entry point: score an applicant from profile and statement analysis.

    Never raises for a valid profile; a missing analysis scores as neutral.
    """
    factors, flags = calculate_score_factors(profile, analysis)
    score = clamp_score(BASE_SCORE + factors.total)

    return InternalCreditScore(
        score=score,
        factors=factors,
        risk_flags=tuple(flags),
        category=categorize_score(score),
    )
