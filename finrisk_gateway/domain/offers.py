"""Loan offer generation with reducing-balance EMI"""

import math
from typing import Dict, NamedTuple

from finrisk_gateway.domain.models import ApplicantProfile, InternalCreditScore, LoanOffer, RiskCategory

MAX_PRINCIPAL = 500_000
PRINCIPAL_STEP = 1_000


class Pricing(NamedTuple):
    roi: float  # annual rate, percent
    tenure: int  # months
    income_multiplier: int


PRICING: Dict[RiskCategory, Pricing] = {
    RiskCategory.LOW: Pricing(roi=10.5, tenure=36, income_multiplier=12),
    RiskCategory.MEDIUM: Pricing(roi=14.5, tenure=24, income_multiplier=8),
    RiskCategory.HIGH: Pricing(roi=19.5, tenure=12, income_multiplier=4),
    RiskCategory.VERY_HIGH: Pricing(roi=24.0, tenure=6, income_multiplier=2),
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_principal(monthly_income: float, income_multiplier: int) -> int:
    """Income-based principal, capped and rounded down to the nearest thousand"""
    capped = min(monthly_income * income_multiplier, MAX_PRINCIPAL)
    return int(capped // PRINCIPAL_STEP) * PRINCIPAL_STEP


def calculate_emi(principal: float, annual_rate: float, tenure_months: int) -> float:
    """
    Equated monthly installment under reducing-balance amortization.

        EMI = P * r * (1 + r)^n / ((1 + r)^n - 1),  r = annual_rate / 12 / 100

    Returns the unrounded amount. A zero principal yields 0 and a zero rate
    falls back to straight-line repayment.
    """
    if principal <= 0 or tenure_months <= 0:
        return 0.0

    monthly_rate = annual_rate / 12 / 100
    if monthly_rate == 0:
        return principal / tenure_months

    growth = (1 + monthly_rate) ** tenure_months
    return principal * monthly_rate * growth / (growth - 1)


def generate_offer(profile: ApplicantProfile, score: InternalCreditScore) -> LoanOffer:
    """
    Price a loan offer from the score's risk category.

    Example:
        income 10,000, VERY_HIGH -> 2x = 20,000 at 24% over 6 months
        r = 0.02, EMI = 20000 * 0.02 * 1.02^6 / (1.02^6 - 1) = 3570.52 -> 3571
    """
    pricing = PRICING[score.category]
    principal = calculate_principal(profile.monthly_income, pricing.income_multiplier)
    emi = calculate_emi(principal, pricing.roi, pricing.tenure)

    return LoanOffer(
        amount=principal,
        roi=pricing.roi,
        tenure=pricing.tenure,
        emi=round_half_up(emi),
    )
