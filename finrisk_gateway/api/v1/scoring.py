"""POST /v1/score - stateless scoring and offer quote"""

from fastapi import APIRouter, HTTPException

from finrisk_gateway.api.v1.schemas import (
    CreditScoreSchema,
    LoanOfferSchema,
    ScoreRequest,
    ScoreResponse,
)
from finrisk_gateway.domain.exceptions import InvalidInputError
from finrisk_gateway.domain.models import ApplicantProfile, BankStatementAnalysis
from finrisk_gateway.domain.offers import generate_offer
from finrisk_gateway.domain.scoring import score_application
from finrisk_gateway.infrastructure.observability.metrics import record_scoring

router = APIRouter()


@router.post("/score", response_model=ScoreResponse)
def quote(request_body: ScoreRequest):
    """
    Score a profile and price an offer without creating an application.

    Returns:
        Internal credit score with factor breakdown and flags, plus the offer
    """
    try:
        profile = ApplicantProfile(**request_body.profile.model_dump())
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail={"code": "invalid_input", "message": str(e)})

    analysis = None
    if request_body.statement_analysis is not None:
        analysis = BankStatementAnalysis(**request_body.statement_analysis.model_dump())

    score = score_application(profile, analysis)
    offer = generate_offer(profile, score)
    record_scoring(score.category.value, offer.amount)

    return ScoreResponse(
        credit_score=CreditScoreSchema.model_validate(score),
        loan_offer=LoanOfferSchema.model_validate(offer),
    )
