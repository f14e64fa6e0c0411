"""/v1/applications - loan application lifecycle endpoints"""

import time
import logging
from typing import Callable, List, Optional, Tuple
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from finrisk_gateway.api.v1.schemas import (
    ActorRequest,
    ApplicationCreateRequest,
    ApplicationResponse,
    AuditLogEntrySchema,
    DecisionRequest,
    LivenessRequest,
    RecommendationResponse,
    SubmitRequest,
    TransitionResponse,
    VideoKycRequest,
)
from finrisk_gateway.api.dependencies import (
    get_kyc_client,
    get_liveness_client,
    get_request_id,
    get_statement_analyzer,
)
from finrisk_gateway.config import settings
from finrisk_gateway.infrastructure.database.session import get_db
from finrisk_gateway.infrastructure.database.repositories import ApplicationRepository, AuditLogRepository
from finrisk_gateway.infrastructure.clients.statement_analyzer import StatementAnalyzerClient
from finrisk_gateway.infrastructure.clients.kyc import KycClient, LivenessClient
from finrisk_gateway.domain.models import (
    ApplicationStatus,
    AuditAction,
    AuditLogEntry,
    LoanApplication,
    VerificationOutcome,
)
from finrisk_gateway.domain.workflow import run_draft_workflow
from finrisk_gateway.domain.underwriting import (
    apply_aadhaar_verification,
    apply_pan_verification,
    attach_liveness_result,
    ensure_submittable,
    record_decision,
    submit_application,
    update_video_kyc_status,
)
from finrisk_gateway.domain.recommendation import system_recommendation
from finrisk_gateway.domain.exceptions import (
    ApplicationNotFoundError,
    ConcurrentModificationError,
    EmptyJustificationError,
    InvalidInputError,
    InvalidTransitionError,
    PanNotVerifiedError,
    PolicyViolationError,
    StatementAnalyzerError,
    VerificationProviderError,
    VideoKycIncompleteError,
)
from finrisk_gateway.infrastructure.observability.metrics import (
    decision_counter,
    policy_violation_counter,
    record_scoring,
    verification_event_counter,
)
from finrisk_gateway.infrastructure.observability.logging import log_scoring, log_transition

router = APIRouter()

TransitionFn = Callable[[LoanApplication], Tuple[LoanApplication, AuditLogEntry]]


def _load(db: Session, application_id: str) -> LoanApplication:
    try:
        return ApplicationRepository(db).get(application_id)
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _commit_transition(
    db: Session,
    request: Request,
    application: LoanApplication,
    transition: TransitionFn,
) -> TransitionResponse:
    """
    Apply a domain transition and persist it atomically.

    The updated application (if changed) and its single audit entry are
    written in one transaction; any failure rolls back both, leaving the
    stored application untouched.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        updated, entry = transition(application)
        if updated is not application:
            updated = ApplicationRepository(db).save(updated)
        AuditLogRepository(db).append(entry)
        db.commit()

    except EmptyJustificationError as e:
        db.rollback()
        policy_violation_counter.labels(reason="empty_justification").inc()
        logging.warning(f"Rejected transition: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail={"code": "empty_justification", "message": str(e)})

    except InvalidTransitionError as e:
        db.rollback()
        policy_violation_counter.labels(reason="invalid_transition").inc()
        logging.warning(f"Rejected transition: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail={"code": "invalid_transition", "message": str(e)})

    except InvalidInputError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail={"code": "invalid_input", "message": str(e)})

    except VideoKycIncompleteError as e:
        db.rollback()
        policy_violation_counter.labels(reason="video_kyc_incomplete").inc()
        logging.warning(f"Policy violation: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=403, detail={"code": "video_kyc_incomplete", "message": str(e)})

    except PanNotVerifiedError as e:
        db.rollback()
        policy_violation_counter.labels(reason="pan_not_verified").inc()
        logging.warning(f"Policy violation: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=403, detail={"code": "pan_not_verified", "message": str(e)})

    except PolicyViolationError as e:
        db.rollback()
        raise HTTPException(status_code=403, detail={"code": "policy_violation", "message": str(e)})

    except ConcurrentModificationError as e:
        db.rollback()
        logging.warning(f"Concurrent modification: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail={"code": "concurrent_modification", "message": str(e)})

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if entry.action in (AuditAction.APPROVE, AuditAction.REJECT):
        decision_counter.labels(outcome=updated.status.value).inc()
    elif entry.action != AuditAction.SUBMIT:
        verification_event_counter.labels(action=entry.action.value).inc()

    duration_ms = (time.time() - start_time) * 1000
    log_transition(request_id, updated.id, entry.action.value, entry.actor, updated.status.value, duration_ms)

    return TransitionResponse(
        application=ApplicationResponse.model_validate(updated),
        audit_entry=AuditLogEntrySchema.model_validate(entry),
    )


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
def create_application(request_body: ApplicationCreateRequest, db: Session = Depends(get_db)):
    """
    Validate applicant input through the draft workflow and store a DRAFT.

    Returns 422 with the failing step and its messages when validation fails.
    """
    result = run_draft_workflow(request_body.model_dump())
    if not result.ok:
        raise HTTPException(status_code=422, detail={"step": result.step, "errors": result.errors})

    application = ApplicationRepository(db).add(result.application)
    db.commit()
    return ApplicationResponse.model_validate(application)


@router.get("/applications", response_model=List[ApplicationResponse])
def list_applications(
    status: Optional[ApplicationStatus] = Query(None, description="Filter by lifecycle status"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Underwriting queue, newest first"""
    applications = ApplicationRepository(db).list_applications(status=status, limit=limit)
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: str, db: Session = Depends(get_db)):
    return ApplicationResponse.model_validate(_load(db, application_id))


@router.post("/applications/{application_id}/pan-verification", response_model=TransitionResponse)
async def verify_pan(
    application_id: str,
    request_body: ActorRequest,
    request: Request,
    db: Session = Depends(get_db),
    kyc_client: KycClient = Depends(get_kyc_client),
):
    """
    Verify the applicant's PAN with the provider.

    A provider failure is recorded as VERIFICATION_UNAVAILABLE (or, only when
    explicitly enabled, as a distinguishable SANDBOX_BYPASS), never as VERIFIED.
    """
    application = _load(db, application_id)
    try:
        outcome = await kyc_client.verify_pan(application.pan_number)
    except VerificationProviderError as e:
        logging.error(f"PAN provider error: {e}", extra={"request_id": get_request_id(request)})
        outcome = VerificationOutcome.unavailable(str(e))

    actor = request_body.actor or settings.system_actor_id
    return _commit_transition(
        db,
        request,
        application,
        lambda app: apply_pan_verification(
            app, outcome, actor, allow_sandbox=settings.allow_sandbox_verification
        ),
    )


@router.post("/applications/{application_id}/aadhaar-verification", response_model=TransitionResponse)
async def verify_aadhaar(
    application_id: str,
    request_body: ActorRequest,
    request: Request,
    db: Session = Depends(get_db),
    kyc_client: KycClient = Depends(get_kyc_client),
):
    application = _load(db, application_id)
    try:
        outcome = await kyc_client.verify_aadhaar(application.aadhaar_number)
    except VerificationProviderError as e:
        logging.error(f"Aadhaar provider error: {e}", extra={"request_id": get_request_id(request)})
        outcome = VerificationOutcome.unavailable(str(e))

    actor = request_body.actor or settings.system_actor_id
    return _commit_transition(
        db, request, application, lambda app: apply_aadhaar_verification(app, outcome, actor)
    )


@router.post("/applications/{application_id}/liveness", response_model=TransitionResponse)
async def check_liveness(
    application_id: str,
    request_body: LivenessRequest,
    request: Request,
    db: Session = Depends(get_db),
    liveness_client: LivenessClient = Depends(get_liveness_client),
):
    """Run liveness detection on a selfie; a retake replaces the earlier result"""
    application = _load(db, application_id)
    try:
        result = await liveness_client.check_liveness(request_body.image_base64)
    except VerificationProviderError as e:
        logging.error(f"Liveness provider error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Liveness service unavailable")

    actor = request_body.actor or settings.system_actor_id
    return _commit_transition(db, request, application, lambda app: attach_liveness_result(app, result, actor))


@router.post("/applications/{application_id}/submit", response_model=TransitionResponse)
async def submit(
    application_id: str,
    request_body: SubmitRequest,
    request: Request,
    db: Session = Depends(get_db),
    analyzer: StatementAnalyzerClient = Depends(get_statement_analyzer),
):
    """
    Analyze the bank statement, score the applicant and move DRAFT -> SUBMITTED.

    Flow:
    1. Require a DRAFT with a cleared PAN (409 / 403)
    2. Send statement text to the analyzer
    3. Score and price the offer
    4. Persist application + SUBMIT audit entry
    """
    request_id = get_request_id(request)
    application = _load(db, application_id)
    allow_sandbox = settings.allow_sandbox_verification
    try:
        ensure_submittable(application, allow_sandbox)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail={"code": "invalid_transition", "message": str(e)})
    except PanNotVerifiedError as e:
        policy_violation_counter.labels(reason="pan_not_verified").inc()
        logging.warning(f"Policy violation: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=403, detail={"code": "pan_not_verified", "message": str(e)})

    try:
        analysis = await analyzer.analyze_statement(request_body.statement_text)
    except StatementAnalyzerError as e:
        logging.error(f"Statement analyzer error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Statement analysis service unavailable")

    actor = request_body.actor or settings.system_actor_id
    response = _commit_transition(
        db, request, application, lambda app: submit_application(app, analysis, actor, allow_sandbox=allow_sandbox)
    )

    score = response.application.credit_score
    record_scoring(score.category.value, response.application.loan_offer.amount)
    log_scoring(request_id, application_id, score.score, score.category.value, [f.code for f in score.risk_flags])
    return response


@router.post("/applications/{application_id}/video-kyc", response_model=TransitionResponse)
def set_video_kyc_status(
    application_id: str,
    request_body: VideoKycRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    application = _load(db, application_id)
    actor = request_body.actor or settings.underwriter_actor_id
    return _commit_transition(
        db, request, application, lambda app: update_video_kyc_status(app, actor, request_body.status)
    )


@router.post("/applications/{application_id}/decision", response_model=TransitionResponse)
def decide(
    application_id: str,
    request_body: DecisionRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Record an underwriter's APPROVE/REJECT.

    Returns:
        422 for a missing justification, 403 when approval is blocked by
        incomplete video KYC, 409 when the application is not SUBMITTED
    """
    application = _load(db, application_id)
    actor = request_body.actor or settings.underwriter_actor_id
    return _commit_transition(
        db,
        request,
        application,
        lambda app: record_decision(app, actor, request_body.justification, request_body.decision),
    )


@router.get("/applications/{application_id}/recommendation", response_model=RecommendationResponse)
def get_recommendation(application_id: str, db: Session = Depends(get_db)):
    """Advisory verdict for the underwriter; does not change the application"""
    recommendation = system_recommendation(_load(db, application_id))
    return RecommendationResponse(
        application_id=application_id,
        verdict=recommendation.verdict,
        confidence=recommendation.confidence,
        summary=recommendation.summary,
    )
