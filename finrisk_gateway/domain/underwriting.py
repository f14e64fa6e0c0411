"""Underwriting state machine - lifecycle transitions and their audit entries"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional, Tuple

from finrisk_gateway.domain.exceptions import (
    EmptyJustificationError,
    InvalidInputError,
    InvalidTransitionError,
    PanNotVerifiedError,
    VideoKycIncompleteError,
)
from finrisk_gateway.domain.models import (
    ApplicationStatus,
    AuditAction,
    AuditLogEntry,
    BankStatementAnalysis,
    Decision,
    LivenessResult,
    LoanApplication,
    ProviderOutcome,
    VerificationOutcome,
    VerificationStatus,
    VideoKycStatus,
)
from finrisk_gateway.domain.offers import generate_offer
from finrisk_gateway.domain.scoring import score_application

Transition = Tuple[LoanApplication, AuditLogEntry]

VIDEO_KYC_TRANSITIONS: Dict[VideoKycStatus, FrozenSet[VideoKycStatus]] = {
    VideoKycStatus.NOT_STARTED: frozenset({VideoKycStatus.IN_QUEUE, VideoKycStatus.PENDING}),
    VideoKycStatus.IN_QUEUE: frozenset(
        {VideoKycStatus.PENDING, VideoKycStatus.COMPLETED, VideoKycStatus.FAILED}
    ),
    VideoKycStatus.PENDING: frozenset({VideoKycStatus.COMPLETED, VideoKycStatus.FAILED}),
    VideoKycStatus.FAILED: frozenset({VideoKycStatus.IN_QUEUE}),
    VideoKycStatus.COMPLETED: frozenset(),
}

_VIDEO_KYC_ACTIONS = {
    VideoKycStatus.IN_QUEUE: AuditAction.VKYC_INIT,
    VideoKycStatus.PENDING: AuditAction.VKYC_INIT,
    VideoKycStatus.COMPLETED: AuditAction.VKYC_COMPLETED,
    VideoKycStatus.FAILED: AuditAction.VKYC_FAILED,
}

VERIFICATION_EVENTS = frozenset(
    {
        AuditAction.PAN_VERIFIED,
        AuditAction.PAN_FAILED,
        AuditAction.PAN_SANDBOX_BYPASS,
        AuditAction.AADHAAR_VERIFIED,
        AuditAction.AADHAAR_FAILED,
        AuditAction.LIVENESS_CHECKED,
        AuditAction.VERIFICATION_UNAVAILABLE,
        AuditAction.VKYC_INIT,
        AuditAction.VKYC_COMPLETED,
        AuditAction.VKYC_FAILED,
    }
)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _require_open(application: LoanApplication, action: str) -> None:
    if application.is_terminal:
        raise InvalidTransitionError(
            f"Cannot {action}: application {application.id} is already {application.status.value}"
        )


def record_verification_event(
    application_id: str,
    actor: str,
    event_type: AuditAction,
    details: str,
    now: Optional[datetime] = None,
) -> AuditLogEntry:
    """
    Build the audit entry for a PAN/Aadhaar/liveness/video-KYC event.

    Raises:
        InvalidInputError: On empty ids or an event type that is not a verification event
    """
    if not application_id or not application_id.strip():
        raise InvalidInputError("Application id is required")
    if not actor or not actor.strip():
        raise InvalidInputError("Actor is required")
    try:
        event = AuditAction(event_type)
    except ValueError as e:
        raise InvalidInputError(f"Unknown verification event: {event_type}") from e
    if event not in VERIFICATION_EVENTS:
        raise InvalidInputError(f"{event.value} is not a verification event")

    return AuditLogEntry(
        application_id=application_id,
        action=event,
        actor=actor,
        details=details,
        timestamp=_now(now),
    )


def ensure_submittable(application: LoanApplication, allow_sandbox: bool = False) -> None:
    """
    Check the preconditions of DRAFT -> SUBMITTED.

    SANDBOX_BYPASS clears the PAN gate only when the sandbox fallback is enabled.

    Raises:
        InvalidTransitionError: Application is not a DRAFT
        PanNotVerifiedError: PAN is not VERIFIED
    """
    if application.status != ApplicationStatus.DRAFT:
        raise InvalidTransitionError(
            f"Only DRAFT applications can be submitted (current: {application.status.value})"
        )
    cleared = {VerificationStatus.VERIFIED}
    if allow_sandbox:
        cleared.add(VerificationStatus.SANDBOX_BYPASS)
    if application.pan_status not in cleared:
        raise PanNotVerifiedError(application.pan_status.value)


def submit_application(
    application: LoanApplication,
    analysis: Optional[BankStatementAnalysis],
    actor: str,
    allow_sandbox: bool = False,
    now: Optional[datetime] = None,
) -> Transition:
    """
    DRAFT -> SUBMITTED. Scores the applicant, prices the offer and attaches
    analysis, score and offer in the same step.
    """
    ensure_submittable(application, allow_sandbox)

    profile = application.profile
    score = score_application(profile, analysis)
    offer = generate_offer(profile, score)

    updated = replace(
        application,
        status=ApplicationStatus.SUBMITTED,
        statement_analysis=analysis,
        credit_score=score,
        loan_offer=offer,
    )
    entry = AuditLogEntry(
        application_id=application.id,
        action=AuditAction.SUBMIT,
        actor=actor,
        details=(
            f"Application submitted. Internal score {score.score} ({score.category.value}); "
            f"offer {offer.amount} at {offer.roi}% for {offer.tenure} months, EMI {offer.emi}."
        ),
        timestamp=_now(now),
    )
    return updated, entry


def record_decision(
    application: LoanApplication,
    actor: str,
    justification: str,
    decision: Decision,
    now: Optional[datetime] = None,
) -> Transition:
    """
    SUBMITTED -> APPROVED | REJECTED.

    Raises:
        EmptyJustificationError: Justification missing or whitespace only
        VideoKycIncompleteError: APPROVE while video KYC is not COMPLETED
        InvalidTransitionError: Application is not SUBMITTED
    """
    decision = Decision(decision)
    reason = (justification or "").strip()
    if not reason:
        raise EmptyJustificationError()
    if application.status != ApplicationStatus.SUBMITTED:
        raise InvalidTransitionError(
            f"Only SUBMITTED applications can be decided (current: {application.status.value})"
        )
    if decision == Decision.APPROVE and application.video_kyc_status != VideoKycStatus.COMPLETED:
        raise VideoKycIncompleteError(application.video_kyc_status.value)

    if decision == Decision.APPROVE:
        status, action = ApplicationStatus.APPROVED, AuditAction.APPROVE
    else:
        status, action = ApplicationStatus.REJECTED, AuditAction.REJECT

    updated = replace(application, status=status)
    entry = AuditLogEntry(
        application_id=application.id,
        action=action,
        actor=actor,
        details=f"{status.value} action performed. Decision Justification: {reason}",
        timestamp=_now(now),
    )
    return updated, entry


def update_video_kyc_status(
    application: LoanApplication,
    actor: str,
    status: VideoKycStatus,
    now: Optional[datetime] = None,
) -> Transition:
    """Move video KYC along its own track; lifecycle status is untouched"""
    status = VideoKycStatus(status)
    _require_open(application, "update video KYC")

    current = application.video_kyc_status
    if status not in VIDEO_KYC_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Video KYC cannot move from {current.value} to {status.value}")

    updated = replace(application, video_kyc_status=status)
    entry = record_verification_event(
        application.id,
        actor,
        _VIDEO_KYC_ACTIONS[status],
        f"V-KYC interaction result updated from {current.value} to {status.value}.",
        now=now,
    )
    return updated, entry


def apply_pan_verification(
    application: LoanApplication,
    outcome: VerificationOutcome,
    actor: str,
    allow_sandbox: bool = False,
    now: Optional[datetime] = None,
) -> Transition:
    """
    Record the PAN provider verdict.

    An unreachable provider never produces VERIFIED: the status stays PENDING,
    or becomes SANDBOX_BYPASS when the sandbox fallback is explicitly enabled.
    """
    _require_open(application, "verify PAN")
    pan = application.pan_number

    if outcome.outcome == ProviderOutcome.VERIFIED:
        name = outcome.name_on_record or application.full_name
        updated = replace(application, pan_status=VerificationStatus.VERIFIED, full_name=name)
        action = AuditAction.PAN_VERIFIED
        details = f"PAN {pan} verified via live provider. Name: {name}"
    elif outcome.outcome == ProviderOutcome.FAILED:
        updated = replace(application, pan_status=VerificationStatus.FAILED)
        action = AuditAction.PAN_FAILED
        details = f"PAN {pan} verification failed. {outcome.details}".strip()
    elif allow_sandbox:
        updated = replace(application, pan_status=VerificationStatus.SANDBOX_BYPASS)
        action = AuditAction.PAN_SANDBOX_BYPASS
        details = f"PAN {pan} marked via sandbox fallback, provider unavailable: {outcome.details}"
    else:
        updated = application
        action = AuditAction.VERIFICATION_UNAVAILABLE
        details = f"PAN {pan} not verified, provider unavailable: {outcome.details}"

    return updated, record_verification_event(application.id, actor, action, details, now=now)


def apply_aadhaar_verification(
    application: LoanApplication,
    outcome: VerificationOutcome,
    actor: str,
    now: Optional[datetime] = None,
) -> Transition:
    _require_open(application, "verify Aadhaar")
    masked = f"XXXXXXXX{application.aadhaar_number[-4:]}"

    if outcome.outcome == ProviderOutcome.VERIFIED:
        updated = replace(application, aadhaar_status=VerificationStatus.VERIFIED)
        action = AuditAction.AADHAAR_VERIFIED
        details = f"Aadhaar {masked} authenticated."
    elif outcome.outcome == ProviderOutcome.FAILED:
        updated = replace(application, aadhaar_status=VerificationStatus.FAILED)
        action = AuditAction.AADHAAR_FAILED
        details = f"Aadhaar {masked} authentication failed. {outcome.details}".strip()
    else:
        updated = application
        action = AuditAction.VERIFICATION_UNAVAILABLE
        details = f"Aadhaar {masked} not verified, provider unavailable: {outcome.details}"

    return updated, record_verification_event(application.id, actor, action, details, now=now)


def attach_liveness_result(
    application: LoanApplication,
    result: LivenessResult,
    actor: str,
    now: Optional[datetime] = None,
) -> Transition:
    """Attach a liveness verdict, replacing any earlier capture"""
    _require_open(application, "record liveness")
    verdict = "LIVE" if result.is_live else "NOT LIVE"
    updated = replace(application, liveness_result=result)
    entry = record_verification_event(
        application.id,
        actor,
        AuditAction.LIVENESS_CHECKED,
        f"Liveness {verdict} ({result.confidence_score}% confidence). {result.reasoning}".strip(),
        now=now,
    )
    return updated, entry
