"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Input is malformed or missing a required value"""

    pass


class EmptyJustificationError(InvalidInputError):
    """Underwriting decision was attempted without a justification"""

    def __init__(self, message: str = "A decision justification is required"):
        super().__init__(message)


class InvalidTransitionError(InvalidInputError):
    """Requested status change is not allowed from the current state"""

    pass


class PolicyViolationError(DomainException):
    """Action is well-formed but blocked by lending policy"""

    pass


class VideoKycIncompleteError(PolicyViolationError):
    """Approval attempted before face-to-face video KYC was completed"""

    def __init__(self, video_kyc_status: str):
        self.video_kyc_status = video_kyc_status
        super().__init__(
            f"Video KYC must be COMPLETED before approval (current: {video_kyc_status})"
        )


class PanNotVerifiedError(PolicyViolationError):
    """Submission attempted before the applicant's PAN cleared verification"""

    def __init__(self, pan_status: str):
        self.pan_status = pan_status
        super().__init__(f"PAN must be VERIFIED before submission (current: {pan_status})")


class ApplicationNotFoundError(DomainException):
    """No loan application exists with the given id"""

    pass


class ConcurrentModificationError(DomainException):
    """Application was changed by another writer since it was read"""

    pass


class ExternalServiceError(DomainException):
    """External collaborator returned an error or is unavailable"""

    pass


class StatementAnalyzerError(ExternalServiceError):
    """Statement analysis service failed or returned malformed data"""

    pass


class VerificationProviderError(ExternalServiceError):
    """Identity or liveness provider failed or returned malformed data"""

    pass
