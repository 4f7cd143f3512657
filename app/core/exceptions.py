"""
Error taxonomy for policy assembly and claim intake.
Every error carries the HTTP status the API layer answers with.
"""

from typing import List, Optional


class EngineError(Exception):
    """Base class for errors raised by the policy/claim engine"""

    status_code = 500
    retryable = False

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def error(self) -> str:
        return type(self).__name__


# ============================================================================
# VALIDATION - rejected before any write, never retried
# ============================================================================

class ValidationFailed(EngineError):
    status_code = 422


class InvalidApplication(ValidationFailed):
    """Malformed policy application (dates, amounts, empty coverage list)"""


class InvalidClaimReport(ValidationFailed):
    """Malformed claim report (reported before loss, negative reserve, ...)"""


class MissingRequiredCoverage(ValidationFailed):
    """Product's required coverages are absent; blocks binding"""

    def __init__(self, missing_codes: List[str]):
        self.missing_codes = list(missing_codes)
        super().__init__(
            f"Required coverages missing: {', '.join(self.missing_codes)}",
            detail=",".join(self.missing_codes),
        )


# ============================================================================
# NOT FOUND
# ============================================================================

class NotFound(EngineError):
    status_code = 404


class CustomerNotFound(NotFound):
    def __init__(self, customer_id):
        super().__init__(f"Customer {customer_id} not found")


class PolicyNotFound(NotFound):
    def __init__(self, policy_id):
        super().__init__(f"Policy {policy_id} not found")


class ClaimNotFound(NotFound):
    def __init__(self, claim_id):
        super().__init__(f"Claim {claim_id} not found")


# ============================================================================
# STATE
# ============================================================================

class InvalidStatusTransition(EngineError):
    status_code = 409

    def __init__(self, entity: str, current, requested):
        super().__init__(
            f"{entity} cannot move from {getattr(current, 'value', current)} "
            f"to {getattr(requested, 'value', requested)}"
        )


# ============================================================================
# INFRASTRUCTURE - transient, the whole call may be retried
# ============================================================================

class AllocatorUnavailable(EngineError):
    """Sequence storage could not be reached; no number was issued"""

    status_code = 503
    retryable = True


class PersistenceError(EngineError):
    """Unit of work failed (conflict, timeout, constraint) and was rolled back"""

    status_code = 409
    retryable = True


__all__ = [
    "EngineError",
    "ValidationFailed",
    "InvalidApplication",
    "InvalidClaimReport",
    "MissingRequiredCoverage",
    "NotFound",
    "CustomerNotFound",
    "PolicyNotFound",
    "ClaimNotFound",
    "InvalidStatusTransition",
    "AllocatorUnavailable",
    "PersistenceError",
]
