"""
API routes for policy issuance and claim intake.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Header

from app.core.config import __version__
from app.core.database import check_db_connection
from app.schemas.application import ClaimReport, PolicyApplication
from app.schemas.results import ClaimDetail, FiledClaim, IssuedPolicy, PolicyDetail
from app.services.registry import Services, get_services
from app.api.schemas import (
    ClaimStatusRequest,
    CoverageRevisionRequest,
    ErrorResponse,
    HealthResponse,
    PolicyStatusRequest,
)


logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_actor_id(x_user_id: Optional[UUID] = Header(default=None)) -> Optional[UUID]:
    """Acting user from the X-User-Id header; absent for system callers"""
    return x_user_id


@router.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """
    Check the health status of the API and its database.
    """
    database_connected = check_db_connection()

    return HealthResponse(
        status="healthy" if database_connected else "degraded",
        version=__version__,
        database_connected=database_connected,
        timestamp=datetime.utcnow(),
    )


# ============================================================================
# POLICIES
# ============================================================================

@router.post(
    "/api/policies",
    response_model=IssuedPolicy,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Policies"],
    summary="Issue a policy",
    description="Price, underwrite and persist a policy; it ends BOUND or REFERRED"
)
def issue_policy(
    application: PolicyApplication,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.policies.issue_policy(application, actor_id=actor_id)


@router.post(
    "/api/policies/quote",
    response_model=IssuedPolicy,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Policies"],
    summary="Quote a policy without binding"
)
def quote_policy(
    application: PolicyApplication,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.policies.quote_policy(application, actor_id=actor_id)


@router.post(
    "/api/policies/{policy_id}/bind",
    response_model=IssuedPolicy,
    responses=ERROR_RESPONSES,
    tags=["Policies"],
    summary="Bind a quoted policy"
)
def bind_policy(
    policy_id: UUID,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.policies.bind_policy(policy_id, actor_id=actor_id)


@router.put(
    "/api/policies/{policy_id}/coverages",
    response_model=IssuedPolicy,
    responses=ERROR_RESPONSES,
    tags=["Policies"],
    summary="Replace the coverages of an unbound policy"
)
def revise_coverages(
    policy_id: UUID,
    request: CoverageRevisionRequest,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.policies.revise_coverages(policy_id, request.coverages, actor_id=actor_id)


@router.post(
    "/api/policies/{policy_id}/status",
    response_model=IssuedPolicy,
    responses=ERROR_RESPONSES,
    tags=["Policies"],
    summary="Move a policy through its lifecycle"
)
def change_policy_status(
    policy_id: UUID,
    request: PolicyStatusRequest,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.policies.change_status(policy_id, request.status, actor_id=actor_id)


@router.get(
    "/api/policies/{policy_id}",
    response_model=PolicyDetail,
    responses={404: {"model": ErrorResponse}},
    tags=["Policies"]
)
def get_policy(policy_id: UUID, services: Services = Depends(get_services)):
    return services.policies.get_policy(policy_id)


# ============================================================================
# CLAIMS
# ============================================================================

@router.post(
    "/api/claims",
    response_model=FiledClaim,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Claims"],
    summary="File a claim",
    description="Persist a claim, assign an adjuster and queue fraud evaluation"
)
def file_claim(
    report: ClaimReport,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.claims.file_claim(report, actor_id=actor_id)


@router.post(
    "/api/claims/{claim_id}/status",
    response_model=ClaimDetail,
    responses=ERROR_RESPONSES,
    tags=["Claims"],
    summary="Move a claim through its lifecycle"
)
def change_claim_status(
    claim_id: UUID,
    request: ClaimStatusRequest,
    services: Services = Depends(get_services),
    actor_id: Optional[UUID] = Depends(get_actor_id),
):
    return services.claims.change_status(claim_id, request.status, actor_id=actor_id)


@router.get(
    "/api/claims/{claim_id}",
    response_model=ClaimDetail,
    responses={404: {"model": ErrorResponse}},
    tags=["Claims"]
)
def get_claim(claim_id: UUID, services: Services = Depends(get_services)):
    return services.claims.get_claim(claim_id)
