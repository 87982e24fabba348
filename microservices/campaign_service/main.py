"""
Campaign Service Main Application

FastAPI application for the campaign marketplace.
Port: 8251
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from core.auth_dependencies import GatewayIdentity, require_gateway_identity
from core.config import get_settings, setup_logging

from .factory import CampaignServiceFactory
from .models import (
    CallerContext,
    CallerRole,
    CampaignApplication,
    CampaignCreateRequest,
    CampaignListResponse,
    CampaignResponse,
    CampaignStatus,
    CampaignUpdateRequest,
    ContentSubmission,
    ContentSubmissionRequest,
    HealthResponse,
    JoinCampaignRequest,
    RejectRequest,
    SubmissionReviewRequest,
    ViewCalculationRequest,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignValidationError,
    ConstraintViolationError,
    InvalidCampaignStateError,
    PermissionDeniedError,
    StoreError,
)
from .view_estimation import ViewEstimates, ViewTargets, calculate_view_targets, estimate_views

settings = get_settings()

# Configure logging
setup_logging(settings.logging)
logger = logging.getLogger(__name__)

# Service configuration
SERVICE_NAME = settings.campaign.service_name
SERVICE_PORT = settings.campaign.service_port
SERVICE_VERSION = "1.0.0"

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[CampaignServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = CampaignServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Campaign Service",
    description="Brand campaign marketplace: campaign creation, admin approval, creator joins and content submissions",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidCampaignStateError)
async def invalid_state_handler(request: Request, exc: InvalidCampaignStateError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "current_status": exc.current_status.value if exc.current_status else None,
            "requested_status": exc.requested_status.value if exc.requested_status else None,
        },
    )


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "field_errors": exc.field_errors},
    )


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": str(exc)},
    )


@app.exception_handler(ConstraintViolationError)
async def constraint_violation_handler(request: Request, exc: ConstraintViolationError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Conflicting campaign data", "code": exc.code, "constraint": exc.constraint},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Campaign store unavailable", "code": exc.code, "category": exc.category},
    )


# ====================
# Dependencies
# ====================


def get_service():
    """Get campaign service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


def get_caller_context(
    identity: GatewayIdentity = Depends(require_gateway_identity),
) -> CallerContext:
    """Turn gateway identity headers into the caller passed to the service"""
    try:
        role = CallerRole(identity.role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {identity.role}",
        )
    return CallerContext(user_id=identity.user_id, role=role, brand_id=identity.brand_id)


# ====================
# Health Endpoints
# ====================


@app.get("/api/v1/campaigns/health", response_model=HealthResponse, tags=["Health"])
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"

        if factory.nats_client:
            dependencies["nats"] = "healthy" if factory.nats_client.is_connected else "unhealthy"
        else:
            dependencies["nats"] = "not_configured"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/live", tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return {"alive": True, "uptime_seconds": time.time() - startup_time}


# ====================
# View Calculation Endpoints
# ====================


@app.post("/api/v1/campaigns/estimate", response_model=ViewEstimates, tags=["Views"])
async def estimate_campaign_views(request: ViewCalculationRequest):
    """Live view estimate for the budget step"""
    return estimate_views(
        request.budget,
        request.rate_original,
        request.rate_repurposed,
        request.content_type,
        request.allocation,
    )


@app.post("/api/v1/campaigns/view-targets", response_model=ViewTargets, tags=["Views"])
async def campaign_view_targets(request: ViewCalculationRequest):
    """View targets that would be persisted with the campaign"""
    return calculate_view_targets(
        request.budget,
        request.rate_original,
        request.rate_repurposed,
        request.content_type,
        request.allocation,
    )


# ====================
# Campaign CRUD Endpoints
# ====================


@app.post(
    "/api/v1/campaigns",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Create a new campaign in draft status"""
    campaign = await service.create_campaign(ctx, request)
    return CampaignResponse(campaign=campaign, message="Campaign created successfully")


@app.get("/api/v1/campaigns", response_model=CampaignListResponse, tags=["Campaigns"])
async def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """
    List campaigns for the caller.

    Brands see their own campaigns, creators see active campaigns they have
    not joined, admins see everything.
    """
    if ctx.role == CallerRole.BRAND:
        campaigns = await service.list_brand_campaigns(ctx, status=status_filter)
    elif ctx.role == CallerRole.CREATOR:
        campaigns = await service.list_available_campaigns(ctx)
    else:
        campaigns = await service.list_campaigns(ctx, status=status_filter)
    return CampaignListResponse(campaigns=campaigns, total=len(campaigns))


@app.get("/api/v1/campaigns/pending", response_model=CampaignListResponse, tags=["Approval"])
async def list_pending_campaigns(
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Admin review queue"""
    campaigns = await service.list_pending_campaigns(ctx)
    return CampaignListResponse(campaigns=campaigns, total=len(campaigns))


@app.get("/api/v1/campaigns/joined", response_model=List[CampaignApplication], tags=["Creators"])
async def list_joined_campaigns(
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Join records of the calling creator"""
    return await service.list_creator_applications(ctx)


@app.get("/api/v1/campaigns/submissions", response_model=List[ContentSubmission], tags=["Submissions"])
async def list_submissions(
    campaign_id: Optional[str] = Query(None),
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Creators see their own submissions; admins and owning brands see pending ones"""
    if ctx.role == CallerRole.CREATOR:
        return await service.list_creator_submissions(ctx, campaign_id=campaign_id)
    return await service.list_pending_submissions(ctx, campaign_id=campaign_id)


@app.post(
    "/api/v1/campaigns/submissions/{submission_id}/review",
    response_model=ContentSubmission,
    tags=["Submissions"],
)
async def review_submission(
    submission_id: str,
    request: SubmissionReviewRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Approve or reject a pending submission"""
    return await service.review_submission(
        ctx, submission_id, approved=request.approved, feedback=request.feedback
    )


@app.get("/api/v1/campaigns/{campaign_id}", response_model=CampaignResponse, tags=["Campaigns"])
async def get_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Get campaign by ID; brands only see their own"""
    brand_scope = ctx.brand_id if ctx.role == CallerRole.BRAND else None
    campaign = await service.get_campaign(campaign_id, brand_id=brand_scope)
    return CampaignResponse(campaign=campaign)


@app.patch("/api/v1/campaigns/{campaign_id}", response_model=CampaignResponse, tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Update a draft or rejected campaign"""
    campaign = await service.update_campaign(ctx, campaign_id, request)
    return CampaignResponse(campaign=campaign, message="Campaign updated successfully")


@app.delete(
    "/api/v1/campaigns/{campaign_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Campaigns"],
)
async def delete_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Delete a draft campaign"""
    await service.delete_campaign(ctx, campaign_id)


# ====================
# Lifecycle Endpoints
# ====================


@app.post("/api/v1/campaigns/{campaign_id}/submit", response_model=CampaignResponse, tags=["Lifecycle"])
async def submit_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Send a campaign for admin approval"""
    campaign = await service.submit_for_approval(ctx, campaign_id)
    return CampaignResponse(campaign=campaign, message="Campaign submitted for approval")


@app.post("/api/v1/campaigns/{campaign_id}/approve", response_model=CampaignResponse, tags=["Approval"])
async def approve_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Approve a pending campaign"""
    campaign = await service.approve_campaign(ctx, campaign_id)
    return CampaignResponse(campaign=campaign, message="Campaign approved")


@app.post("/api/v1/campaigns/{campaign_id}/reject", response_model=CampaignResponse, tags=["Approval"])
async def reject_campaign(
    campaign_id: str,
    request: RejectRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Reject a pending campaign with feedback"""
    reasons = list(request.reasons)
    if request.reason:
        reasons.append(request.reason)
    campaign = await service.reject_campaign(
        ctx,
        campaign_id,
        {"reasons": reasons, "recommendations": request.recommendations},
    )
    return CampaignResponse(campaign=campaign, message="Campaign rejected")


@app.post("/api/v1/campaigns/{campaign_id}/activate", response_model=CampaignResponse, tags=["Lifecycle"])
async def activate_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Open an approved campaign to creators"""
    return CampaignResponse(campaign=await service.activate_campaign(ctx, campaign_id))


@app.post("/api/v1/campaigns/{campaign_id}/pause", response_model=CampaignResponse, tags=["Lifecycle"])
async def pause_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Pause an active campaign"""
    return CampaignResponse(campaign=await service.pause_campaign(ctx, campaign_id))


@app.post("/api/v1/campaigns/{campaign_id}/resume", response_model=CampaignResponse, tags=["Lifecycle"])
async def resume_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Resume a paused campaign"""
    return CampaignResponse(campaign=await service.resume_campaign(ctx, campaign_id))


@app.post("/api/v1/campaigns/{campaign_id}/complete", response_model=CampaignResponse, tags=["Lifecycle"])
async def complete_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Complete a running campaign"""
    return CampaignResponse(campaign=await service.complete_campaign(ctx, campaign_id))


@app.post("/api/v1/campaigns/{campaign_id}/cancel", response_model=CampaignResponse, tags=["Lifecycle"])
async def cancel_campaign(
    campaign_id: str,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Cancel a campaign"""
    return CampaignResponse(campaign=await service.cancel_campaign(ctx, campaign_id))


# ====================
# Creator Endpoints
# ====================


@app.post(
    "/api/v1/campaigns/{campaign_id}/join",
    response_model=CampaignApplication,
    tags=["Creators"],
)
async def join_campaign(
    campaign_id: str,
    request: JoinCampaignRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Join an active campaign; repeated joins return the same record"""
    return await service.join_campaign(ctx, campaign_id, request.platforms)


@app.post(
    "/api/v1/campaigns/{campaign_id}/submissions",
    response_model=ContentSubmission,
    status_code=status.HTTP_201_CREATED,
    tags=["Submissions"],
)
async def submit_content(
    campaign_id: str,
    request: ContentSubmissionRequest,
    service=Depends(get_service),
    ctx: CallerContext = Depends(get_caller_context),
):
    """Submit a post for moderation"""
    request = request.model_copy(update={"campaign_id": campaign_id})
    return await service.submit_content(ctx, request)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.campaign_service.main:app",
        host=settings.campaign.service_host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower(),
    )


if __name__ == "__main__":
    main()
