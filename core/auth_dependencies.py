"""
FastAPI Authentication Dependencies for Microservices

The API gateway authenticates users and forwards their identity in headers.
These dependencies read that identity so services receive it explicitly.
"""

from fastapi import Header, HTTPException, status, Request
from pydantic import BaseModel
from typing import Optional
import logging
import os

logger = logging.getLogger(__name__)

# Internal service auth
INTERNAL_SERVICE_SECRET = os.getenv(
    "INTERNAL_SERVICE_SECRET",
    "dev-internal-secret-change-in-production"
)
INTERNAL_SERVICE_USER = "internal-service"


class GatewayIdentity(BaseModel):
    """Caller identity forwarded by the gateway"""
    user_id: str
    role: str
    brand_id: Optional[str] = None


async def require_gateway_identity(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_brand_id: Optional[str] = Header(None, alias="X-Brand-Id"),
    x_internal_service: Optional[str] = Header(None, alias="X-Internal-Service"),
    x_internal_service_secret: Optional[str] = Header(None, alias="X-Internal-Service-Secret"),
) -> GatewayIdentity:
    """
    Resolve the caller from gateway headers.

    Priority:
    1. Internal service auth (X-Internal-Service + X-Internal-Service-Secret),
       which acts with the admin role
    2. User identity (X-User-Id + X-User-Role, optional X-Brand-Id)

    Raises:
        HTTPException 401: no usable identity
    """
    if x_internal_service == "true" and x_internal_service_secret:
        if x_internal_service_secret == INTERNAL_SERVICE_SECRET:
            logger.debug(f"Internal service request to {request.url.path}")
            return GatewayIdentity(
                user_id=INTERNAL_SERVICE_USER, role="admin", brand_id=x_brand_id
            )
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Invalid internal service secret from {client_host}")

    if x_user_id and x_user_role:
        return GatewayIdentity(
            user_id=x_user_id,
            role=x_user_role.strip().lower(),
            brand_id=x_brand_id or None,
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="User authentication required"
    )


__all__ = [
    "GatewayIdentity",
    "require_gateway_identity",
    "INTERNAL_SERVICE_USER",
]
