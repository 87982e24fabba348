"""
Campaign Service Client

Client for other services and the web app to call campaign_service.
Identity is forwarded the same way the gateway does it, through the
X-User-Id / X-User-Role / X-Brand-Id headers.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from core.config import get_settings

logger = logging.getLogger(__name__)


class CampaignClient:
    """Client for campaign_service"""

    def __init__(
        self,
        user_id: str,
        role: str,
        brand_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or get_settings().campaign.service_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = {"X-User-Id": user_id, "X-User-Role": role}
        if brand_id:
            self.headers["X-Brand-Id"] = brand_id

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, params=params)
                response.raise_for_status()
                if response.status_code == 204 or not response.content:
                    return None
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {path} failed with {e.response.status_code}: {e.response.text}")
            raise

    # ====================
    # Views
    # ====================

    async def estimate_views(self, **inputs: Any) -> Dict[str, Any]:
        """
        Live view estimate.

        Args:
            **inputs: budget, rateOriginal, rateRepurposed, contentType, allocation

        Returns:
            {"originalViews", "repurposedViews", "totalViews"}
        """
        return await self._request("POST", "/api/v1/campaigns/estimate", json=inputs)

    async def view_targets(self, **inputs: Any) -> Dict[str, Any]:
        """View targets as they would be stored on the campaign"""
        return await self._request("POST", "/api/v1/campaigns/view-targets", json=inputs)

    # ====================
    # Campaigns
    # ====================

    async def get_campaign(self, campaign_id: str) -> Optional[Dict[str, Any]]:
        """
        Get campaign by ID.

        Returns:
            Campaign data or None if not found
        """
        try:
            data = await self._request("GET", f"/api/v1/campaigns/{campaign_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
        return data.get("campaign")

    async def list_campaigns(self, status: Optional[str] = None) -> Dict[str, Any]:
        """List campaigns visible to the caller"""
        params = {"status": status} if status else None
        return await self._request("GET", "/api/v1/campaigns", params=params)

    async def list_pending_campaigns(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/v1/campaigns/pending")

    async def create_campaign(self, campaign: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new campaign.

        Args:
            campaign: Wire-format creation payload

        Returns:
            Created campaign data
        """
        data = await self._request("POST", "/api/v1/campaigns", json=campaign)
        return data["campaign"]

    async def update_campaign(self, campaign_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request("PATCH", f"/api/v1/campaigns/{campaign_id}", json=changes)
        return data["campaign"]

    async def delete_campaign(self, campaign_id: str) -> None:
        await self._request("DELETE", f"/api/v1/campaigns/{campaign_id}")

    # ====================
    # Lifecycle
    # ====================

    async def _lifecycle(
        self, campaign_id: str, action: str, body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        data = await self._request("POST", f"/api/v1/campaigns/{campaign_id}/{action}", json=body)
        return data["campaign"]

    async def submit_for_approval(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "submit")

    async def approve_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "approve")

    async def reject_campaign(
        self,
        campaign_id: str,
        reasons: List[str],
        recommendations: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return await self._lifecycle(
            campaign_id,
            "reject",
            {"reasons": reasons, "recommendations": recommendations or []},
        )

    async def activate_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "activate")

    async def pause_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "pause")

    async def resume_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "resume")

    async def complete_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "complete")

    async def cancel_campaign(self, campaign_id: str) -> Dict[str, Any]:
        return await self._lifecycle(campaign_id, "cancel")

    # ====================
    # Creators and Submissions
    # ====================

    async def join_campaign(self, campaign_id: str, platforms: List[str]) -> Dict[str, Any]:
        """Join a campaign; joining again returns the existing record"""
        return await self._request(
            "POST", f"/api/v1/campaigns/{campaign_id}/join", json={"platforms": platforms}
        )

    async def list_joined_campaigns(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/v1/campaigns/joined")

    async def submit_content(
        self,
        campaign_id: str,
        platform: str,
        content_type: str,
        post_url: str,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/api/v1/campaigns/{campaign_id}/submissions",
            json={"platform": platform, "content_type": content_type, "post_url": post_url},
        )

    async def list_submissions(self, campaign_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"campaign_id": campaign_id} if campaign_id else None
        return await self._request("GET", "/api/v1/campaigns/submissions", params=params)

    async def review_submission(
        self,
        submission_id: str,
        approved: bool,
        feedback: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/api/v1/campaigns/submissions/{submission_id}/review",
            json={"approved": approved, "feedback": feedback},
        )


__all__ = ["CampaignClient"]
