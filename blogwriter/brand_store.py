"""
Read-only lookup of the brand profile saved during onboarding (Supabase REST).
"""
import logging
from typing import Any, Optional

import httpx

from blogwriter.errors import UpstreamError

logger = logging.getLogger(__name__)

BRAND_FIELDS = (
    "brand_name",
    "website_url",
    "business_description",
    "target_audience",
    "benefits",
    "industry",
    "tone_of_voice",
    "location",
    "language",
)


class BrandProfileStore:
    vendor = "Supabase"

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self._transport = transport

    def fetch(self, user_id: str) -> Optional[dict[str, Any]]:
        """Most recent brand profile for ``user_id``, or None if there is none."""
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.get(
                    f"{self.base_url}/rest/v1/brand_profiles",
                    params={
                        "user_id": f"eq.{user_id}",
                        "select": ",".join(BRAND_FIELDS),
                        "order": "created_at.desc",
                        "limit": "1",
                    },
                    headers={
                        "apikey": self.service_key,
                        "Authorization": f"Bearer {self.service_key}",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as exc:
            raise UpstreamError(self.vendor, detail=type(exc).__name__) from exc

        if not resp.is_success:
            raise UpstreamError(self.vendor, resp.status_code)

        try:
            rows = resp.json()
        except ValueError as exc:
            raise UpstreamError(self.vendor, resp.status_code, "invalid JSON body") from exc
        if not isinstance(rows, list) or not rows:
            return None
        return rows[0]
