"""Admin schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AdminOverviewRead(BaseModel):
    """Moderation dashboard snapshot."""

    generated_at: datetime

    ads_total: int
    ads_pending_approval: int
    ads_approved: int
    ads_rejected: int
    ads_suspended: int
    ads_expired: int
    ads_draft: int

    reports_pending: int

    users_total: int
    users_blocked: int
    admins_total: int
