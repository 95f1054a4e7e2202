"""Pydantic schemas for subscription, usage and feature API responses."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from padhlo.domain.billing.features import Feature
from padhlo.domain.billing.quota_policy import ActionType
from padhlo.domain.billing.tier import Tier


class SubscriptionStatus(BaseModel):
    """Stored tier plus derived activity."""

    user_id: str
    tier: Tier
    active: bool = Field(..., description="Whether the tier's period is still running")
    started_at: datetime | None
    expires_at: datetime | None
    has_used_trial: bool


class SubscriptionStatusResponse(BaseModel):
    success: bool = Field(..., description="Whether the request was successful")
    data: SubscriptionStatus


class SubscribeRequest(BaseModel):
    """Schema for subscribing to a paid plan."""

    tier: Tier = Field(..., description="Plan to subscribe to (lite or pro)")


class ExpireTrialRequest(BaseModel):
    auto_pay_to_pro: bool = Field(
        False, description="Convert the ended trial to Pro instead of dropping to free"
    )


class TransitionResponse(BaseModel):
    """Schema for plan transition responses."""

    success: bool = Field(..., description="Whether the transition was applied")
    message: str = Field(..., description="Response message")
    changed: bool = Field(..., description="False when the request had nothing to change")
    data: SubscriptionStatus


class QuotaConsumeResponse(BaseModel):
    success: bool
    allowed: bool
    action_type: ActionType
    tier: Tier
    unlimited: bool
    remaining: int | None = Field(None, description="Remaining today; null when unlimited")
    limit: int | None = None
    day_key: date | None = None
    reason: str | None = None


class RemainingUsageResponse(BaseModel):
    success: bool
    tier: Tier
    day_key: date
    remaining: dict[ActionType, int | None] = Field(
        ..., description="Remaining today per action; null means unlimited"
    )


class FeatureCheckResponse(BaseModel):
    success: bool
    allowed: bool
    feature: Feature
    current_tier: Tier
    active: bool
    unlocked_by: list[Tier]
    reason: str | None = None


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    reason: str = Field(..., description="Machine-readable error code")
    message: str
    retryable: bool = False
