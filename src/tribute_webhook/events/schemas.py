"""Pydantic models for Tribute webhook envelopes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class TributeEvent(BaseModel):
    """Event envelope posted by Tribute; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    name: str
    payload: Any = None
    created_at: Any = None


class PaymentCompletedPayload(BaseModel):
    """Permissive payload of the payment completion events."""

    model_config = ConfigDict(extra="allow")

    payment_id: Any = None
    id: Any = None
