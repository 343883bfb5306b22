"""Pydantic request/response models for the agent-names HTTP server."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request body for POST /names."""

    name: str
    owner: str
    soul_hash: str
    payment_address: str


class SoulUpdateRequest(BaseModel):
    """Request body for PUT /names/{name}/soul."""

    soul_hash: str


class PaymentAddressRequest(BaseModel):
    """Request body for PUT /names/{name}/payment-address."""

    payment_address: str


class BlobRequest(BaseModel):
    """Request body for PUT /names/{name}/blob. ``data`` is base64."""

    data: str


class TransferRequest(BaseModel):
    """Request body for POST /tokens/{id}/transfer."""

    to: str


class OperatorRequest(BaseModel):
    """Request body for POST /admin/operators."""

    principal: str
    enabled: bool = True


class WithdrawRequest(BaseModel):
    """Request body for POST /admin/withdraw."""

    recipient: str
    amount: int = Field(gt=0)


class DepositRequest(BaseModel):
    """Request body for POST /treasury/deposit."""

    amount: int = Field(gt=0)


class IdentityResponse(BaseModel):
    """Response body representing a live identity record."""

    name: str
    token_id: int
    owner: str
    soul_hash: str
    payment_address: str
    registered_at: str
    expires_at: str


class RegisterResponse(BaseModel):
    name: str
    token_id: int
    expires_at: str


class RenewResponse(BaseModel):
    name: str
    expires_at: str


class AvailabilityResponse(BaseModel):
    name: str
    available: bool


class PriceResponse(BaseModel):
    name: str
    price: int


class TokenResponse(BaseModel):
    name: str
    token_id: int
    holder: Optional[str] = None


class BlobResponse(BaseModel):
    name: str
    data: str = ""
    size: int = 0


class TreasuryResponse(BaseModel):
    balance: int


class EventsResponse(BaseModel):
    events: list[dict[str, object]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "agent-names"
    version: str = "0.1.0"
    name_count: int = 0
    paused: bool = False


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    code: str = ""
    detail: str = ""


__all__ = [
    "AvailabilityResponse",
    "BlobRequest",
    "BlobResponse",
    "DepositRequest",
    "ErrorResponse",
    "EventsResponse",
    "HealthResponse",
    "IdentityResponse",
    "OperatorRequest",
    "PaymentAddressRequest",
    "PriceResponse",
    "RegisterRequest",
    "RegisterResponse",
    "RenewResponse",
    "SoulUpdateRequest",
    "TokenResponse",
    "TransferRequest",
    "TreasuryResponse",
    "WithdrawRequest",
]
