"""Route handler functions for the agent-names HTTP server.

Each function accepts the calling principal and parsed request data and
returns a tuple of (status_code, response_dict). The HTTP handler in
app.py calls these functions and serializes the results to JSON.

Registry errors map to stable status codes:

============================  ======
Error                         Status
============================  ======
NameValidationError           422
InvalidArgumentError          422
NameNotAvailableError         409
NameNotRegisteredError        404
TokenNotFoundError            404
UnauthorizedError             403
RegistryPausedError           503
============================  ======
"""
from __future__ import annotations

import base64
import binascii

from pydantic import ValidationError

from agent_names import __version__
from agent_names.access.roles import AccessControl
from agent_names.config import RegistrySettings
from agent_names.errors import (
    InvalidArgumentError,
    NameNotAvailableError,
    NameNotRegisteredError,
    NameValidationError,
    RegistryError,
    RegistryPausedError,
    TokenNotFoundError,
    UnauthorizedError,
)
from agent_names.primitives import parse_hash
from agent_names.registry.name_registry import NameRegistry
from agent_names.registry.records import IdentityRecord
from agent_names.server.models import (
    AvailabilityResponse,
    BlobRequest,
    BlobResponse,
    DepositRequest,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    IdentityResponse,
    OperatorRequest,
    PaymentAddressRequest,
    PriceResponse,
    RegisterRequest,
    RegisterResponse,
    RenewResponse,
    SoulUpdateRequest,
    TokenResponse,
    TransferRequest,
    TreasuryResponse,
    WithdrawRequest,
)

DEFAULT_ADMIN = "admin"

_STATUS_BY_ERROR: list[tuple[type[RegistryError], int, str]] = [
    (NameValidationError, 422, "Validation error"),
    (NameNotAvailableError, 409, "Conflict"),
    (NameNotRegisteredError, 404, "Not found"),
    (TokenNotFoundError, 404, "Not found"),
    (UnauthorizedError, 403, "Forbidden"),
    (RegistryPausedError, 503, "Paused"),
    (InvalidArgumentError, 422, "Invalid argument"),
]


def _build_registry(settings: RegistrySettings | None = None) -> NameRegistry:
    settings = settings or RegistrySettings()
    roles = AccessControl(admin=settings.admin or DEFAULT_ADMIN, operators=settings.operators)
    return NameRegistry(roles, settings=settings)


# Module-level shared state
_registry: NameRegistry = _build_registry()


def reset_state(
    registry: NameRegistry | None = None,
    settings: RegistrySettings | None = None,
) -> NameRegistry:
    """Reset shared state — used in tests and for clean restarts.

    Parameters
    ----------
    registry:
        Use this registry instead of building a new one.
    settings:
        Settings for a newly built registry (ignored if *registry* is given).
    """
    global _registry
    _registry = registry if registry is not None else _build_registry(settings)
    return _registry


def get_registry() -> NameRegistry:
    return _registry


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _error(exc: RegistryError) -> tuple[int, dict[str, object]]:
    for error_type, status, label in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status, ErrorResponse(error=label, code=exc.code, detail=str(exc)).model_dump()
    return 400, ErrorResponse(error="Bad request", code=exc.code, detail=str(exc)).model_dump()


def _invalid(detail: str) -> tuple[int, dict[str, object]]:
    return 422, ErrorResponse(error="Validation error", detail=detail).model_dump()


def _record_to_response(name: str, record: IdentityRecord) -> IdentityResponse:
    data = record.to_dict()
    return IdentityResponse(
        name=name,
        token_id=record.token_id,
        owner=record.owner,
        soul_hash=str(data["soul_hash"]),
        payment_address=record.payment_address,
        registered_at=record.registered_at.isoformat(),
        expires_at=record.expires_at.isoformat(),
    )


# ------------------------------------------------------------------
# Operator mutations
# ------------------------------------------------------------------


def handle_register(caller: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /names."""
    try:
        request = RegisterRequest.model_validate(body)
        soul_hash = parse_hash(request.soul_hash)
    except (ValidationError, ValueError) as exc:
        return _invalid(str(exc))

    try:
        token_id = _registry.register(
            caller,
            request.name,
            owner=request.owner,
            soul_hash=soul_hash,
            payment_address=request.payment_address,
        )
        record = _registry.resolve(request.name)
    except RegistryError as exc:
        return _error(exc)

    response = RegisterResponse(
        name=request.name, token_id=token_id, expires_at=record.expires_at.isoformat()
    )
    return 201, response.model_dump()


def handle_renew(caller: str, name: str) -> tuple[int, dict[str, object]]:
    """Handle POST /names/{name}/renew."""
    try:
        expires_at = _registry.renew(caller, name)
    except RegistryError as exc:
        return _error(exc)
    return 200, RenewResponse(name=name, expires_at=expires_at.isoformat()).model_dump()


def handle_update_soul(
    caller: str, name: str, body: dict[str, object]
) -> tuple[int, dict[str, object]]:
    """Handle PUT /names/{name}/soul."""
    try:
        request = SoulUpdateRequest.model_validate(body)
        soul_hash = parse_hash(request.soul_hash)
    except (ValidationError, ValueError) as exc:
        return _invalid(str(exc))

    try:
        _registry.update_soul(caller, name, soul_hash)
    except RegistryError as exc:
        return _error(exc)
    return 200, {"name": name, "soul_hash": "0x" + soul_hash.hex()}


def handle_update_payment_address(
    caller: str, name: str, body: dict[str, object]
) -> tuple[int, dict[str, object]]:
    """Handle PUT /names/{name}/payment-address."""
    try:
        request = PaymentAddressRequest.model_validate(body)
    except ValidationError as exc:
        return _invalid(str(exc))

    try:
        _registry.update_payment_address(caller, name, request.payment_address)
    except RegistryError as exc:
        return _error(exc)
    return 200, {"name": name, "payment_address": request.payment_address}


def handle_store_blob(
    caller: str, name: str, body: dict[str, object]
) -> tuple[int, dict[str, object]]:
    """Handle PUT /names/{name}/blob. The body carries base64 ``data``."""
    try:
        request = BlobRequest.model_validate(body)
        data = base64.b64decode(request.data, validate=True)
    except (ValidationError, binascii.Error) as exc:
        return _invalid(str(exc))

    try:
        _registry.store_blob(caller, name, data)
    except RegistryError as exc:
        return _error(exc)
    return 200, BlobResponse(name=name, data=request.data, size=len(data)).model_dump()


# ------------------------------------------------------------------
# Token ledger
# ------------------------------------------------------------------


def handle_transfer(
    caller: str, token_id: int, body: dict[str, object]
) -> tuple[int, dict[str, object]]:
    """Handle POST /tokens/{id}/transfer."""
    try:
        request = TransferRequest.model_validate(body)
    except ValidationError as exc:
        return _invalid(str(exc))

    try:
        _registry.transfer(caller, token_id, request.to)
        name = _registry.token_to_name(token_id)
    except RegistryError as exc:
        return _error(exc)
    return 200, TokenResponse(name=name, token_id=token_id, holder=request.to).model_dump()


def handle_token_to_name(token_id: int) -> tuple[int, dict[str, object]]:
    """Handle GET /tokens/{id}."""
    try:
        name = _registry.token_to_name(token_id)
        holder = _registry.owner_of(token_id)
    except RegistryError as exc:
        return _error(exc)
    return 200, TokenResponse(name=name, token_id=token_id, holder=holder).model_dump()


# ------------------------------------------------------------------
# Reads
# ------------------------------------------------------------------


def handle_resolve(name: str) -> tuple[int, dict[str, object]]:
    """Handle GET /names/{name}."""
    try:
        record = _registry.resolve(name)
    except RegistryError as exc:
        return _error(exc)
    return 200, _record_to_response(name, record).model_dump()


def handle_is_available(name: str) -> tuple[int, dict[str, object]]:
    """Handle GET /names/{name}/available."""
    try:
        available = _registry.is_available(name)
    except RegistryError as exc:
        return _error(exc)
    return 200, AvailabilityResponse(name=name, available=available).model_dump()


def handle_get_price(name: str) -> tuple[int, dict[str, object]]:
    """Handle GET /names/{name}/price."""
    try:
        price = _registry.get_price(name)
    except RegistryError as exc:
        return _error(exc)
    return 200, PriceResponse(name=name, price=price).model_dump()


def handle_name_to_token(name: str) -> tuple[int, dict[str, object]]:
    """Handle GET /names/{name}/token."""
    try:
        token_id = _registry.name_to_token(name)
    except RegistryError as exc:
        return _error(exc)
    return 200, TokenResponse(name=name, token_id=token_id).model_dump()


def handle_get_blob(name: str) -> tuple[int, dict[str, object]]:
    """Handle GET /names/{name}/blob. Always 200; empty data if none stored."""
    data = _registry.get_blob(name)
    encoded = base64.b64encode(data).decode("ascii")
    return 200, BlobResponse(name=name, data=encoded, size=len(data)).model_dump()


def handle_events(since: int = 0, name: str | None = None) -> tuple[int, dict[str, object]]:
    """Handle GET /events."""
    events = _registry.events(name=name, since=since)
    return 200, EventsResponse(events=[e.to_dict() for e in events]).model_dump()


def handle_health() -> tuple[int, dict[str, object]]:
    """Handle GET /health."""
    response = HealthResponse(
        version=__version__,
        name_count=len(_registry.list_names()),
        paused=_registry.paused,
    )
    return 200, response.model_dump()


# ------------------------------------------------------------------
# Admin
# ------------------------------------------------------------------


def handle_set_operator(caller: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /admin/operators."""
    try:
        request = OperatorRequest.model_validate(body)
    except ValidationError as exc:
        return _invalid(str(exc))

    try:
        _registry.set_operator(caller, request.principal, request.enabled)
    except RegistryError as exc:
        return _error(exc)
    return 200, {"principal": request.principal, "enabled": request.enabled}


def handle_pause(caller: str) -> tuple[int, dict[str, object]]:
    """Handle POST /admin/pause."""
    try:
        _registry.pause(caller)
    except RegistryError as exc:
        return _error(exc)
    return 200, {"paused": True}


def handle_unpause(caller: str) -> tuple[int, dict[str, object]]:
    """Handle POST /admin/unpause."""
    try:
        _registry.unpause(caller)
    except RegistryError as exc:
        return _error(exc)
    return 200, {"paused": False}


def handle_deposit(caller: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /treasury/deposit."""
    try:
        request = DepositRequest.model_validate(body)
    except ValidationError as exc:
        return _invalid(str(exc))

    try:
        balance = _registry.deposit(caller, request.amount)
    except RegistryError as exc:
        return _error(exc)
    return 200, TreasuryResponse(balance=balance).model_dump()


def handle_withdraw(caller: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /admin/withdraw."""
    try:
        request = WithdrawRequest.model_validate(body)
    except ValidationError as exc:
        return _invalid(str(exc))

    try:
        balance = _registry.withdraw(caller, request.recipient, request.amount)
    except RegistryError as exc:
        return _error(exc)
    return 200, TreasuryResponse(balance=balance).model_dump()


__all__ = [
    "get_registry",
    "handle_deposit",
    "handle_events",
    "handle_get_blob",
    "handle_get_price",
    "handle_health",
    "handle_is_available",
    "handle_name_to_token",
    "handle_pause",
    "handle_register",
    "handle_renew",
    "handle_resolve",
    "handle_set_operator",
    "handle_store_blob",
    "handle_token_to_name",
    "handle_transfer",
    "handle_unpause",
    "handle_update_payment_address",
    "handle_update_soul",
    "handle_withdraw",
    "reset_state",
]
