"""Name syntax rules, canonical hashing and advisory pricing."""
from __future__ import annotations

from agent_names.naming.pricing import (
    SHORT_TIER_PRICE,
    STANDARD_TIER_PRICE,
    PricingPolicy,
)
from agent_names.naming.validator import (
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    NameValidator,
    name_hash,
    validate_name,
)

__all__ = [
    "MAX_NAME_LENGTH",
    "MIN_NAME_LENGTH",
    "NameValidator",
    "PricingPolicy",
    "SHORT_TIER_PRICE",
    "STANDARD_TIER_PRICE",
    "name_hash",
    "validate_name",
]
