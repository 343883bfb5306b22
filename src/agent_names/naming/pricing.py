"""PricingPolicy — advisory fee tiers keyed by name length.

Settlement happens off-system. The policy exists so any observer can
independently compute the fee an operator should have collected for a
name before calling ``register``.

Amounts are integers in the smallest unit of the settlement currency
(6 decimals, so ``5_000_000`` is 5.00).
"""
from __future__ import annotations

from dataclasses import dataclass

from agent_names.errors import InvalidLengthError
from agent_names.naming.validator import MAX_NAME_LENGTH, MIN_NAME_LENGTH

SHORT_TIER_PRICE: int = 50_000_000
STANDARD_TIER_PRICE: int = 5_000_000
SHORT_NAME_MAX_LENGTH: int = 4


@dataclass(frozen=True)
class PricingPolicy:
    """Two-tier length-based price table.

    Parameters
    ----------
    short_tier_price:
        Fee for names of ``min_length`` to ``short_name_max_length`` bytes.
    standard_tier_price:
        Fee for longer names up to ``max_length`` bytes.
    short_name_max_length:
        Longest name (in bytes) billed at the short tier.
    min_length, max_length:
        Priced length range; anything outside fails with InvalidLengthError.
    """

    short_tier_price: int = SHORT_TIER_PRICE
    standard_tier_price: int = STANDARD_TIER_PRICE
    short_name_max_length: int = SHORT_NAME_MAX_LENGTH
    min_length: int = MIN_NAME_LENGTH
    max_length: int = MAX_NAME_LENGTH

    def price_for(self, name: str) -> int:
        """Return the fee for *name*.

        Only the byte length is consulted; character rules are the
        validator's concern.

        Raises
        ------
        InvalidLengthError
            If the byte length is outside ``[min_length, max_length]``.
        """
        length = len(name.encode("utf-8", "surrogatepass"))
        if length < self.min_length or length > self.max_length:
            raise InvalidLengthError(name, self.min_length, self.max_length)
        if length <= self.short_name_max_length:
            return self.short_tier_price
        return self.standard_tier_price

    def to_dict(self) -> dict[str, int]:
        """Serialize the price table."""
        return {
            "short_tier_price": self.short_tier_price,
            "standard_tier_price": self.standard_tier_price,
            "short_name_max_length": self.short_name_max_length,
            "min_length": self.min_length,
            "max_length": self.max_length,
        }
