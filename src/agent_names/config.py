"""RegistrySettings — tunable parameters for a registry instance."""
from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from agent_names.naming.pricing import (
    SHORT_NAME_MAX_LENGTH,
    SHORT_TIER_PRICE,
    STANDARD_TIER_PRICE,
    PricingPolicy,
)
from agent_names.naming.validator import MAX_NAME_LENGTH, MIN_NAME_LENGTH, NameValidator


class RegistrySettings(BaseModel):
    """Settings for :class:`~agent_names.registry.name_registry.NameRegistry`.

    Every field has a default, so ``RegistrySettings()`` gives the standard
    365-day lease with 3–32 byte names.
    """

    lease_days: int = Field(default=365, gt=0)
    min_length: int = Field(default=MIN_NAME_LENGTH, ge=1)
    max_length: int = Field(default=MAX_NAME_LENGTH, ge=1)
    short_name_max_length: int = Field(default=SHORT_NAME_MAX_LENGTH, ge=1)
    short_tier_price: int = Field(default=SHORT_TIER_PRICE, ge=0)
    standard_tier_price: int = Field(default=STANDARD_TIER_PRICE, ge=0)
    admin: Optional[str] = None
    operators: list[str] = Field(default_factory=list)
    audit_log_path: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "RegistrySettings":
        if self.max_length < self.min_length:
            raise ValueError("max_length must be >= min_length")
        return self

    @property
    def lease_duration(self) -> datetime.timedelta:
        return datetime.timedelta(days=self.lease_days)

    def validator(self) -> NameValidator:
        return NameValidator(min_length=self.min_length, max_length=self.max_length)

    def pricing(self) -> PricingPolicy:
        return PricingPolicy(
            short_tier_price=self.short_tier_price,
            standard_tier_price=self.standard_tier_price,
            short_name_max_length=self.short_name_max_length,
            min_length=self.min_length,
            max_length=self.max_length,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "RegistrySettings":
        """Load settings from a JSON file.

        Raises
        ------
        FileNotFoundError
            If *path* does not exist.
        pydantic.ValidationError
            If the file content does not match the schema.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)
