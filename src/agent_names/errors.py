"""Exception hierarchy for agent-names.

Every rejected call raises one of these classes. Each class carries a
stable ``code`` string so that off-system callers (HTTP clients, the CLI,
indexers reading the audit log) can tell "not available" apart from "not
authorized" apart from "paused" without parsing messages.

Classes also subclass the closest builtin (``ValueError``, ``KeyError``,
``PermissionError``) so generic handlers keep working.
"""
from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry errors."""

    code: str = "registry_error"


# ------------------------------------------------------------------
# Name validation
# ------------------------------------------------------------------


class NameValidationError(RegistryError, ValueError):
    """Raised when a name fails syntax validation."""

    code = "invalid_name"

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"Name {name!r} is invalid: {reason}.")


class NameTooShortError(NameValidationError):
    code = "too_short"

    def __init__(self, name: str, min_length: int) -> None:
        super().__init__(name, f"must be at least {min_length} bytes long")


class NameTooLongError(NameValidationError):
    code = "too_long"

    def __init__(self, name: str, max_length: int) -> None:
        super().__init__(name, f"must be at most {max_length} bytes long")


class InvalidCharacterError(NameValidationError):
    code = "invalid_character"

    def __init__(self, name: str, position: int) -> None:
        self.position = position
        super().__init__(
            name, f"byte at position {position} is not in [a-z0-9-]"
        )


class LeadingHyphenError(NameValidationError):
    code = "leading_hyphen"

    def __init__(self, name: str) -> None:
        super().__init__(name, "must not start with a hyphen")


class TrailingHyphenError(NameValidationError):
    code = "trailing_hyphen"

    def __init__(self, name: str) -> None:
        super().__init__(name, "must not end with a hyphen")


class InvalidLengthError(NameValidationError):
    """Raised by the pricing policy for lengths outside the priced range."""

    code = "invalid_length"

    def __init__(self, name: str, min_length: int, max_length: int) -> None:
        super().__init__(
            name, f"length must be between {min_length} and {max_length} bytes"
        )


# ------------------------------------------------------------------
# Registration state
# ------------------------------------------------------------------


class NameNotAvailableError(RegistryError, ValueError):
    """Raised when registering a name that is currently live."""

    code = "not_available"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Name {name!r} is already registered and has not expired. "
            "Use renew() to extend an existing lease."
        )


class NameNotRegisteredError(RegistryError, KeyError):
    """Raised when a name has no record (or, for resolution, no live record)."""

    code = "not_registered"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Name {name!r} is not registered.")

    def __str__(self) -> str:
        return str(self.args[0])


class TokenNotFoundError(RegistryError, KeyError):
    """Raised when a token id is unknown or has been retired."""

    code = "token_not_found"

    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(f"Token {token_id} does not exist.")

    def __str__(self) -> str:
        return str(self.args[0])


# ------------------------------------------------------------------
# Authorization / circuit breaker
# ------------------------------------------------------------------


class UnauthorizedError(RegistryError, PermissionError):
    code = "unauthorized"


class NotOperatorError(UnauthorizedError):
    code = "not_operator"

    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"Principal {caller!r} is not an operator.")


class NotAdminError(UnauthorizedError):
    code = "not_admin"

    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"Principal {caller!r} is not the admin.")


class NotTokenHolderError(UnauthorizedError):
    """Raised when a caller may not move a token it neither holds nor is approved for."""

    code = "not_token_holder"

    def __init__(self, caller: str, token_id: int) -> None:
        self.caller = caller
        self.token_id = token_id
        super().__init__(
            f"Principal {caller!r} is neither the holder of nor approved for token {token_id}."
        )


class RegistryPausedError(RegistryError):
    code = "paused"

    def __init__(self) -> None:
        super().__init__("Registry is paused; operator mutations are disabled.")


# ------------------------------------------------------------------
# Arguments
# ------------------------------------------------------------------


class InvalidArgumentError(RegistryError, ValueError):
    code = "invalid_argument"


class ZeroAddressError(InvalidArgumentError):
    code = "zero_address"

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"{field_name} must not be the null principal.")


class InvalidPrincipalError(ZeroAddressError):
    code = "invalid_principal"


class InvalidRecipientError(ZeroAddressError):
    code = "invalid_recipient"


class ZeroHashError(InvalidArgumentError):
    code = "zero_hash"

    def __init__(self, field_name: str = "soul_hash") -> None:
        self.field_name = field_name
        super().__init__(f"{field_name} must not be empty or all-zero.")


class InvalidAmountError(InvalidArgumentError):
    code = "invalid_amount"

    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Amount must be a positive integer, got {amount!r}.")


class InsufficientFundsError(InvalidArgumentError):
    code = "insufficient_funds"

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot withdraw {requested}; only {available} is available."
        )


class SchemaVersionError(RegistryError, ValueError):
    """Raised when a state snapshot has an unsupported schema version."""

    code = "unsupported_schema"

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(f"Unsupported state schema version: {version!r}.")


__all__ = [
    "InsufficientFundsError",
    "InvalidAmountError",
    "InvalidArgumentError",
    "InvalidCharacterError",
    "InvalidLengthError",
    "InvalidPrincipalError",
    "InvalidRecipientError",
    "LeadingHyphenError",
    "NameNotAvailableError",
    "NameNotRegisteredError",
    "NameTooLongError",
    "NameTooShortError",
    "NameValidationError",
    "NotAdminError",
    "NotOperatorError",
    "NotTokenHolderError",
    "RegistryError",
    "RegistryPausedError",
    "SchemaVersionError",
    "TokenNotFoundError",
    "TrailingHyphenError",
    "UnauthorizedError",
    "ZeroAddressError",
    "ZeroHashError",
]
