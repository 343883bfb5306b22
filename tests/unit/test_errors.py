"""Tests for agent_names.errors — stable codes and builtin bases."""
from __future__ import annotations

import pytest

from agent_names.errors import (
    InsufficientFundsError,
    InvalidPrincipalError,
    InvalidRecipientError,
    NameNotAvailableError,
    NameNotRegisteredError,
    NotAdminError,
    NotOperatorError,
    RegistryError,
    TokenNotFoundError,
    ZeroAddressError,
    ZeroHashError,
)


class TestBuiltinBases:
    def test_not_available_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            raise NameNotAvailableError("alice")

    def test_not_registered_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            raise NameNotRegisteredError("alice")

    def test_token_not_found_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            raise TokenNotFoundError(7)

    def test_unauthorized_is_permission_error(self) -> None:
        with pytest.raises(PermissionError):
            raise NotOperatorError("x")

    def test_all_are_registry_errors(self) -> None:
        for exc in [
            NameNotAvailableError("a"),
            NameNotRegisteredError("a"),
            TokenNotFoundError(1),
            NotAdminError("x"),
            ZeroHashError(),
            InsufficientFundsError(5, 1),
        ]:
            assert isinstance(exc, RegistryError)


class TestMessagesAndCodes:
    def test_not_registered_message_is_unquoted(self) -> None:
        assert str(NameNotRegisteredError("alice")) == "Name 'alice' is not registered."

    def test_token_not_found_message(self) -> None:
        assert "7" in str(TokenNotFoundError(7))

    def test_codes_distinct(self) -> None:
        codes = {
            NameNotAvailableError.code,
            NameNotRegisteredError.code,
            TokenNotFoundError.code,
            NotOperatorError.code,
            NotAdminError.code,
            ZeroAddressError.code,
            ZeroHashError.code,
        }
        assert len(codes) == 7

    def test_principal_and_recipient_are_zero_address_errors(self) -> None:
        assert isinstance(InvalidPrincipalError("operator"), ZeroAddressError)
        assert isinstance(InvalidRecipientError("recipient"), ZeroAddressError)
