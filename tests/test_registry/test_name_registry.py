"""Tests for agent_names.registry.name_registry — NameRegistry entry points."""
from __future__ import annotations

import datetime
from pathlib import Path

import pytest

from agent_names.access.roles import AccessControl
from agent_names.audit.log import EventType
from agent_names.clock import ManualClock
from agent_names.config import RegistrySettings
from agent_names.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    InvalidCharacterError,
    InvalidLengthError,
    InvalidPrincipalError,
    InvalidRecipientError,
    NameNotAvailableError,
    NameNotRegisteredError,
    NotAdminError,
    NotOperatorError,
    RegistryError,
    RegistryPausedError,
    TokenNotFoundError,
    TrailingHyphenError,
)
from agent_names.naming.pricing import SHORT_TIER_PRICE, STANDARD_TIER_PRICE
from agent_names.registry.name_registry import NameRegistry

T0 = datetime.datetime(2025, 1, 1, tzinfo=datetime.timezone.utc)
YEAR = datetime.timedelta(days=365)
DAY = datetime.timedelta(days=1)
SOUL = bytes.fromhex("ab" * 32)
SOUL_2 = bytes.fromhex("cd" * 32)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture()
def registry(clock: ManualClock) -> NameRegistry:
    return NameRegistry(AccessControl(admin="admin", operators=["op"]), clock=clock)


def _register(
    registry: NameRegistry,
    name: str = "alice",
    owner: str = "0xa",
    caller: str = "op",
) -> int:
    return registry.register(caller, name, owner=owner, soul_hash=SOUL, payment_address=owner)


# ---------------------------------------------------------------------------
# Registration and resolution
# ---------------------------------------------------------------------------


class TestRegisterAndResolve:
    def test_register_returns_token_and_resolves(self, registry: NameRegistry) -> None:
        token_id = _register(registry)
        record = registry.resolve("alice")
        assert record.token_id == token_id
        assert record.owner == "0xa"
        assert record.expires_at == record.registered_at + YEAR
        assert registry.owner_of(token_id) == "0xa"

    def test_name_and_token_are_mutual_inverses(self, registry: NameRegistry) -> None:
        token_id = _register(registry)
        assert registry.name_to_token("alice") == token_id
        assert registry.token_to_name(token_id) == "alice"

    def test_name_to_token_unknown(self, registry: NameRegistry) -> None:
        with pytest.raises(NameNotRegisteredError):
            registry.name_to_token("ghost")

    def test_token_to_name_unknown(self, registry: NameRegistry) -> None:
        with pytest.raises(TokenNotFoundError):
            registry.token_to_name(99)

    def test_token_to_name_zero_sentinel(self, registry: NameRegistry) -> None:
        with pytest.raises(TokenNotFoundError):
            registry.token_to_name(0)

    def test_double_register_not_available(self, registry: NameRegistry) -> None:
        _register(registry)
        with pytest.raises(NameNotAvailableError):
            _register(registry, owner="0xb")

    def test_invalid_name_rejected(self, registry: NameRegistry) -> None:
        with pytest.raises(TrailingHyphenError):
            _register(registry, name="alice-")

    def test_contains(self, registry: NameRegistry, clock: ManualClock) -> None:
        _register(registry)
        assert "alice" in registry
        assert "bob" not in registry
        clock.advance(YEAR + DAY)
        assert "alice" not in registry

    def test_len_counts_lapsed_records(self, registry: NameRegistry, clock: ManualClock) -> None:
        _register(registry)
        clock.advance(YEAR + DAY)
        assert len(registry) == 1
        assert registry.list_names() == []
        assert [n for n, _ in registry.list_names(include_expired=True)] == ["alice"]


class TestAvailabilityAndPrice:
    def test_is_available(self, registry: NameRegistry) -> None:
        assert registry.is_available("alice")
        _register(registry)
        assert not registry.is_available("alice")

    def test_is_available_validates(self, registry: NameRegistry) -> None:
        with pytest.raises(TrailingHyphenError):
            registry.is_available("bad-")

    def test_price_tiers(self, registry: NameRegistry) -> None:
        assert registry.get_price("abc") == SHORT_TIER_PRICE
        assert registry.get_price("abcd") == SHORT_TIER_PRICE
        assert registry.get_price("abcde") == STANDARD_TIER_PRICE
        assert registry.get_price("a" * 32) == STANDARD_TIER_PRICE

    def test_price_out_of_range(self, registry: NameRegistry) -> None:
        with pytest.raises(InvalidLengthError):
            registry.get_price("ab")
        with pytest.raises(InvalidLengthError):
            registry.get_price("a" * 33)

    def test_custom_settings(self, clock: ManualClock) -> None:
        settings = RegistrySettings(lease_days=30, standard_tier_price=1)
        registry = NameRegistry(
            AccessControl(admin="admin", operators=["op"]), clock=clock, settings=settings
        )
        _register(registry)
        assert registry.resolve("alice").expires_at == T0 + datetime.timedelta(days=30)
        assert registry.get_price("alice") == 1


class TestMalformedNames:
    BAD = "ab\udc80"

    def test_is_available_rejects_with_invalid_character(self, registry: NameRegistry) -> None:
        with pytest.raises(InvalidCharacterError):
            registry.is_available(self.BAD)

    def test_register_rejects_with_invalid_character(self, registry: NameRegistry) -> None:
        with pytest.raises(InvalidCharacterError):
            _register(registry, name=self.BAD)
        assert len(registry) == 0
        assert registry.events() == []

    def test_reads_report_not_registered(self, registry: NameRegistry) -> None:
        with pytest.raises(NameNotRegisteredError):
            registry.resolve(self.BAD)
        with pytest.raises(NameNotRegisteredError):
            registry.name_to_token(self.BAD)
        assert self.BAD not in registry

    def test_get_blob_never_fails(self, registry: NameRegistry) -> None:
        assert registry.get_blob(self.BAD) == b""

    def test_operator_updates_report_not_registered(self, registry: NameRegistry) -> None:
        with pytest.raises(NameNotRegisteredError):
            registry.renew("op", self.BAD)
        with pytest.raises(NameNotRegisteredError):
            registry.store_blob("op", self.BAD, b"x")


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------


class TestOperatorGate:
    def test_non_operator_rejected_everywhere(self, registry: NameRegistry) -> None:
        _register(registry)
        calls = [
            lambda: _register(registry, name="bobby", caller="stranger"),
            lambda: registry.renew("stranger", "alice"),
            lambda: registry.update_soul("stranger", "alice", SOUL_2),
            lambda: registry.update_payment_address("stranger", "alice", "0xz"),
            lambda: registry.store_blob("stranger", "alice", b"x"),
        ]
        for call in calls:
            with pytest.raises(NotOperatorError):
                call()

    def test_admin_is_not_an_operator(self, registry: NameRegistry) -> None:
        with pytest.raises(NotOperatorError):
            _register(registry, caller="admin")

    def test_revoked_operator_rejected(self, registry: NameRegistry) -> None:
        registry.set_operator("admin", "op", False)
        with pytest.raises(NotOperatorError):
            _register(registry)


class TestCircuitBreaker:
    def test_paused_blocks_all_operator_mutations(self, registry: NameRegistry) -> None:
        _register(registry)
        registry.pause("admin")
        calls = [
            lambda: _register(registry, name="bobby"),
            lambda: registry.renew("op", "alice"),
            lambda: registry.update_soul("op", "alice", SOUL_2),
            lambda: registry.update_payment_address("op", "alice", "0xz"),
            lambda: registry.store_blob("op", "alice", b"x"),
        ]
        for call in calls:
            with pytest.raises(RegistryPausedError):
                call()

    def test_pause_checked_before_authorization(self, registry: NameRegistry) -> None:
        registry.pause("admin")
        with pytest.raises(RegistryPausedError):
            _register(registry, caller="stranger")

    def test_reads_work_while_paused(self, registry: NameRegistry) -> None:
        token_id = _register(registry)
        registry.pause("admin")
        assert registry.resolve("alice").owner == "0xa"
        assert not registry.is_available("alice")
        assert registry.name_to_token("alice") == token_id
        assert registry.token_to_name(token_id) == "alice"
        assert registry.get_blob("alice") == b""
        assert registry.get_price("alice") == STANDARD_TIER_PRICE

    def test_admin_ops_work_while_paused(self, registry: NameRegistry) -> None:
        registry.pause("admin")
        registry.set_operator("admin", "op-2", True)
        assert registry.is_operator("op-2")

    def test_unpause_restores_without_corruption(self, registry: NameRegistry) -> None:
        _register(registry)
        before = registry.resolve("alice")
        registry.pause("admin")
        with pytest.raises(RegistryPausedError):
            registry.renew("op", "alice")
        registry.unpause("admin")
        assert registry.resolve("alice") == before
        registry.renew("op", "alice")
        assert registry.resolve("alice").expires_at == before.expires_at + YEAR

    def test_only_admin_can_pause(self, registry: NameRegistry) -> None:
        with pytest.raises(NotAdminError):
            registry.pause("op")
        assert registry.paused is False

    def test_pause_events_only_on_change(self, registry: NameRegistry) -> None:
        registry.pause("admin")
        registry.pause("admin")
        registry.unpause("admin")
        types = [e.event_type for e in registry.events()]
        assert types == [EventType.PAUSED, EventType.UNPAUSED]


# ---------------------------------------------------------------------------
# Renew / updates through the facade
# ---------------------------------------------------------------------------


class TestRenew:
    def test_renew_live(self, registry: NameRegistry) -> None:
        _register(registry)
        expiry = registry.resolve("alice").expires_at
        assert registry.renew("op", "alice") == expiry + YEAR

    def test_renew_after_grace_not_backdated(
        self, registry: NameRegistry, clock: ManualClock
    ) -> None:
        token_id = _register(registry)
        clock.advance(YEAR + 90 * DAY)
        assert registry.renew("op", "alice") == clock.now() + YEAR
        assert registry.name_to_token("alice") == token_id

    def test_renew_unknown(self, registry: NameRegistry) -> None:
        with pytest.raises(NameNotRegisteredError):
            registry.renew("op", "ghost")


class TestUpdates:
    def test_update_soul_and_payment(self, registry: NameRegistry) -> None:
        _register(registry)
        registry.update_soul("op", "alice", SOUL_2)
        registry.update_payment_address("op", "alice", "0xpay")
        record = registry.resolve("alice")
        assert record.soul_hash == SOUL_2
        assert record.payment_address == "0xpay"


# ---------------------------------------------------------------------------
# Blobs
# ---------------------------------------------------------------------------


class TestBlobs:
    def test_store_and_get(self, registry: NameRegistry) -> None:
        _register(registry)
        registry.store_blob("op", "alice", b"\x00\x01ciphertext")
        assert registry.get_blob("alice") == b"\x00\x01ciphertext"

    def test_get_missing_is_empty(self, registry: NameRegistry) -> None:
        assert registry.get_blob("ghost") == b""
        assert registry.get_blob("!!") == b""

    def test_store_requires_record(self, registry: NameRegistry) -> None:
        with pytest.raises(NameNotRegisteredError):
            registry.store_blob("op", "ghost", b"x")

    def test_store_on_expired_unreclaimed_record(
        self, registry: NameRegistry, clock: ManualClock
    ) -> None:
        _register(registry)
        clock.advance(YEAR + DAY)
        registry.store_blob("op", "alice", b"late")
        assert registry.get_blob("alice") == b"late"

    def test_blob_cleared_on_reclaim(self, registry: NameRegistry, clock: ManualClock) -> None:
        _register(registry)
        registry.store_blob("op", "alice", b"old")
        clock.advance(YEAR + DAY)
        _register(registry, owner="0xb")
        assert registry.get_blob("alice") == b""

    def test_blob_survives_renewal(self, registry: NameRegistry, clock: ManualClock) -> None:
        _register(registry)
        registry.store_blob("op", "alice", b"keep")
        clock.advance(YEAR + DAY)
        registry.renew("op", "alice")
        assert registry.get_blob("alice") == b"keep"

    def test_blob_event(self, registry: NameRegistry) -> None:
        _register(registry)
        registry.store_blob("op", "alice", b"1234")
        event = registry.events(event_type=EventType.BLOB_STORED)[0]
        assert event.details == {"size": 4}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class TestAdmin:
    def test_set_operator_requires_admin(self, registry: NameRegistry) -> None:
        with pytest.raises(NotAdminError):
            registry.set_operator("op", "op-2", True)

    def test_set_operator_null_principal(self, registry: NameRegistry) -> None:
        with pytest.raises(InvalidPrincipalError):
            registry.set_operator("admin", "", True)

    def test_set_operator_event(self, registry: NameRegistry) -> None:
        registry.set_operator("admin", "op-2", True)
        event = registry.events(event_type=EventType.OPERATOR_CHANGED)[0]
        assert event.details == {"operator": "op-2", "enabled": True}

    def test_transfer_admin(self, registry: NameRegistry) -> None:
        registry.transfer_admin("admin", "root")
        assert registry.admin == "root"
        with pytest.raises(NotAdminError):
            registry.pause("admin")
        registry.pause("root")
        assert registry.paused

    def test_deposit_and_withdraw(self, registry: NameRegistry) -> None:
        assert registry.deposit("payer", 100) == 100
        assert registry.withdraw("admin", "0xtreasury", 40) == 60
        assert registry.balance == 60

    def test_withdraw_requires_admin(self, registry: NameRegistry) -> None:
        registry.deposit("payer", 100)
        with pytest.raises(NotAdminError):
            registry.withdraw("op", "0xtreasury", 1)

    def test_withdraw_null_recipient(self, registry: NameRegistry) -> None:
        registry.deposit("payer", 100)
        with pytest.raises(InvalidRecipientError):
            registry.withdraw("admin", "", 1)

    def test_withdraw_more_than_balance(self, registry: NameRegistry) -> None:
        registry.deposit("payer", 10)
        with pytest.raises(InsufficientFundsError):
            registry.withdraw("admin", "0xtreasury", 11)
        assert registry.balance == 10

    def test_non_positive_amounts(self, registry: NameRegistry) -> None:
        with pytest.raises(InvalidAmountError):
            registry.deposit("payer", 0)
        with pytest.raises(InvalidAmountError):
            registry.withdraw("admin", "0xtreasury", -1)

    def test_withdraw_works_while_paused(self, registry: NameRegistry) -> None:
        registry.deposit("payer", 5)
        registry.pause("admin")
        assert registry.withdraw("admin", "0xtreasury", 5) == 0


# ---------------------------------------------------------------------------
# Atomicity and audit ordering
# ---------------------------------------------------------------------------


class TestAtomicity:
    def test_rejected_calls_emit_no_events(self, registry: NameRegistry) -> None:
        _register(registry)
        count = len(registry.events())
        for call in [
            lambda: _register(registry),
            lambda: registry.renew("stranger", "alice"),
            lambda: registry.update_soul("op", "alice", b""),
            lambda: registry.store_blob("op", "ghost", b"x"),
        ]:
            with pytest.raises(RegistryError):
                call()
        assert len(registry.events()) == count

    def test_event_sequence_matches_commit_order(
        self, registry: NameRegistry, clock: ManualClock
    ) -> None:
        token_id = _register(registry)
        clock.advance(DAY)
        registry.renew("op", "alice")
        registry.transfer("0xa", token_id, "0xb")
        registry.update_soul("op", "alice", SOUL_2)
        events = registry.events()
        assert [e.sequence for e in events] == [1, 2, 3, 4]
        assert [e.event_type for e in events] == [
            EventType.NAME_REGISTERED,
            EventType.NAME_RENEWED,
            EventType.OWNERSHIP_TRANSFERRED,
            EventType.SOUL_UPDATED,
        ]
        assert events[1].timestamp == T0 + DAY


class TestAuditMirrorFailure:
    """A call whose audit write fails must leave every table untouched."""

    @pytest.fixture()
    def mirror(self, tmp_path: Path) -> Path:
        return tmp_path / "events.jsonl"

    @pytest.fixture()
    def mirrored(self, clock: ManualClock, mirror: Path) -> NameRegistry:
        return NameRegistry(
            AccessControl(admin="admin", operators=["op"]),
            clock=clock,
            settings=RegistrySettings(audit_log_path=str(mirror)),
        )

    @staticmethod
    def _break(mirror: Path) -> None:
        mirror.unlink()
        mirror.mkdir()

    def test_unwritable_mirror_rejected_at_construction(
        self, clock: ManualClock, tmp_path: Path
    ) -> None:
        with pytest.raises(OSError):
            NameRegistry(
                AccessControl(admin="admin", operators=["op"]),
                clock=clock,
                settings=RegistrySettings(audit_log_path=str(tmp_path)),
            )

    def test_failed_register_leaves_name_available(
        self, mirrored: NameRegistry, mirror: Path
    ) -> None:
        self._break(mirror)
        with pytest.raises(OSError):
            _register(mirrored)
        assert len(mirrored) == 0
        assert mirrored.is_available("alice") is True
        assert len(mirrored.ledger) == 0
        assert mirrored.store.last_token_id == 0
        assert mirrored.events() == []

    def test_failed_reclaim_keeps_old_registration(
        self, mirrored: NameRegistry, mirror: Path, clock: ManualClock
    ) -> None:
        token_id = _register(mirrored)
        mirrored.store_blob("op", "alice", b"old")
        clock.advance(YEAR + DAY)
        events_before = len(mirrored.events())
        self._break(mirror)

        with pytest.raises(OSError):
            _register(mirrored, owner="0xb")

        assert mirrored.name_to_token("alice") == token_id
        assert mirrored.token_to_name(token_id) == "alice"
        assert mirrored.owner_of(token_id) == "0xa"
        assert mirrored.get_blob("alice") == b"old"
        assert mirrored.store.last_token_id == token_id
        assert len(mirrored.events()) == events_before

    def test_failed_updates_change_nothing(
        self, mirrored: NameRegistry, mirror: Path
    ) -> None:
        token_id = _register(mirrored)
        mirrored.deposit("payer", 10)
        before = mirrored.resolve("alice")
        events_before = len(mirrored.events())
        self._break(mirror)

        calls = [
            lambda: mirrored.renew("op", "alice"),
            lambda: mirrored.update_soul("op", "alice", SOUL_2),
            lambda: mirrored.update_payment_address("op", "alice", "0xz"),
            lambda: mirrored.store_blob("op", "alice", b"x"),
            lambda: mirrored.transfer("0xa", token_id, "0xb"),
            lambda: mirrored.set_operator("admin", "op-2", True),
            lambda: mirrored.transfer_admin("admin", "root"),
            lambda: mirrored.pause("admin"),
            lambda: mirrored.deposit("payer", 5),
            lambda: mirrored.withdraw("admin", "0xt", 5),
        ]
        for call in calls:
            with pytest.raises(OSError):
                call()

        assert mirrored.resolve("alice") == before
        assert mirrored.owner_of(token_id) == "0xa"
        assert mirrored.get_blob("alice") == b""
        assert not mirrored.is_operator("op-2")
        assert mirrored.admin == "admin"
        assert mirrored.paused is False
        assert mirrored.balance == 10
        assert len(mirrored.events()) == events_before


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    def test_alice_lifecycle(self, registry: NameRegistry, clock: ManualClock) -> None:
        first = registry.register("op", "alice", owner="A", soul_hash=SOUL, payment_address="A")
        record = registry.resolve("alice")
        assert record.owner == "A"
        assert record.expires_at == T0 + YEAR

        clock.advance(366 * DAY)
        assert registry.is_available("alice") is True
        with pytest.raises(NameNotRegisteredError):
            registry.resolve("alice")

        second = registry.register("op", "alice", owner="B", soul_hash=SOUL, payment_address="B")
        assert second > first
        assert registry.resolve("alice").owner == "B"
        assert registry.token_to_name(second) == "alice"
        with pytest.raises(TokenNotFoundError):
            registry.token_to_name(first)
