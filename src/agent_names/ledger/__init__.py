"""Token ownership ledger with holder-change hooks."""
from __future__ import annotations

from agent_names.ledger.token_ledger import TokenLedger, TransferHook

__all__ = ["TokenLedger", "TransferHook"]
