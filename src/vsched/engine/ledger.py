# src/vsched/engine/ledger.py
from __future__ import annotations

from typing import Protocol


class AssetLedger(Protocol):
    """
    What the vesting service needs from a fungible asset ledger.

    Implementations raise TransferError when a movement cannot be made.
    `vsched.storage.LedgerRepo` is the bundled SQLite implementation.
    """

    def balance_of(self, asset: str, holder: str) -> int: ...

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None: ...

    def transfer_from(self, asset: str, spender: str, owner: str, recipient: str, amount: int) -> None: ...
