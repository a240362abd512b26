# src/vsched/storage/ledger.py
from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from vsched.domain.errors import TransferError
from vsched.domain.models import MAX_AMOUNT
from vsched.logging import get_logger

from .db import atomic

_LOG = get_logger(__name__)


@dataclass
class LedgerRepo:
    """
    SQLite-backed fungible asset ledger.

    Balances are integers keyed by (asset, holder); allowances by
    (asset, owner, spender). Every write runs under `atomic`, so when the
    vesting service already holds a transaction on the same connection the
    ledger moves commit or roll back together with the schedule changes.
    """
    conn: sqlite3.Connection

    # -------------------------
    # Read operations
    # -------------------------

    def balance_of(self, asset: str, holder: str) -> int:
        row = self.conn.execute(
            "SELECT amount FROM balances WHERE asset = ? AND holder = ?;",
            (asset, holder),
        ).fetchone()
        return int(row["amount"]) if row else 0

    def total_supply(self, asset: str) -> int:
        row = self.conn.execute(
            "SELECT COALESCE(SUM(amount), 0) AS s FROM balances WHERE asset = ?;",
            (asset,),
        ).fetchone()
        return int(row["s"])

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        row = self.conn.execute(
            "SELECT amount FROM allowances WHERE asset = ? AND owner = ? AND spender = ?;",
            (asset, owner, spender),
        ).fetchone()
        return int(row["amount"]) if row else 0

    # -------------------------
    # Write operations
    # -------------------------

    def mint(self, asset: str, holder: str, amount: int) -> int:
        """
        Issues new units of `asset` to `holder`. Returns the new balance.

        Supply is capped at MAX_AMOUNT so that summing balances never overflows.
        """
        self._validate_amount(amount)
        with atomic(self.conn):
            supply = self.total_supply(asset)
            if supply + amount > MAX_AMOUNT:
                raise TransferError(
                    "Total supply would overflow",
                    details={"asset": asset, "total_supply": supply, "amount": amount},
                )
            self._credit(asset, holder, amount)
            balance = self.balance_of(asset, holder)
        _LOG.info("Minted %d %s to %s", amount, asset, holder)
        return balance

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        """
        Sets (not increments) the amount `spender` may move out of `owner`'s balance.
        """
        self._validate_amount(amount)
        with atomic(self.conn):
            self.conn.execute(
                """
                INSERT INTO allowances(asset, owner, spender, amount)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(asset, owner, spender) DO UPDATE SET amount = excluded.amount;
                """,
                (asset, owner, spender, amount),
            )

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        self._validate_amount(amount)
        with atomic(self.conn):
            self._debit(asset, sender, amount)
            self._credit(asset, recipient, amount)

    def transfer_from(self, asset: str, spender: str, owner: str, recipient: str, amount: int) -> None:
        """
        Moves `amount` from `owner` to `recipient`, spending `spender`'s allowance.
        """
        self._validate_amount(amount)
        with atomic(self.conn):
            spent = self.conn.execute(
                """
                UPDATE allowances
                SET amount = amount - ?
                WHERE asset = ? AND owner = ? AND spender = ?
                  AND amount >= ?;
                """,
                (amount, asset, owner, spender, amount),
            ).rowcount
            if spent == 0:
                current = self.allowance(asset, owner, spender)
                raise TransferError(
                    f"Insufficient allowance ({current} < {amount})",
                    details={"asset": asset, "owner": owner, "spender": spender, "allowance": current, "amount": amount},
                )

            self._debit(asset, owner, amount)
            self._credit(asset, recipient, amount)

    # -------------------------
    # Helpers
    # -------------------------

    def _debit(self, asset: str, holder: str, amount: int) -> None:
        updated = self.conn.execute(
            """
            UPDATE balances
            SET amount = amount - ?
            WHERE asset = ? AND holder = ?
              AND amount >= ?;
            """,
            (amount, asset, holder, amount),
        ).rowcount
        if updated == 0 and amount > 0:
            current = self.balance_of(asset, holder)
            raise TransferError(
                f"Transfer amount exceeds balance ({amount} > {current})",
                details={"asset": asset, "holder": holder, "balance": current, "amount": amount},
            )

    def _credit(self, asset: str, holder: str, amount: int) -> None:
        current = self.balance_of(asset, holder)
        if current + amount > MAX_AMOUNT:
            raise TransferError(
                "Balance would overflow",
                details={"asset": asset, "holder": holder, "balance": current, "amount": amount},
            )
        self.conn.execute(
            """
            INSERT INTO balances(asset, holder, amount)
            VALUES (?, ?, ?)
            ON CONFLICT(asset, holder) DO UPDATE SET amount = amount + excluded.amount;
            """,
            (asset, holder, amount),
        )

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if amount < 0:
            raise TransferError("Transfer amount must be >= 0", details={"amount": amount})
