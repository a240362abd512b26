# src/vsched/storage/repo.py
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional, Sequence

from vsched.domain.errors import NotFoundError
from vsched.domain.models import ReleaseView, ScheduleView


_SCHEDULE_COLUMNS = """
    asset, creator, start, number_of_rounds, duration, initialized_amount,
    token_receive_per_round, released, total, created_at, updated_at
"""


@dataclass
class ScheduleRepo:
    """
    Repository encapsulating all SQL access for schedules, cursors and the release log.

    It never opens or commits transactions itself. The vesting service wraps
    each operation in one transaction so ledger moves and cursor updates land
    together.

    Important invariants:
    - A schedule row is written once; afterwards only `released` and `updated_at` change.
    - Cursor updates are guarded by the expected previous value.
    """
    conn: sqlite3.Connection

    # -------------------------
    # Read operations
    # -------------------------

    def schedule_exists(self, asset: str) -> bool:
        row = self.conn.execute("SELECT 1 FROM schedules WHERE asset = ?;", (asset,)).fetchone()
        return row is not None

    def get_schedule(self, asset: str) -> ScheduleView:
        row = self.conn.execute(
            f"SELECT {_SCHEDULE_COLUMNS} FROM schedules WHERE asset = ?;",
            (asset,),
        ).fetchone()
        if not row:
            raise NotFoundError(f"Vesting schedule not found: {asset}", details={"asset": asset})

        return ScheduleView(
            asset=row["asset"],
            creator=row["creator"],
            start=row["start"],
            number_of_rounds=row["number_of_rounds"],
            duration=row["duration"],
            initialized_amount=row["initialized_amount"],
            token_receive_per_round=row["token_receive_per_round"],
            released=row["released"],
            total=row["total"],
            recipients=self.list_recipients(asset),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def list_recipients(self, asset: str) -> list[str]:
        rows = self.conn.execute(
            "SELECT address FROM recipients WHERE asset = ? ORDER BY position ASC;",
            (asset,),
        ).fetchall()
        return [r["address"] for r in rows]

    def get_cursor(self, asset: str, address: str) -> Optional[sqlite3.Row]:
        """
        Returns (rounds_claimed, last_claimed_at) for a recipient, or None if
        the address is not part of the schedule.
        """
        return self.conn.execute(
            """
            SELECT rounds_claimed, last_claimed_at
            FROM recipients
            WHERE asset = ? AND address = ?;
            """,
            (asset, address),
        ).fetchone()

    def list_releases(self, asset: str, limit: int = 200, offset: int = 0) -> tuple[list[ReleaseView], int]:
        total = self.conn.execute(
            "SELECT COUNT(*) AS c FROM releases WHERE asset = ?;",
            (asset,),
        ).fetchone()["c"]

        rows = self.conn.execute(
            """
            SELECT id, asset, recipient, from_round, to_round, amount, released_at
            FROM releases
            WHERE asset = ?
            ORDER BY id ASC
            LIMIT ? OFFSET ?;
            """,
            (asset, limit, offset),
        ).fetchall()

        releases = [
            ReleaseView(
                id=row["id"],
                asset=row["asset"],
                recipient=row["recipient"],
                from_round=row["from_round"],
                to_round=row["to_round"],
                amount=row["amount"],
                released_at=row["released_at"],
            )
            for row in rows
        ]
        return releases, int(total)

    # -------------------------
    # Write operations
    # -------------------------

    def insert_schedule(
        self,
        *,
        asset: str,
        creator: str,
        start: int,
        number_of_rounds: int,
        duration: int,
        initialized_amount: int,
        token_receive_per_round: int,
        released: int,
        total: int,
        recipients: Sequence[str],
        now_ms: int,
    ) -> None:
        self.conn.execute(
            f"""
            INSERT INTO schedules({_SCHEDULE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                asset,
                creator,
                start,
                number_of_rounds,
                duration,
                initialized_amount,
                token_receive_per_round,
                released,
                total,
                now_ms,
                now_ms,
            ),
        )

        self.conn.executemany(
            "INSERT INTO recipients(asset, address, position, rounds_claimed) VALUES (?, ?, ?, 0);",
            [(asset, address, i) for i, address in enumerate(recipients)],
        )

    def advance_cursor(self, asset: str, address: str, *, expected: int, to: int, now_ms: int) -> bool:
        """
        Moves a recipient's cursor from `expected` to `to`.

        Returns False if the cursor no longer holds `expected`, i.e. another
        release for the same recipient got there first.
        """
        updated = self.conn.execute(
            """
            UPDATE recipients
            SET rounds_claimed = ?,
                last_claimed_at = ?
            WHERE asset = ? AND address = ?
              AND rounds_claimed = ?;
            """,
            (to, now_ms, asset, address, expected),
        ).rowcount
        return updated == 1

    def add_released(self, asset: str, amount: int, now_ms: int) -> None:
        self.conn.execute(
            """
            UPDATE schedules
            SET released = released + ?,
                updated_at = ?
            WHERE asset = ?;
            """,
            (amount, now_ms, asset),
        )

    def record_release(
        self,
        *,
        asset: str,
        recipient: str,
        from_round: int,
        to_round: int,
        amount: int,
        now_ms: int,
    ) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO releases(asset, recipient, from_round, to_round, amount, released_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (asset, recipient, from_round, to_round, amount, now_ms),
        )
        return int(cur.lastrowid)
