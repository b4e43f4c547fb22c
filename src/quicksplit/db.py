"""SQLite database operations for QuickSplit.

A saved bill is stored as four related tables: bills, people, bill_items and
item_assignments (the many-to-many join between items and people of one
bill). Every query is scoped to the owning user.
"""

import logging
import sqlite3
import uuid
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from .exceptions import PersistenceError
from .models import Bill, BillItem, Person, SavedBill

logger = logging.getLogger(__name__)


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open database {db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bills (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                name TEXT NOT NULL,
                date TIMESTAMP NOT NULL,
                bill_total REAL NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS people (
                id TEXT NOT NULL,
                bill_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                is_payer INTEGER NOT NULL DEFAULT 0,
                color TEXT,
                PRIMARY KEY (bill_id, id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bill_items (
                id TEXT NOT NULL,
                bill_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                price REAL NOT NULL,
                quantity REAL NOT NULL DEFAULT 1,
                total_price REAL NOT NULL,
                PRIMARY KEY (bill_id, id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS item_assignments (
                bill_id TEXT NOT NULL,
                bill_item_id TEXT NOT NULL,
                person_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                PRIMARY KEY (bill_id, bill_item_id, person_id)
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Write operations
    # ========================================================================

    def _insert_contents(
        self,
        cursor: sqlite3.Cursor,
        bill_id: str,
        people: Sequence[Person],
        items: Sequence[BillItem],
        person_ids: dict[str, str],
        item_ids: dict[str, str],
    ):
        """Insert people, items and assignments using the given id mappings."""
        cursor.executemany(
            """
            INSERT INTO people (id, bill_id, position, name, is_payer, color)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    person_ids[person.id],
                    bill_id,
                    position,
                    person.name,
                    int(person.is_payer),
                    person.color,
                )
                for position, person in enumerate(people)
            ],
        )

        cursor.executemany(
            """
            INSERT INTO bill_items (
                id, bill_id, position, name, price, quantity, total_price
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    item_ids[item.id],
                    bill_id,
                    position,
                    item.name,
                    item.price,
                    item.quantity,
                    item.total_price,
                )
                for position, item in enumerate(items)
            ],
        )

        assignments = []
        for item in items:
            seen: set[str] = set()
            for position, person_id in enumerate(item.assigned_to):
                # Assignments to people who are not on the bill are not persisted
                mapped = person_ids.get(person_id)
                if mapped is None or mapped in seen:
                    continue
                seen.add(mapped)
                assignments.append((bill_id, item_ids[item.id], mapped, position))

        if assignments:
            cursor.executemany(
                """
                INSERT INTO item_assignments (bill_id, bill_item_id, person_id, position)
                VALUES (?, ?, ?, ?)
                """,
                assignments,
            )

    def _delete_contents(self, cursor: sqlite3.Cursor, bill_id: str):
        cursor.execute("DELETE FROM item_assignments WHERE bill_id = ?", (bill_id,))
        cursor.execute("DELETE FROM bill_items WHERE bill_id = ?", (bill_id,))
        cursor.execute("DELETE FROM people WHERE bill_id = ?", (bill_id,))

    def save_bill(
        self,
        owner_id: str,
        name: str,
        bill_total: float,
        people: Sequence[Person],
        items: Sequence[BillItem],
        date: datetime | None = None,
    ) -> str:
        """
        Save a new bill with its people, items and assignments.

        People and items get fresh database ids; assignments are remapped to
        them.

        Returns:
            The new bill id
        """
        bill_id = uuid.uuid4().hex
        now = datetime.now()
        person_ids = {person.id: uuid.uuid4().hex for person in people}
        item_ids = {item.id: uuid.uuid4().hex for item in items}

        try:
            with self.conn:
                cursor = self.conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO bills (id, owner_id, name, date, bill_total, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        bill_id,
                        owner_id,
                        name,
                        (date or now).isoformat(),
                        bill_total,
                        now.isoformat(),
                    ),
                )
                self._insert_contents(
                    cursor, bill_id, people, items, person_ids, item_ids
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save bill: {e}") from e

        logger.info(
            f"Saved bill {bill_id} ({len(people)} people, {len(items)} items)"
        )
        return bill_id

    def update_bill(self, owner_id: str, bill_id: str, bill: Bill) -> bool:
        """
        Replace a saved bill's contents, keeping its ids.

        Returns:
            False if the bill does not exist for this owner
        """
        person_ids = {person.id: person.id for person in bill.people}
        item_ids = {item.id: item.id for item in bill.items}

        try:
            with self.conn:
                cursor = self.conn.cursor()
                cursor.execute(
                    "UPDATE bills SET bill_total = ? WHERE id = ? AND owner_id = ?",
                    (bill.bill_total, bill_id, owner_id),
                )
                if cursor.rowcount == 0:
                    return False
                self._delete_contents(cursor, bill_id)
                self._insert_contents(
                    cursor, bill_id, bill.people, bill.items, person_ids, item_ids
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to update bill {bill_id}: {e}") from e

        logger.info(f"Updated bill {bill_id}")
        return True

    def delete_bill(self, owner_id: str, bill_id: str) -> bool:
        """
        Delete a bill and everything that belongs to it.

        Returns:
            False if the bill does not exist for this owner
        """
        try:
            with self.conn:
                cursor = self.conn.cursor()
                cursor.execute(
                    "SELECT id FROM bills WHERE id = ? AND owner_id = ?",
                    (bill_id, owner_id),
                )
                if cursor.fetchone() is None:
                    return False
                self._delete_contents(cursor, bill_id)
                cursor.execute("DELETE FROM bills WHERE id = ?", (bill_id,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete bill {bill_id}: {e}") from e

        logger.info(f"Deleted bill {bill_id}")
        return True

    # ========================================================================
    # Read operations
    # ========================================================================

    def get_user_bills(self, owner_id: str) -> list[SavedBill]:
        """Get bill metadata for an owner, newest first. Items and people are empty."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT id, name, date, bill_total
                FROM bills
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (owner_id,),
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to fetch bills: {e}") from e

        return [
            SavedBill(
                id=row["id"],
                name=row["name"],
                date=datetime.fromisoformat(row["date"]),
                bill_total=row["bill_total"],
                people=[],
                items=[],
            )
            for row in rows
        ]

    def get_bill_details(self, owner_id: str, bill_id: str) -> SavedBill | None:
        """Get a single bill with its people, items and assignments."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT id, name, date, bill_total
                FROM bills
                WHERE id = ? AND owner_id = ?
                """,
                (bill_id, owner_id),
            )
            bill = cursor.fetchone()
            if not bill:
                return None

            cursor.execute(
                """
                SELECT id, name, is_payer, color
                FROM people
                WHERE bill_id = ?
                ORDER BY position
                """,
                (bill_id,),
            )
            people_rows = cursor.fetchall()

            cursor.execute(
                """
                SELECT id, name, price, quantity, total_price
                FROM bill_items
                WHERE bill_id = ?
                ORDER BY position
                """,
                (bill_id,),
            )
            item_rows = cursor.fetchall()

            cursor.execute(
                """
                SELECT bill_item_id, person_id
                FROM item_assignments
                WHERE bill_id = ?
                ORDER BY bill_item_id, position
                """,
                (bill_id,),
            )
            assignment_rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to fetch bill {bill_id}: {e}") from e

        assigned: dict[str, list[str]] = {}
        for row in assignment_rows:
            assigned.setdefault(row["bill_item_id"], []).append(row["person_id"])

        return SavedBill(
            id=bill["id"],
            name=bill["name"],
            date=datetime.fromisoformat(bill["date"]),
            bill_total=bill["bill_total"],
            people=[
                Person(
                    id=row["id"],
                    name=row["name"],
                    is_payer=bool(row["is_payer"]),
                    color=row["color"],
                )
                for row in people_rows
            ],
            items=[
                BillItem(
                    id=row["id"],
                    name=row["name"],
                    price=row["price"],
                    quantity=row["quantity"],
                    total_price=row["total_price"],
                    assigned_to=assigned.get(row["id"], []),
                )
                for row in item_rows
            ],
        )
