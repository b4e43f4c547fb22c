"""Tests for bill persistence."""

from datetime import datetime

import pytest

from quicksplit.db import Database
from quicksplit.models import Bill, BillItem, Person


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def bill():
    return Bill(
        people=[
            Person(id="p-alice", name="Alice", is_payer=True, color="purple"),
            Person(id="p-bob", name="Bob", color="magenta"),
            Person(id="p-carol", name="Carol", color="pink"),
        ],
        items=[
            BillItem(id="i-1", name="Pizza", price=12.5, quantity=2, total_price=25, assigned_to=["p-bob", "p-alice"]),
            BillItem(id="i-2", name="Water", price=3, total_price=3),
            BillItem(id="i-3", name="Wine", price=18, total_price=18, assigned_to=["p-carol", "ghost", "p-carol"]),
        ],
        bill_total=46,
    )


def save(db, bill, owner="owner-1", name="Dinner"):
    return db.save_bill(owner, name, bill.bill_total, bill.people, bill.items)


class TestSaveAndLoad:
    def test_round_trip_preserves_order_and_values(self, db, bill):
        bill_id = save(db, bill)

        loaded = db.get_bill_details("owner-1", bill_id)

        assert loaded.id == bill_id
        assert loaded.name == "Dinner"
        assert loaded.bill_total == 46
        assert [p.name for p in loaded.people] == ["Alice", "Bob", "Carol"]
        assert [p.is_payer for p in loaded.people] == [True, False, False]
        assert [p.color for p in loaded.people] == ["purple", "magenta", "pink"]
        assert [item.name for item in loaded.items] == ["Pizza", "Water", "Wine"]
        assert loaded.items[0].quantity == 2
        assert loaded.items[0].total_price == 25

    def test_ids_are_regenerated_and_assignments_remapped(self, db, bill):
        bill_id = save(db, bill)

        loaded = db.get_bill_details("owner-1", bill_id)
        ids = {p.name: p.id for p in loaded.people}

        assert "p-alice" not in ids.values()
        assert loaded.items[0].id != "i-1"
        assert loaded.items[0].assigned_to == [ids["Bob"], ids["Alice"]]
        assert loaded.items[1].assigned_to == []

    def test_unknown_and_duplicate_assignees_are_skipped(self, db, bill):
        loaded = db.get_bill_details("owner-1", save(db, bill))
        carol = loaded.people[2].id

        assert loaded.items[2].assigned_to == [carol]

    def test_explicit_date(self, db, bill):
        when = datetime(2024, 5, 17, 20, 30)
        bill_id = db.save_bill("owner-1", "Lunch", 46, bill.people, bill.items, date=when)

        assert db.get_bill_details("owner-1", bill_id).date == when

    def test_missing_bill(self, db):
        assert db.get_bill_details("owner-1", "nope") is None


class TestOwnership:
    def test_other_owner_cannot_see_bill(self, db, bill):
        bill_id = save(db, bill)

        assert db.get_bill_details("owner-2", bill_id) is None
        assert db.get_user_bills("owner-2") == []

    def test_other_owner_cannot_delete_or_update(self, db, bill):
        bill_id = save(db, bill)

        assert db.delete_bill("owner-2", bill_id) is False
        assert db.update_bill("owner-2", bill_id, bill) is False
        assert db.get_bill_details("owner-1", bill_id) is not None


class TestListing:
    def test_newest_first_without_contents(self, db, bill):
        first = save(db, bill, name="First")
        second = save(db, bill, name="Second")

        bills = db.get_user_bills("owner-1")

        assert [b.id for b in bills] == [second, first]
        assert all(b.items == [] and b.people == [] for b in bills)
        assert bills[0].bill_total == 46


class TestUpdateAndDelete:
    def test_update_keeps_ids(self, db, bill):
        bill_id = save(db, bill)
        loaded = db.get_bill_details("owner-1", bill_id)
        edited = Bill(
            people=loaded.people[:2],
            items=loaded.items[:1],
            bill_total=25,
        )

        assert db.update_bill("owner-1", bill_id, edited) is True

        reloaded = db.get_bill_details("owner-1", bill_id)
        assert [p.id for p in reloaded.people] == [p.id for p in loaded.people[:2]]
        assert reloaded.items[0].id == loaded.items[0].id
        assert reloaded.items[0].assigned_to == loaded.items[0].assigned_to
        assert reloaded.bill_total == 25
        assert reloaded.name == "Dinner"

    def test_update_drops_assignments_to_removed_people(self, db, bill):
        bill_id = save(db, bill)
        loaded = db.get_bill_details("owner-1", bill_id)
        edited = Bill(people=loaded.people[:2], items=loaded.items, bill_total=46)

        db.update_bill("owner-1", bill_id, edited)

        assert db.get_bill_details("owner-1", bill_id).items[2].assigned_to == []

    def test_delete(self, db, bill):
        bill_id = save(db, bill)

        assert db.delete_bill("owner-1", bill_id) is True
        assert db.get_bill_details("owner-1", bill_id) is None
        assert db.delete_bill("owner-1", bill_id) is False

    def test_delete_leaves_other_bills(self, db, bill):
        keep = save(db, bill, name="Keep")
        drop = save(db, bill, name="Drop")

        db.delete_bill("owner-1", drop)

        kept = db.get_bill_details("owner-1", keep)
        assert len(kept.items) == 3
        assert len(kept.people) == 3
