"""
==============================================================================
Submission Gateway Tests
==============================================================================

SqlSubmissionGateway against an in-memory SQLite record store.

==============================================================================
"""

import asyncio
import threading

import pytest
from pydantic import ValidationError

from app.db.database import DatabaseManager
from app.db.init_db import DatabaseInitializer
from app.services.submission_gateway import SqlSubmissionGateway

from tests.conftest import make_record


class TestWrite:
    """Tests for record persistence."""

    def test_write_returns_stored_record(self, sql_gateway: SqlSubmissionGateway):
        """Test write returns stored record."""
        saved = asyncio.run(sql_gateway.write(make_record("P1")))

        assert saved.id > 0
        assert saved.product_id == "P1"
        assert saved.member_id == "M-001"
        assert saved.timestamp > 0

    def test_timestamps_strictly_increase(self, db_manager: DatabaseManager):
        """Test timestamps strictly increase."""
        # Frozen clock: every write lands in the same millisecond
        gateway = SqlSubmissionGateway(db_manager, namespace="test", clock=lambda: 1000.0)

        async def write_all():
            return [await gateway.write(make_record(f"P{i}")) for i in range(5)]

        saved = asyncio.run(write_all())
        timestamps = [r.timestamp for r in saved]

        assert timestamps == sorted(timestamps)
        assert len(set(timestamps)) == 5
        assert timestamps[0] == 1_000_000

    def test_timestamps_continue_after_restart(self, db_manager: DatabaseManager):
        """Test timestamps continue after restart."""
        first = SqlSubmissionGateway(db_manager, namespace="test", clock=lambda: 5000.0)
        earlier = asyncio.run(first.write(make_record("P1")))

        # A new process whose clock is behind the stored data
        second = SqlSubmissionGateway(db_manager, namespace="test", clock=lambda: 10.0)
        later = asyncio.run(second.write(make_record("P2")))

        assert later.timestamp > earlier.timestamp

    def test_namespaces_are_isolated(self, db_manager: DatabaseManager):
        """Test namespaces are isolated."""
        plant_a = SqlSubmissionGateway(db_manager, namespace="plant-a")
        plant_b = SqlSubmissionGateway(db_manager, namespace="plant-b")

        asyncio.run(plant_a.write(make_record("A1")))

        assert [r.product_id for r in plant_a.snapshot()] == ["A1"]
        assert plant_b.snapshot() == []

    def test_blank_member_rejected_before_write(self):
        """Test blank member rejected before write."""
        with pytest.raises(ValidationError):
            make_record(member_name="")


class TestSubscribe:
    """Tests for the change feed."""

    def test_subscribe_delivers_current_records(self, sql_gateway: SqlSubmissionGateway):
        """Test subscribe delivers current records."""
        asyncio.run(sql_gateway.write(make_record("P1")))

        received = []
        sql_gateway.subscribe(received.append)

        assert len(received) == 1
        assert received[0][0].product_id == "P1"

    def test_write_notifies_newest_first(self, sql_gateway: SqlSubmissionGateway):
        """Test write notifies newest first."""
        received = []
        sql_gateway.subscribe(received.append)

        async def write_all():
            for product_id in ("P1", "P2", "P3"):
                await sql_gateway.write(make_record(product_id))

        asyncio.run(write_all())

        assert len(received) == 4
        assert [r.product_id for r in received[-1]] == ["P3", "P2", "P1"]

    def test_subscribe_in_loop_does_not_wait_for_writer(self, sql_gateway: SqlSubmissionGateway):
        """Test subscribing on the event loop returns while a write holds the store."""
        received = []
        held = threading.Event()
        release = threading.Event()

        def hold_store():
            with sql_gateway._lock:
                held.set()
                release.wait(timeout=5)

        holder = threading.Thread(target=hold_store)
        holder.start()
        held.wait(timeout=5)

        async def scenario():
            sql_gateway.subscribe(received.append)
            delivered_before_release = len(received)
            release.set()
            await sql_gateway.settle()
            return delivered_before_release

        try:
            delivered_before_release = asyncio.run(scenario())
        finally:
            release.set()
            holder.join()

        assert delivered_before_release == 0
        assert received == [[]]

    def test_initial_set_never_overwrites_newer_records(self, sql_gateway: SqlSubmissionGateway):
        """Test a slow initial record set cannot replace a later change."""
        received = []

        async def scenario():
            sql_gateway.subscribe(received.append)
            await sql_gateway.write(make_record("P1"))
            await sql_gateway.settle()

        asyncio.run(scenario())

        assert [r.product_id for r in received[-1]] == ["P1"]

    def test_unsubscribe_stops_delivery(self, sql_gateway: SqlSubmissionGateway):
        """Test unsubscribe stops delivery."""
        received = []
        unsubscribe = sql_gateway.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        asyncio.run(sql_gateway.write(make_record("P1")))

        assert len(received) == 1
        assert sql_gateway.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self, sql_gateway: SqlSubmissionGateway):
        """Test failing subscriber does not block others."""
        received = []

        def broken(records):
            if records:
                raise RuntimeError("listener crashed")

        sql_gateway.subscribe(broken)
        sql_gateway.subscribe(received.append)

        asyncio.run(sql_gateway.write(make_record("P1")))

        assert len(received) == 2


class TestDatabaseInitializer:
    """Tests for startup schema creation."""

    def test_initialize_creates_schema(self):
        """Test initialize creates schema."""
        manager = DatabaseManager("sqlite://")
        try:
            initializer = DatabaseInitializer(manager)
            assert initializer.initialize() is True
            assert initializer.count_records() == 0
        finally:
            manager.dispose()
