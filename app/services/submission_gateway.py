"""
==============================================================================
Submission Gateway Module
==============================================================================

Persistence of submitted records and the live feed of all records.

The workflow consumes these capabilities:

    await write(record)              persist one record
    unsubscribe = subscribe(cb)      cb(records) once, then after every change
    await settle()                   wait for pending initial deliveries

SqlSubmissionGateway implements them over SQLAlchemy:
- writes run in a worker thread so the event loop keeps serving sockets
- every record gets a strictly increasing millisecond timestamp
- records live under the configured namespace so deployments sharing a
  database do not see each other's data

==============================================================================
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple

from sqlalchemy import func

from app.config import get_settings
from app.db.database import DatabaseManager, get_database_manager
from app.db.models import SubmittedRecord
from app.schemas.record import RecordCreate, RecordOut


# Module logger
logger = logging.getLogger(__name__)


ChangeCallback = Callable[[List[RecordOut]], None]
Unsubscribe = Callable[[], None]


class SubmissionGateway(Protocol):
    """Capability interface for the shared record store."""

    async def write(self, record: RecordCreate) -> RecordOut:
        ...

    def subscribe(self, on_change: ChangeCallback) -> Unsubscribe:
        ...

    async def settle(self) -> None:
        ...


class SqlSubmissionGateway:
    """
    Record store backed by a SQL database.

    Example:
        >>> gateway = SqlSubmissionGateway()
        >>> unsubscribe = gateway.subscribe(lambda records: print(len(records)))
        0
        >>> await gateway.write(record)
        1
        >>> unsubscribe()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        namespace: Optional[str] = None,
        clock: Callable[[], float] = time.time
    ) -> None:
        self._db_manager = db_manager or get_database_manager()
        self._namespace = namespace or get_settings().app_namespace
        self._clock = clock
        self._lock = threading.RLock()
        self._last_timestamp: Optional[int] = None
        self._version = 0
        self._subscribers: Dict[int, ChangeCallback] = {}
        self._delivered: Dict[int, int] = {}
        self._subscriber_ids = itertools.count(1)
        self._pending: Set[asyncio.Task] = set()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # =========================================================================
    # WRITE
    # =========================================================================

    async def write(self, record: RecordCreate) -> RecordOut:
        """
        Persist one record and notify subscribers.

        Raises:
            SQLAlchemyError: if the insert fails; nothing is retried
        """
        saved = await asyncio.to_thread(self._insert, record)
        logger.info(
            f"✅ Record stored: {saved.product_id} for {saved.member_id} "
            f"(ts={saved.timestamp})"
        )
        await self._publish()
        return saved

    def _insert(self, record: RecordCreate) -> RecordOut:
        # Writes are serialized so timestamps follow commit order
        with self._lock, self._db_manager.session_scope() as session:
            row = SubmittedRecord(
                namespace=self._namespace,
                timestamp=self._next_timestamp(session),
                **record.model_dump()
            )
            session.add(row)
            session.flush()
            self._version += 1
            return RecordOut.from_model(row)

    def _next_timestamp(self, session) -> int:
        if self._last_timestamp is None:
            # Continue after whatever an earlier process stored
            self._last_timestamp = session.query(
                func.max(SubmittedRecord.timestamp)
            ).filter(
                SubmittedRecord.namespace == self._namespace
            ).scalar() or 0

        now = int(self._clock() * 1000)
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    # =========================================================================
    # LIVE FEED
    # =========================================================================

    def snapshot(self) -> List[RecordOut]:
        """All records in this namespace, newest first."""
        return self._read()[1]

    def _read(self) -> Tuple[int, List[RecordOut]]:
        # The version is read under the same lock as the rows it describes
        with self._lock, self._db_manager.session_scope() as session:
            rows = session.query(SubmittedRecord).filter(
                SubmittedRecord.namespace == self._namespace
            ).order_by(
                SubmittedRecord.timestamp.desc()
            ).all()
            return self._version, [RecordOut.from_model(row) for row in rows]

    def subscribe(self, on_change: ChangeCallback) -> Unsubscribe:
        """
        Register a feed listener and deliver the current record set.

        Inside a running event loop the initial set is read in a worker
        thread and delivered from a task; see settle(). Without a loop it
        is delivered before subscribe() returns.

        Returns:
            Callable that removes the listener; safe to call twice
        """
        subscriber_id = next(self._subscriber_ids)
        self._subscribers[subscriber_id] = on_change
        logger.debug(f"Feed subscriber {subscriber_id} added")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            version, records = self._read()
            self._deliver(subscriber_id, version, records)
        else:
            task = loop.create_task(self._deliver_initial(subscriber_id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        def unsubscribe() -> None:
            self._delivered.pop(subscriber_id, None)
            if self._subscribers.pop(subscriber_id, None) is not None:
                logger.debug(f"Feed subscriber {subscriber_id} removed")

        return unsubscribe

    async def settle(self) -> None:
        """Wait for every initial record set still being read."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _deliver_initial(self, subscriber_id: int) -> None:
        try:
            version, records = await asyncio.to_thread(self._read)
        except Exception as e:
            logger.error(f"❌ Feed snapshot for subscriber {subscriber_id} failed: {e}")
            return
        self._deliver(subscriber_id, version, records)

    async def _publish(self) -> None:
        if not self._subscribers:
            return

        version, records = await asyncio.to_thread(self._read)
        for subscriber_id in list(self._subscribers):
            self._deliver(subscriber_id, version, records)

    def _deliver(self, subscriber_id: int, version: int, records: List[RecordOut]) -> None:
        callback = self._subscribers.get(subscriber_id)
        if callback is None:
            return
        # Never replace a newer record set with an older one
        if version < self._delivered.get(subscriber_id, -1):
            return
        self._delivered[subscriber_id] = version

        try:
            callback(records)
        except Exception as e:
            logger.error(f"Feed subscriber {subscriber_id} failed: {e}")
