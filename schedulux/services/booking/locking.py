# schedulux/services/booking/locking.py
"""
Advisory lock helpers for the booking critical section.

Booking attempts for the same storefront, service and 15-minute bucket are
serialized on one transaction-scoped PostgreSQL advisory lock. The lock is
released by the database when the transaction commits or rolls back, so a
crashed worker cannot leave it behind.
"""
import hashlib
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from schedulux.storage.base import SchedulingStore
from schedulux.utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_MINUTES = 15


def lock_bucket(start: datetime, bucket_minutes: int = DEFAULT_BUCKET_MINUTES) -> int:
    """Index of the bucket containing `start`, counted from the Unix epoch"""
    return int(ensure_utc(start).timestamp()) // (bucket_minutes * 60)


def generate_lock_key(
        storefront_id: int,
        service_id: int,
        start: datetime,
        bucket_minutes: int = DEFAULT_BUCKET_MINUTES
) -> int:
    """
    Stable signed 64-bit key for pg_advisory_xact_lock.

    Uses BLAKE2b rather than hash() so every process derives the same key.
    """
    material = f"{storefront_id}-{service_id}-{lock_bucket(start, bucket_minutes)}"
    digest = hashlib.blake2b(material.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, byteorder="big", signed=True)


@contextmanager
def booking_lock(
        store: SchedulingStore,
        key: int,
        timeout_ms: Optional[int] = None
) -> Iterator[SchedulingStore]:
    """
    Open a transaction and hold the advisory lock for `key` inside it.

    Everything in the with-block commits together on normal exit; any
    exception rolls the transaction back, which also releases the lock.

    Raises:
        LockTimeoutError: the lock was not granted within timeout_ms
    """
    with store.transaction():
        logger.debug(f"Waiting for booking lock {key}")
        store.acquire_xact_lock(key, timeout_ms=timeout_ms)
        logger.debug(f"Acquired booking lock {key}")
        yield store
