"""Append-only per-device time series of readings.

Ordering within a device is (ts, id): readings sharing a timestamp are
ordered by arrival. Rows are never updated or deleted here.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError
from ..models.reading import Reading
from ..schemas.common import iso_utc
from .control import Decision

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["ts", "s1", "s2", "s3", "s4", "pv", "relay1", "relay2"]


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _stored(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def version(db: Session, device_id: str) -> int:
    """Highest seq appended for the device, 0 before the first reading."""
    return db.query(func.max(Reading.seq)).filter(Reading.device_id == device_id).scalar() or 0


def latest(db: Session, device_id: str) -> Optional[Reading]:
    return (
        db.query(Reading)
        .filter(Reading.device_id == device_id)
        .order_by(Reading.ts.desc(), Reading.id.desc())
        .first()
    )


def append(db: Session, device_id: str, channels: Sequence, pv: float, decision: Decision,
           ts: Optional[datetime] = None, expected_version: Optional[int] = None) -> Reading:
    """Insert one reading as version ``expected_version + 1``.

    If another append for the same device landed since ``expected_version``
    was read, the unique (device_id, seq) key rejects this one with
    ConflictError. Does not commit.
    """
    if expected_version is None:
        expected_version = version(db, device_id)
    s1, s2, s3, s4 = (_stored(v) for v in channels)
    relay1, relay2 = decision.flags
    reading = Reading(
        device_id=device_id,
        seq=expected_version + 1,
        s1=s1, s2=s2, s3=s3, s4=s4,
        pv=_stored(pv),
        relay1=relay1, relay2=relay2,
        ts=to_naive_utc(ts) or datetime.utcnow(),
    )
    try:
        with db.begin_nested():
            db.add(reading)
    except IntegrityError as exc:
        logger.warning("Concurrent append for device %s at version %s", device_id, expected_version)
        raise ConflictError("Concurrent reading for this device, retry") from exc
    return reading


def range_query(db: Session, device_id: str, start: Optional[datetime] = None,
                end: Optional[datetime] = None, limit: int = 1000) -> list[Reading]:
    """Readings within the inclusive [start, end] window, oldest first, at most ``limit``."""
    q = db.query(Reading).filter(Reading.device_id == device_id)
    if start is not None:
        q = q.filter(Reading.ts >= to_naive_utc(start))
    if end is not None:
        q = q.filter(Reading.ts <= to_naive_utc(end))
    return q.order_by(Reading.ts.asc(), Reading.id.asc()).limit(max(1, int(limit))).all()


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return repr(value) if isinstance(value, float) else str(value)


def export_rows(readings: Iterable[Reading]) -> Iterable[list[str]]:
    """Header plus one row per reading, ready for ``csv.writer``."""
    yield list(CSV_COLUMNS)
    for r in readings:
        yield [iso_utc(r.ts)] + [_cell(v) for v in (r.s1, r.s2, r.s3, r.s4, r.pv, r.relay1, r.relay2)]
