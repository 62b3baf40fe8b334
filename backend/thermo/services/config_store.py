import logging
import math
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.config import DeviceConfig
from .control import MODES

logger = logging.getLogger(__name__)

SETPOINT_RANGE = (-1000.0, 2000.0)
HYSTERESIS_RANGE = (0.1, 500.0)


def clamp(n: float, lo: float, hi: float) -> float:
    return min(max(n, lo), hi)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(value) else None


def get(db: Session, device_id: str) -> Optional[DeviceConfig]:
    return db.query(DeviceConfig).filter(DeviceConfig.device_id == device_id).first()


def get_or_create(db: Session, device_id: str) -> DeviceConfig:
    """Return the device config, inserting the defaults on first reference.

    The unique key on device_id arbitrates concurrent creators: the loser's
    insert is rolled back to its savepoint and the winner's row is returned.
    Does not commit.
    """
    cfg = get(db, device_id)
    if cfg is not None:
        return cfg
    try:
        with db.begin_nested():
            cfg = DeviceConfig(device_id=device_id)
            db.add(cfg)
    except IntegrityError:
        logger.debug("Config for %s created concurrently, re-reading", device_id)
        cfg = db.query(DeviceConfig).filter(DeviceConfig.device_id == device_id).one()
    else:
        logger.info("Created default config for device %s", device_id)
    return cfg


def clean_patch(fields: dict) -> dict:
    """Keep the valid, clamped subset of a config patch; drop the rest."""
    patch = {}
    if "setpoint" in fields:
        sp = _number(fields["setpoint"])
        if sp is not None:
            patch["setpoint"] = clamp(sp, *SETPOINT_RANGE)
    if "hysteresis" in fields:
        h = _number(fields["hysteresis"])
        if h is not None and h > 0:
            patch["hysteresis"] = clamp(h, *HYSTERESIS_RANGE)
    if fields.get("mode") in MODES:
        patch["mode"] = fields["mode"]
    return patch


def patch(db: Session, device_id: str, fields: dict) -> DeviceConfig:
    """Partial update; invalid or unknown fields are ignored. Does not commit."""
    cleaned = clean_patch(fields or {})
    dropped = sorted(set(fields or {}) - set(cleaned))
    if dropped:
        logger.debug("Config patch for %s dropped fields %s", device_id, dropped)
    cfg = get_or_create(db, device_id)
    for key, value in cleaned.items():
        setattr(cfg, key, value)
    db.flush()
    return cfg
