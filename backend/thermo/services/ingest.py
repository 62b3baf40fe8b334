import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..models.config import DeviceConfig
from ..models.reading import Reading
from ..schemas.common import ReadingPush
from . import config_store, timeseries
from .control import ControlResult, Decision, decide
from .gateway import DeviceIdentity

logger = logging.getLogger(__name__)


@dataclass
class PushResult:
    reading: Reading
    config: DeviceConfig
    result: ControlResult


def push_reading(db: Session, device: DeviceIdentity, payload: ReadingPush) -> PushResult:
    """Read config and last decision, decide, append; one commit at the end.

    Any failure before the commit rolls the whole sequence back so no partial
    reading is left behind. The caller surfaces the error; nothing is retried.
    """
    channels = (payload.s1, payload.s2, payload.s3, payload.s4)
    try:
        cfg = config_store.get_or_create(db, device.device_id)
        base_version = timeseries.version(db, device.device_id)
        last = timeseries.latest(db, device.device_id)
        previous = Decision.from_flags(last.relay1, last.relay2) if last else None

        result = decide(channels, cfg.setpoint, cfg.hysteresis, cfg.mode, previous)
        reading = timeseries.append(
            db, device.device_id, channels, result.pv, result.decision,
            ts=payload.ts, expected_version=base_version,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(reading)
    db.refresh(cfg)
    if previous is not None and previous is not result.decision:
        logger.info(
            "Device %s relays %s -> %s (pv=%.2f sp=%s h=%s)",
            device.device_id, previous.name, result.decision.name, result.pv, cfg.setpoint, cfg.hysteresis,
        )
    elif not result.pv_defined:
        logger.warning("Device %s pushed no finite channel; decision held at %s", device.device_id, result.decision.name)
    logger.debug("Device %s reading #%s pv=%s decision=%s", device.device_id, reading.seq, result.pv, result.decision.name)
    return PushResult(reading=reading, config=cfg, result=result)
