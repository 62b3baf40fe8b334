from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..db.session import get_db
from ..schemas.common import PushOut, ReadingPush, RelayFlags, StatusOut
from ..services import ingest
from ..services.gateway import DeviceIdentity
from .deps import require_device
from .devices import device_status

router = APIRouter(prefix="/api/thermo", tags=["thermo"])

@router.post("/push", response_model=PushOut)
def push(payload: ReadingPush, device: DeviceIdentity = Depends(require_device), db: Session = Depends(get_db)):
    pushed = ingest.push_reading(db, device, payload)
    relay1, relay2 = pushed.result.decision.flags
    cfg = pushed.config
    return PushOut(
        desired=RelayFlags(relay1=relay1, relay2=relay2),
        pv=pushed.result.pv if pushed.result.pv_defined else None,
        setpoint=cfg.setpoint, hysteresis=cfg.hysteresis, mode=cfg.mode,
        reading_id=pushed.reading.id,
    )

# Unauthenticated, reduced-fidelity status for displays and firmware
@router.get("/status", response_model=StatusOut)
def status(device_id: Optional[str] = None, db: Session = Depends(get_db)):
    if not device_id:
        raise ValidationError("device_id required")
    return device_status(db, device_id)
