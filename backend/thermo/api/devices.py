import logging
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.security import hash_device_token
from ..db.session import get_db
from ..models.device import Device
from ..schemas.common import ConfigOut, DeviceCreate, DeviceCreatedOut, DeviceOut, DeviceUpdate, RelayFlags, ReadingOut, StatusOut
from ..services import config_store, timeseries
from ..services.control import Decision
from ..services.gateway import OperatorIdentity
from .deps import require_admin, require_operator
from typing import List, Optional

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["devices"])


def device_status(db: Session, device_id: str) -> StatusOut:
    """Config plus the relay state implied by the most recent reading."""
    cfg = config_store.get(db, device_id)
    if cfg is None:
        raise NotFoundError("No config")
    last = timeseries.latest(db, device_id)
    decision = Decision.from_flags(last.relay1, last.relay2) if last else Decision.OFF
    relay1, relay2 = decision.flags
    return StatusOut(
        device_id=device_id, setpoint=cfg.setpoint, hysteresis=cfg.hysteresis, mode=cfg.mode,
        relays=RelayFlags(relay1=relay1, relay2=relay2),
        last=ReadingOut.model_validate(last) if last else None,
    )


@router.get("/devices", response_model=List[DeviceOut])
def list_devices(db: Session = Depends(get_db), _: OperatorIdentity = Depends(require_operator)):
    return db.query(Device).order_by(Device.id).all()


@router.post("/devices", response_model=DeviceCreatedOut, status_code=status.HTTP_201_CREATED)
def create_device(payload: DeviceCreate, db: Session = Depends(get_db), admin: OperatorIdentity = Depends(require_admin)):
    device_id = payload.device_id.strip()
    if not device_id:
        raise ValidationError("device_id & token required")
    d = Device(device_id=device_id, name=payload.name, token_hash=hash_device_token(payload.token))
    try:
        db.add(d)
        db.flush()
        config_store.get_or_create(db, device_id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Device id or token already registered") from exc
    db.refresh(d)
    logger.info("Device %s provisioned by %s", device_id, admin.email)
    out = DeviceOut.model_validate(d)
    return DeviceCreatedOut(**out.model_dump(), token=payload.token)


@router.patch("/devices/{device_id}", response_model=DeviceOut)
def update_device(device_id: str, payload: DeviceUpdate, db: Session = Depends(get_db), admin: OperatorIdentity = Depends(require_admin)):
    d = db.query(Device).filter(Device.device_id == device_id).first()
    if d is None:
        raise NotFoundError("Device not found")
    if payload.name is not None:
        d.name = payload.name
    if payload.enabled is not None and payload.enabled != d.enabled:
        d.enabled = payload.enabled
        logger.info("Device %s %s by %s", device_id, "enabled" if d.enabled else "disabled", admin.email)
    if payload.token is not None:
        d.token_hash = hash_device_token(payload.token)
        logger.info("Device %s token rotated by %s", device_id, admin.email)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Token already registered") from exc
    db.refresh(d)
    return d


@router.get("/status/{device_id}", response_model=StatusOut)
def get_status(device_id: str, db: Session = Depends(get_db), _: OperatorIdentity = Depends(require_operator)):
    return device_status(db, device_id)


@router.patch("/config/{device_id}", response_model=ConfigOut)
def patch_config(device_id: str, fields: Optional[dict] = Body(default=None), db: Session = Depends(get_db),
                 op: OperatorIdentity = Depends(require_operator)):
    try:
        cfg = config_store.patch(db, device_id, fields)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(cfg)
    logger.info("Config for %s set to sp=%s h=%s mode=%s by %s", device_id, cfg.setpoint, cfg.hysteresis, cfg.mode, op.email)
    return cfg
