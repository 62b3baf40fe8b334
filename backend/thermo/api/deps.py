from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..services import gateway
from ..services.gateway import DeviceIdentity, OperatorIdentity


def require_operator(authorization: Optional[str] = Header(default=None)) -> OperatorIdentity:
    return gateway.operator_from_header(authorization)


def require_admin(identity: OperatorIdentity = Depends(require_operator)) -> OperatorIdentity:
    return gateway.require_admin(identity)


def require_device(
    x_device_token: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> DeviceIdentity:
    return gateway.device_from_token(db, x_device_token)
