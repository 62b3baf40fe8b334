"""Access control for operators and devices.

Two schemes that never fall back to each other:

* operators exchange email/password for a signed, time-limited bearer token
  and present it as ``Authorization: Bearer <token>``;
* devices present a static opaque token as ``X-Device-Token``; it is valid
  while a device with that exact token exists and is enabled.

Each scheme resolves to its own identity type so a route can only ever be
satisfied by the capability it asks for. Nothing here writes to the store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..core.errors import AuthenticationError, AuthorizationError
from ..core.security import create_access_token, decode_access_token, hash_device_token, verify_password
from ..models.device import Device
from ..models.operator import Operator

logger = logging.getLogger(__name__)

ADMIN = "admin"
VIEWER = "viewer"
ROLES = (ADMIN, VIEWER)


@dataclass(frozen=True)
class OperatorIdentity:
    uid: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


@dataclass(frozen=True)
class DeviceIdentity:
    device_id: str
    name: str


def login(db: Session, email: str, password: str) -> tuple[str, Operator]:
    op = db.query(Operator).filter(Operator.email == email).first()
    if not op or not verify_password(password, op.hashed_password):
        logger.warning("Failed login for %s", email)
        raise AuthenticationError("Bad credentials")
    logger.info("Operator %s logged in (role=%s)", op.email, op.role)
    return create_access_token(op.id, op.email, op.role), op


def operator_from_header(authorization: Optional[str]) -> OperatorIdentity:
    if not authorization:
        raise AuthenticationError("No token")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid token")
    claims = decode_access_token(token)
    if claims["role"] not in ROLES:
        raise AuthenticationError("Invalid token")
    try:
        uid = int(claims["uid"])
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid token") from exc
    return OperatorIdentity(uid=uid, email=str(claims["email"]), role=claims["role"])


def require_admin(identity: OperatorIdentity) -> OperatorIdentity:
    if not identity.is_admin:
        raise AuthorizationError("Admin role required")
    return identity


def device_from_token(db: Session, token: Optional[str]) -> DeviceIdentity:
    if not token:
        raise AuthenticationError("No device token")
    dev = db.query(Device).filter(Device.token_hash == hash_device_token(token)).first()
    if dev is None or not dev.enabled:
        logger.warning("Rejected device token (%s)", "disabled device " + dev.device_id if dev else "unknown")
        raise AuthorizationError("Forbidden")
    return DeviceIdentity(device_id=dev.device_id, name=dev.name)
