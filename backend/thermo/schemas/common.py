from pydantic import BaseModel, EmailStr, Field, StrictFloat, field_serializer
from typing import Optional
from datetime import datetime

def iso_utc(dt: Optional[datetime]) -> Optional[str]:
    """Naive-UTC datetime -> ISO-8601 with millisecond precision and a Z suffix."""
    if dt is None:
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"

class LoginIn(BaseModel):
    email: str
    password: str

class SeedAdminIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str

class DeviceCreate(BaseModel):
    device_id: str = Field(min_length=1, max_length=64)
    name: str = ""
    token: str = Field(min_length=1)

class DeviceUpdate(BaseModel):
    name: Optional[str] = None
    enabled: Optional[bool] = None
    token: Optional[str] = Field(default=None, min_length=1)

class DeviceOut(BaseModel):
    id: int; device_id: str; name: str; enabled: bool; created_at: datetime
    class Config: from_attributes = True

class DeviceCreatedOut(DeviceOut):
    token: str

class ConfigOut(BaseModel):
    device_id: str; setpoint: float; hysteresis: float; mode: str
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

class RelayFlags(BaseModel):
    relay1: bool = False
    relay2: bool = False

class ReadingPush(BaseModel):
    s1: StrictFloat; s2: StrictFloat; s3: StrictFloat; s4: StrictFloat
    ts: Optional[datetime] = None

class ReadingOut(BaseModel):
    id: int
    device_id: str
    seq: int
    s1: Optional[float]; s2: Optional[float]; s3: Optional[float]; s4: Optional[float]
    pv: Optional[float]
    relay1: bool; relay2: bool
    ts: datetime
    class Config: from_attributes = True

    @field_serializer("ts")
    def _ts(self, ts: datetime) -> str:
        return iso_utc(ts)

class PushOut(BaseModel):
    ok: bool = True
    desired: RelayFlags
    pv: Optional[float]
    setpoint: float; hysteresis: float; mode: str
    reading_id: int

class StatusOut(BaseModel):
    device_id: str
    setpoint: float; hysteresis: float; mode: str
    relays: RelayFlags
    last: Optional[ReadingOut] = None
