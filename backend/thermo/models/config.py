from sqlalchemy import Column, Integer, String, Float, DateTime
from ..db.session import Base
from datetime import datetime

DEFAULT_SETPOINT = 60.0
DEFAULT_HYSTERESIS = 2.0
DEFAULT_MODE = "auto"

class DeviceConfig(Base):
    __tablename__ = "device_configs"
    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String, unique=True, nullable=False, index=True)
    setpoint = Column(Float, nullable=False, default=DEFAULT_SETPOINT)
    hysteresis = Column(Float, nullable=False, default=DEFAULT_HYSTERESIS)
    mode = Column(String, nullable=False, default=DEFAULT_MODE)  # auto | manual
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
