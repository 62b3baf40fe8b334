from sqlalchemy import Column, Integer, String, Boolean, DateTime
from ..db.session import Base
from datetime import datetime
class Device(Base):
    __tablename__ = "devices"
    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    # SHA-256 hex of the opaque bearer token; the raw token is never stored
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
