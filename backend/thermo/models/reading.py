from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Index, UniqueConstraint
from ..db.session import Base
from datetime import datetime
class Reading(Base):
    __tablename__ = "readings"
    __table_args__ = (
        # seq is the per-device version; a second append built on the same previous state collides here
        UniqueConstraint("device_id", "seq", name="uq_readings_device_seq"),
        Index("ix_readings_device_ts", "device_id", "ts", "id"),
    )
    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String, nullable=False, index=True)
    seq = Column(Integer, nullable=False)
    s1 = Column(Float, nullable=True)
    s2 = Column(Float, nullable=True)
    s3 = Column(Float, nullable=True)
    s4 = Column(Float, nullable=True)
    pv = Column(Float, nullable=True)
    relay1 = Column(Boolean, nullable=False, default=False)
    relay2 = Column(Boolean, nullable=False, default=False)
    ts = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
