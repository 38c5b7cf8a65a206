"""Key/value storage model, one row per (client namespace, key)"""

from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from app.core.database import Base


class StorageItem(Base):
    __tablename__ = "storage_items"

    namespace = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
