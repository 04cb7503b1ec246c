# backend/catalog_manager/db/models/setting_model.py
"""
Tabla clave-valor para la configuración editable desde la administración
(p. ej. monedas de precio). Los valores se guardan como texto JSON.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from catalog_manager.db.database import Base

class Setting(Base):
    __tablename__ = "settings"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())
