# backend/catalog_manager/db/database.py

"""
Configuración principal de la base de datos para la aplicación.

Este módulo establece la conexión con la base de datos relacional usando SQLAlchemy
y define los componentes básicos que serán utilizados por toda la aplicación:
- Motor de base de datos (engine)
- Fábrica de sesiones (AsyncSessionLocal)
- Clase base para modelos (Base)

SQLite (aiosqlite) es el almacenamiento por defecto; PostgreSQL (asyncpg) se usa
cuando DATABASE_URL apunta a un servidor.
"""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from catalog_manager.core.config import settings

# Crear el motor de base de datos asíncrono
engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)

# expire_on_commit=False para que los objetos sigan siendo utilizables
# después de que la transacción se haya confirmado.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Clase base declarativa para todos los modelos ORM
Base = declarative_base()


async def init_models() -> None:
    """
    Crea las tablas que falten. Sustituye al ejecutor de migraciones,
    que queda fuera de esta aplicación.
    """
    # Importar los modelos registra sus tablas en Base.metadata
    from catalog_manager.db.models import category_model, product_model, machine_category_model, setting_model  # noqa: F401

    if settings.DATABASE_URL.startswith("sqlite"):
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
