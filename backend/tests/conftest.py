"""Shared test fixtures: in-memory database, image stores and the API client."""

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_manager.api import deps
from catalog_manager.crud import category_crud, product_crud
from catalog_manager.db.database import Base
from catalog_manager.db.models import category_model, machine_category_model, product_model, setting_model  # noqa: F401
from catalog_manager.main import app
from catalog_manager.services.export_service import ExportService
from catalog_manager.services.image_store import LocalImageStore
from catalog_manager.services.import_service import ImportService
from catalog_manager.services.legacy import LegacySnapshotSource

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def products_csv() -> bytes:
    return (FIXTURES_DIR / "products.csv").read_bytes()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def image_store(tmp_path):
    return LocalImageStore(tmp_path / "spare-part-images")


@pytest.fixture
def catalog_store(tmp_path):
    return LocalImageStore(tmp_path / "product-catalog-images")


@pytest.fixture
def json_dir(tmp_path):
    return tmp_path / "json"


@pytest.fixture
def import_service(image_store, catalog_store):
    return ImportService(image_store=image_store, catalog_store=catalog_store)


@pytest.fixture
def export_service(json_dir, image_store):
    # Sin caché ni URL: el snapshot heredado nunca existe
    return ExportService(json_dir=json_dir, image_store=image_store, legacy_source=LegacySnapshotSource())


@pytest_asyncio.fixture
async def client(session_factory, import_service, export_service, catalog_store):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_import_service] = lambda: import_service
    app.dependency_overrides[deps.get_export_service] = lambda: export_service
    app.dependency_overrides[deps.get_catalog_store] = lambda: catalog_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ========================================
# DATOS DE PRUEBA
# ========================================

async def _add_category(db, key, parent_key="", position=0, is_main=False, **fields):
    fields.setdefault("path", key)
    return await category_crud.create_category(
        db, key=key, parent_key=parent_key, position=position, is_main=is_main, **fields
    )


async def _add_product(db, sku, **fields):
    return await product_crud.create_product(db, sku=sku, **fields)


@pytest_asyncio.fixture
async def seeded_catalog(db):
    """
    f50 (principal)
    ├── f50-engine        A(5), >(0), B(0), <(0), S en las posiciones 2 y 7
    └── f50-frame
    """
    await _add_category(db, "f50", position=1, is_main=True, path="F50", name_sv="F50 Gräsklippare")
    await _add_category(db, "f50-engine", parent_key="f50", position=2, path="F50\\Engine", name_sv="A Motor")
    await _add_category(db, "f50-frame", parent_key="f50", position=3, path="F50\\Frame", name_sv="Ram")
    for sku, name in (("A", "Skruv"), (">", "Ingår"), ("B", "Bricka"), ("<", "Slut"), ("S", "Fjäder")):
        await _add_product(db, sku, name_sv=name, price="10.00")
    for sku, pos_num in (("A", 5), (">", 0), ("B", 0), ("<", 0), ("S", 2), ("S", 7)):
        await product_crud.add_link(db, sku, "f50-engine", pos_num, "1")
    await db.commit()
    return db


@pytest.fixture
def make_category(db):
    async def make(key, **fields):
        return await _add_category(db, key, **fields)
    return make


@pytest.fixture
def make_product(db):
    async def make(sku, **fields):
        return await _add_product(db, sku, **fields)
    return make
