"""Shared test fixtures and configuration."""
import pytest
import os
from types import SimpleNamespace
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BUSINESS_NAME", "Test Acarajé")
os.environ.setdefault("BUSINESS_TIMEZONE", "America/Bahia")
os.environ.setdefault("WEBSITE_URL", "https://acaraje.test/")

from app.main import app
from app.db.database import Base, get_db
from app.core.dependencies import get_stats_cache
from app.core.config import Settings
from app.services.catalog.delivery_areas import DeliveryAreaRepository
from app.services.catalog.ingredients import IngredientRepository
from app.services.catalog.menu import MenuRepository
from app.services.dashboard.cache import StatsCache


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_TIMEZONE = "America/Bahia"


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        business_name="Test Acarajé",
        business_timezone=TEST_TIMEZONE,
        website_url="https://acaraje.test/",
        dashboard_cache_ttl_seconds=60,
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
async def catalog(test_db):
    """IDs of the ingredients, delivery areas and menu items that order tests build on.

    Plain IDs stay readable after a failed call rolls the session back.
    """
    ingredients = IngredientRepository(test_db)
    vatapa = await ingredients.create({"name": "Vatapá", "category": "molho"})
    camarao = await ingredients.create({"name": "Camarão", "category": "proteina"})
    pimenta = await ingredients.create({"name": "Pimenta", "category": "tempero"})

    areas = DeliveryAreaRepository(test_db)
    barra = await areas.create({"name": "Barra", "fee": 8.0, "estimated_time": 30})
    liberdade = await areas.create({"name": "Liberdade", "fee": 6.0, "active": False})

    menu = MenuRepository(test_db)
    tradicional = await menu.create(
        {
            "name": "Acarajé Tradicional",
            "category": "acarajes",
            "price": 8.0,
            "ingredient_ids": [vatapa.id],
            "customizable_ingredients": [{"ingredient": vatapa.id, "required": False, "default_selected": True}],
        }
    )
    completo = await menu.create(
        {
            "name": "Acarajé Completo",
            "category": "acarajes",
            "price": 12.0,
            "ingredient_ids": [vatapa.id, camarao.id],
            "customizable_ingredients": [
                {"ingredient": vatapa.id, "required": True, "default_selected": True},
                {"ingredient": camarao.id, "required": False, "default_selected": True},
            ],
        }
    )
    abara = await menu.create(
        {"name": "Abará Tradicional", "category": "abaras", "price": 10.0, "available": False}
    )

    return SimpleNamespace(
        vatapa=vatapa.id,
        camarao=camarao.id,
        pimenta=pimenta.id,
        barra=barra.id,
        liberdade=liberdade.id,
        tradicional=tradicional.id,
        completo=completo.id,
        abara=abara.id,
    )


@pytest.fixture
def stats_cache():
    """Dashboard cache with a TTL long enough to outlive a test."""
    return StatsCache(ttl_seconds=60)


@pytest.fixture
def api_session_factory(tmp_path):
    """Session factory over a temporary SQLite file.

    The TestClient runs the app on its own event loop, so connections are
    opened per session (NullPool) instead of sharing the in-memory engine.
    """
    db_file = tmp_path / "api.db"
    sync_engine = create_engine(f"sqlite:///{db_file}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def override_get_db(api_session_factory):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        async with api_session_factory() as session:
            yield session
    return _override_get_db


@pytest.fixture
def test_client(override_get_db, stats_cache):
    """Create FastAPI test client with overrides."""
    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stats_cache] = lambda: stats_cache

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def api_catalog(test_client):
    """Create a small catalog through the API and return the created records."""
    def post(path, body):
        response = test_client.post(path, json=body)
        assert response.status_code == 201, response.text
        return response.json()

    vatapa = post("/api/ingredients", {"name": "Vatapá", "category": "molho"})
    barra = post("/api/delivery-areas", {"name": "Barra", "fee": 8.0, "estimatedTime": 30})
    liberdade = post("/api/delivery-areas", {"name": "Liberdade", "fee": 6.0, "active": False})
    tradicional = post(
        "/api/menu",
        {
            "name": "Acarajé Tradicional",
            "description": "Acarajé com vatapá",
            "category": "acarajes",
            "price": 8.0,
            "ingredientIds": [vatapa["id"]],
            "customizableIngredients": [{"ingredient": vatapa["id"], "required": True}],
        },
    )
    completo = post(
        "/api/menu",
        {"name": "Acarajé Completo", "description": "Acarajé com tudo", "category": "acarajes", "price": 12.0},
    )

    return SimpleNamespace(
        vatapa=vatapa,
        barra=barra,
        liberdade=liberdade,
        tradicional=tradicional,
        completo=completo,
    )


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )
