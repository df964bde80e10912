"""Test configuration and fixtures."""

import os

# Point the application engine at SQLite before any tourapi module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourapi.core.database import Base, get_db
from tourapi.models import *  # noqa: F403 - Import all models
from tourapi.repositories import SQLAlchemyTourRepository
from tourapi.services import TourService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def tour_service(test_session):
    """Tour service backed by the test session."""
    return TourService(SQLAlchemyTourRepository(test_session))


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create the application with its database dependency overridden."""
    from tourapi.main import create_app

    app = create_app()

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_tour_data():
    """Sample tour data for testing."""
    return {
        "name": "The Forest Hiker",
        "duration": 5,
        "maxGroupSize": 25,
        "difficulty": "easy",
        "ratingsAverage": 4.7,
        "ratingsQuantity": 37,
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "description": "Ut enim ad minim veniam, quis nostrud exercitation ullamco.",
        "imageCover": "tour-1-cover.jpg",
        "images": ["tour-1-1.jpg", "tour-1-2.jpg", "tour-1-3.jpg"],
        "startDates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z", "2021-10-05T09:00:00Z"],
    }


@pytest.fixture
def make_tour_data(sample_tour_data):
    """Factory producing valid tour payloads with overrides."""
    def _make(**overrides):
        data = dict(sample_tour_data)
        data.update(overrides)
        return data
    return _make


@pytest_asyncio.fixture
async def seeded_tours(tour_service, make_tour_data):
    """A small catalogue of tours, one of them secret."""
    catalogue = [
        ("The Forest Hiker", 397, 4.7, 5, "easy", False),
        ("The Sea Explorer", 497, 4.8, 7, "medium", False),
        ("The Snow Adventurer", 997, 4.5, 4, "difficult", False),
        ("The City Wanderer", 1197, 4.6, 9, "easy", False),
        ("The Park Camper", 1497, 4.9, 10, "medium", False),
        ("The Sports Lover", 2997, 4.3, 14, "difficult", False),
        ("The Secret Garden", 297, 5.0, 3, "easy", True),
    ]
    tours = []
    for name, price, rating, duration, difficulty, secret in catalogue:
        tours.append(
            await tour_service.create_tour(
                make_tour_data(
                    name=name,
                    price=price,
                    ratingsAverage=rating,
                    duration=duration,
                    difficulty=difficulty,
                    secretTour=secret,
                )
            )
        )
    return tours
