"""
Fixtures compartidas para Pytest.
Configura base de datos de test, clientes HTTP y registros de ejemplo.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import Base, get_db
from app.main import app
from app.models.tooth_diagnosis import STATUS_COLORS, ToothStatus
from app.models.treatment import TreatmentStatus
from app.schemas.tooth_diagnosis import ToothDiagnosisRecord
from app.schemas.treatment import TreatmentRecord

# ── Engine de test (SQLite async) ────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def setup_database():
    """Crea y destruye las tablas para cada test que use la DB."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(setup_database) -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Fábricas de registros (sin DB) ───────────────────

@pytest.fixture
def make_diagnosis():
    """Construye un ToothDiagnosisRecord con color canónico por defecto."""

    def _make(tooth_number: str = "36", status: ToothStatus = ToothStatus.HEALTHY, **overrides):
        data = {
            "id": uuid4(),
            "patient_id": uuid4(),
            "consultation_id": None,
            "tooth_number": tooth_number,
            "status": status,
            "color_code": STATUS_COLORS[status],
            "created_at": T0,
            "updated_at": T0,
        }
        data.update(overrides)
        return ToothDiagnosisRecord(**data)

    return _make


@pytest.fixture
def make_treatment():
    """Construye un TreatmentRecord sin diente asignado."""

    def _make(treatment_type: str, **overrides):
        data = {
            "id": uuid4(),
            "patient_id": uuid4(),
            "treatment_type": treatment_type,
            "status": TreatmentStatus.SCHEDULED,
            "created_at": T0,
        }
        data.update(overrides)
        return TreatmentRecord(**data)

    return _make


@pytest.fixture
def later():
    """Instantes posteriores a T0, para controlar updated_at."""
    return lambda minutes=1: T0 + timedelta(minutes=minutes)
