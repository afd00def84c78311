# tests/conftest.py
from pathlib import Path
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
import app.models  # noqa: F401
from app.db import Base, make_session_factory

FIXTURES = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> bytes:
    return (FIXTURES / name).read_bytes()


def listing_xml(listings: str) -> str:
    return f"<ListingDataFeed><Listings>{listings}</Listings></ListingDataFeed>"


@pytest.fixture
def engine():
    # in-memory sqlite stands in for postgres; StaticPool keeps one connection
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def feed_xml():
    return read_fixture("feed.xml")
