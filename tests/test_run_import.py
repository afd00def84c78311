# tests/test_run_import.py
import pytest
from sqlalchemy import create_engine, select
from app.models import Imovel
from conftest import FIXTURES
import run_import


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'imoveis.db'}"
    monkeypatch.setenv("POSTGRES_URL", url)
    monkeypatch.setenv("MAPPING_ERROR_POLICY", "abort")
    return url


def stored_refs(url):
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return conn.scalars(select(Imovel.ref).order_by(Imovel.id)).all()
    finally:
        engine.dispose()


def test_main_imports_feed_file(database_url, capsys):
    assert run_import.main([str(FIXTURES / "feed.xml"), "--timeout", "5"]) == 0
    assert "3 imóveis importados" in capsys.readouterr().out
    assert stored_refs(database_url) == ["AP-1001", "CA-2002", "GL-3003"]


def test_main_reports_parse_error(database_url, tmp_path, capsys):
    bad = tmp_path / "bad.xml"
    bad.write_bytes(b"<ListingDataFeed><Listings>")
    assert run_import.main([str(bad)]) == 1
    assert capsys.readouterr().err.startswith("ParseError:")
    assert stored_refs(database_url) == []


def test_main_skip_invalid(database_url, tmp_path, capsys):
    feed = tmp_path / "mixed.xml"
    feed.write_text(
        "<ListingDataFeed><Listings>"
        "<Listing><ListingID>OK</ListingID><TransactionType>For Sale</TransactionType>"
        "<Details><PropertyType>Residential / Home</PropertyType></Details>"
        "<Location><City>Campinas</City><Neighborhood>Centro</Neighborhood></Location></Listing>"
        "<Listing><ListingID>NO-LOC</ListingID></Listing>"
        "</Listings></ListingDataFeed>",
        encoding="utf-8",
    )
    assert run_import.main([str(feed), "--skip-invalid"]) == 0
    assert "(1 ignorados)" in capsys.readouterr().out
    assert stored_refs(database_url) == ["OK"]
