# tests/test_services.py
import pytest
from sqlalchemy import select
from app import crud
from app.errors import MappingError, ParseError
from app.models import Imovel
from app.schemas import NormalizedListing
from app.services import import_feed, normalize_feed
from conftest import listing_xml

BAD_LISTING = (
    "<Listing><ListingID>NO-LOC</ListingID><TransactionType>For Sale</TransactionType>"
    "<Details><PropertyType>Residential / Home</PropertyType></Details></Listing>"
)


def seed(db):
    crud.replace_listings(db, [NormalizedListing(
        property_type="CASA", transaction_type="VENDA", neighborhood="CENTRO",
        city="CAMPINAS", external_ref="prior")])


def stored_refs(db):
    return db.scalars(select(Imovel.ref).order_by(Imovel.id)).all()


def test_import_feed_replaces_table(db, feed_xml):
    seed(db)
    result = import_feed(db, feed_xml)
    assert result.imported_count == 3
    assert result.skipped_count == 0
    assert stored_refs(db) == ["AP-1001", "CA-2002", "GL-3003"]


def test_import_same_feed_twice_keeps_n_rows(db, feed_xml):
    import_feed(db, feed_xml)
    import_feed(db, feed_xml)
    assert len(stored_refs(db)) == 3


def test_stored_values_follow_mapping(db, feed_xml):
    import_feed(db, feed_xml)
    row = db.scalars(select(Imovel).where(Imovel.ref == "AP-1001")).one()
    assert row.tipo == "APARTAMENTO"
    assert row.finalidade == "VENDA"
    assert row.qtd_vagas == 2
    assert row.preco == 450000.0
    assert row.link == "https://exemplo.com.br/imovel-venda-1001"
    assert row.bairro == "CAMBUÍ"


def test_mapping_error_aborts_and_keeps_prior_table(db):
    seed(db)
    xml = listing_xml(BAD_LISTING)
    with pytest.raises(MappingError):
        import_feed(db, xml)
    assert stored_refs(db) == ["prior"]


def test_parse_error_keeps_prior_table(db):
    seed(db)
    with pytest.raises(ParseError):
        import_feed(db, b"<ListingDataFeed><Listings><Listing>")
    assert stored_refs(db) == ["prior"]


def test_skip_policy_counts_unusable_listings(db):
    good = (
        "<Listing><ListingID>OK</ListingID><TransactionType>For Rent</TransactionType>"
        "<Details><PropertyType>Commercial / Office</PropertyType></Details>"
        "<Location><City>Campinas</City><Neighborhood>Centro</Neighborhood></Location></Listing>"
    )
    result = import_feed(db, listing_xml(good + BAD_LISTING), on_mapping_error="skip")
    assert result.imported_count == 1
    assert result.skipped_count == 1
    assert stored_refs(db) == ["OK"]


def test_empty_feed_clears_table(db):
    seed(db)
    result = import_feed(db, listing_xml(""))
    assert result.imported_count == 0
    assert stored_refs(db) == []


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        normalize_feed(listing_xml(""), on_mapping_error="ignore")
