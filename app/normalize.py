# app/normalize.py
"""Turn feed records into `imoveis` rows.

Vocabulary tables are plain dicts: add a key to translate a new feed
category, anything missing passes through unchanged.
"""
import math
import re
from typing import Optional
from .errors import MappingError
from .feed import RawListing, FieldValue, value_text
from .schemas import NormalizedListing

PROPERTY_TYPE_LABELS = {
    "Residential / Apartment": "Apartamento",
    "Residential / Home": "Casa",
    "Residential / Land Lot": "Terreno",
    "Residential / Farm Ranch": "Chácara",
    "Commercial / Office": "Sala Comercial",
    "Commercial / Studio": "Studio",
    "Commercial / Agricultural": "Área Agrícola",
    "Commercial / Industrial": "Galpão Industrial",
    "Commercial / Edificio Comercial": "Edifício Comercial",
}

TRANSACTION_TYPE_LABELS = {
    "For Sale": "Venda",
    "For Rent": "Aluguel",
}

# "2 vagas de garagem", "1 vaga garagem"
PARKING_RE = re.compile(r"(\d+)\s*vagas?\s*(?:de\s*)?garagem", re.I)

_LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def translate_property_type(value: str) -> str:
    return PROPERTY_TYPE_LABELS.get(value, value)


def translate_transaction_type(value: str) -> str:
    return TRANSACTION_TYPE_LABELS.get(value, value)


def _finite(n: float) -> Optional[float]:
    return n if math.isfinite(n) else None


def to_number(value: FieldValue) -> Optional[float]:
    """Strict numeric reading of a field; None when it does not parse."""
    text = value_text(value)
    if text is None or not text.strip():
        return None
    try:
        return _finite(float(text.strip()))
    except ValueError:
        return None


def to_leading_number(value: FieldValue) -> Optional[float]:
    """Reads the numeric prefix of a field ("450000 BRL" -> 450000.0)."""
    text = value_text(value)
    if text is None:
        return None
    m = _LEADING_NUMBER_RE.match(text)
    if not m:
        return None
    return _finite(float(m.group(0)))


def to_count(value: FieldValue) -> int:
    n = to_number(value)
    if n is None or n <= 0:
        return 0
    return int(n)


def parking_from_text(text: Optional[str]) -> int:
    """Best-effort parking count from free text.

    Only a hint: descriptions are written by people and the first mention
    wins, whatever it refers to.
    """
    if not text:
        return 0
    m = PARKING_RE.search(text)
    return int(m.group(1)) if m else 0


def select_price(details: RawListing) -> float:
    list_price = details.field("ListPrice")
    chosen = list_price if value_text(list_price) else details.field("RentalPrice")
    price = to_leading_number(chosen)
    if price is None or price < 0:
        return 0.0
    return price


def select_area(details: RawListing) -> float:
    for name in ("LivingArea", "LotArea"):
        n = to_number(details.field(name))
        if n is not None and n > 0:
            return n
    return 0.0


def sanitize_link(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return url.replace("+", "-")


def _required(value: Optional[str], label: str, index: int, ref: Optional[str]) -> str:
    if value is None or not value.strip():
        raise MappingError(f"missing {label}", index=index, ref=ref)
    return value.strip().upper()


def normalize_listing(raw: RawListing, index: int) -> NormalizedListing:
    """Map one feed record to a row, raising `MappingError` if it is unusable."""
    details = raw.block("Details")
    location = raw.block("Location")
    ref = raw.text("ListingID")
    description = raw.text("Title") or None

    property_type = details.text("PropertyType")
    transaction_type = raw.text("TransactionType")

    parking = to_count(details.field("Garage"))
    if parking == 0 and description:
        parking = parking_from_text(description)

    return NormalizedListing(
        description=description,
        property_type=_required(
            translate_property_type(property_type) if property_type else None,
            "property type", index, ref),
        transaction_type=_required(
            translate_transaction_type(transaction_type) if transaction_type else None,
            "transaction type", index, ref),
        bedroom_count=to_count(details.field("Bedrooms")),
        bathroom_count=to_count(details.field("Bathrooms")),
        parking_count=parking,
        price=select_price(details),
        area=select_area(details),
        detail_url=sanitize_link(raw.text("DetailViewUrl")),
        neighborhood=_required(location.text("Neighborhood"), "neighborhood", index, ref),
        city=_required(location.text("City"), "city", index, ref),
        external_ref=ref,
    )
