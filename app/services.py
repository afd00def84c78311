# app/services.py
from typing import List, Optional, Union
from sqlalchemy.orm import Session
from . import crud
from .errors import ImportFailure, MappingError
from .feed import parse_feed
from .normalize import normalize_listing
from .schemas import ImportResult, NormalizedListing
from .utils import logger


def normalize_feed(xml: Union[bytes, str], on_mapping_error: str = "abort"):
    """Parse and normalize a whole feed without touching storage.

    With ``on_mapping_error="skip"`` unusable records are dropped and
    counted instead of aborting the import.
    """
    if on_mapping_error not in ("abort", "skip"):
        raise ValueError(f"unknown mapping error policy: {on_mapping_error}")
    rows: List[NormalizedListing] = []
    skipped = 0
    for index, raw in enumerate(parse_feed(xml)):
        try:
            rows.append(normalize_listing(raw, index))
        except MappingError as e:
            if on_mapping_error == "abort":
                raise
            skipped += 1
            logger.warning("Skipping listing #%d: %s", e.index, e.message)
    return rows, skipped


def import_feed(db: Session, xml: Union[bytes, str], *, timeout: Optional[float] = None,
                on_mapping_error: str = "abort") -> ImportResult:
    """Replace the `imoveis` table with the contents of a feed document."""
    try:
        rows, skipped = normalize_feed(xml, on_mapping_error)
        count = crud.replace_listings(db, rows, timeout=timeout)
    except ImportFailure as e:
        logger.error("Import failed (%s): %s", e.kind, e.message)
        raise
    logger.info("Imported %d listings (%d skipped)", count, skipped)
    return ImportResult(imported_count=count, skipped_count=skipped)
