"""Canonical item identifiers and catalog code resolution."""

from dataclasses import dataclass
from typing import Literal

IdentifierKey = Literal["upc", "ean", "system_id", "custom_sku", "manufact_sku"]

IDENTIFIER_PRIORITY: tuple[IdentifierKey, ...] = (
    "upc",
    "ean",
    "system_id",
    "custom_sku",
    "manufact_sku",
)


def normalize_identifier(value: object) -> str:
    """Return the canonical key for a scanned or typed identifier.

    Surrounding and embedded whitespace is dropped and letters are
    upper-cased, so ``" abc 123"`` and ``"ABC123"`` compare equal. Missing
    values normalize to the empty string.
    """
    if value is None:
        return ""
    return "".join(str(value).split()).upper()


@dataclass(frozen=True)
class CatalogItem:
    """Identifier view of a reference catalog row."""

    system_id: str
    item_name: str = ""
    upc: str = ""
    ean: str = ""
    custom_sku: str = ""
    manufact_sku: str = ""


def identifier_map(item: CatalogItem) -> dict[IdentifierKey, str]:
    """Return every identifier of a catalog item in canonical form."""
    return {
        "upc": normalize_identifier(item.upc),
        "ean": normalize_identifier(item.ean),
        "system_id": normalize_identifier(item.system_id),
        "custom_sku": normalize_identifier(item.custom_sku),
        "manufact_sku": normalize_identifier(item.manufact_sku),
    }


def resolve_catalog_item(
    items: list[CatalogItem], raw_code: str | None
) -> tuple[CatalogItem | None, IdentifierKey | None]:
    """Find the catalog item a scanned code refers to.

    Identifier kinds are tried in ``IDENTIFIER_PRIORITY`` order across the
    whole catalog, so a UPC match always wins over a SKU match.
    """
    code = normalize_identifier(raw_code)
    if not code:
        return None, None
    mapped = [(item, identifier_map(item)) for item in items]
    for key in IDENTIFIER_PRIORITY:
        for item, identifiers in mapped:
            if identifiers[key] == code:
                return item, key
    return None, None
