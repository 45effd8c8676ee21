"""
Tariff table loading and cell lookup.

tariff_cell() is the only place a missing price becomes zero. A gap in the
table (section, band, zone column or cell) is priced at 0, never raised.
"""
import logging
from typing import Any, Optional
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.models.schemas import TariffTable, PostalZone

logger = logging.getLogger(__name__)

ZONE_COLUMNS: dict[PostalZone, str] = {
    PostalZone.ASSAM:                   "assam",
    PostalZone.NORTH_EAST_SURFACE:      "ne_by_surface",
    PostalZone.NORTH_EAST_AIR_PRIORITY: "ne_by_air_agt_imp",
    PostalZone.REST_OF_INDIA:           "rest_of_india",
    PostalZone.KOLKATA:                 "kolkata",
}


def zone_column(zone: PostalZone) -> str:
    return ZONE_COLUMNS[PostalZone(zone)]


def load_tariff_table(record: Any) -> TariffTable:
    """
    Build an immutable TariffTable from a pricing-plan record.

    Accepts an existing TariffTable, a bare tariff dict, a record that wraps
    the tariff under "pricing" and/or "tariff" (the corporate pricing
    endpoint shape) or None (an empty table, every cell zero).
    """
    if isinstance(record, TariffTable):
        return record
    if record is None:
        return TariffTable()
    if not isinstance(record, dict):
        raise ValidationError(f"Tariff table must be a mapping, got {type(record).__name__}")

    data = record
    for wrapper in ("pricing", "tariff"):
        if isinstance(data.get(wrapper), dict):
            data = data[wrapper]
    try:
        return TariffTable.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid tariff table: {e.errors()[0].get('msg', str(e))}") from e


def tariff_cell(table: Optional[TariffTable], *path: str) -> float:
    """Walk attribute names down the table; any miss reads as 0.0."""
    node: Any = table
    for key in path:
        node = getattr(node, key, None) if node is not None else None
        if node is None:
            logger.debug(f"Tariff configuration gap at {'.'.join(path)}, priced as 0")
            return 0.0
    try:
        return float(node)
    except (TypeError, ValueError):
        logger.debug(f"Tariff cell {'.'.join(path)} is not a price, priced as 0")
        return 0.0
