import csv
import io
import logging
from typing import List, Optional

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

TARIFF_COL_MAP = {
    "section":  ["section", "pricing", "table", "tariff"],
    "band":     ["band", "weight band", "slab", "corridor"],
    "zone":     ["zone", "destination zone", "column"],
    "mode":     ["mode", "transport mode", "transport_mode"],
    "delivery": ["delivery", "delivery type", "delivery_type"],
    "rate":     ["rate (inr)", "rate", "price (inr)", "price", "per kg rate"],
}

SECTION_ALIASES = {
    "doxpricing": "doxPricing", "dox": "doxPricing",
    "nondoxsurfacepricing": "nonDoxSurfacePricing", "nondoxsurface": "nonDoxSurfacePricing", "surface": "nonDoxSurfacePricing",
    "nondoxairpricing": "nonDoxAirPricing", "nondoxair": "nonDoxAirPricing", "air": "nonDoxAirPricing",
    "prioritypricing": "priorityPricing", "priority": "priorityPricing",
    "reversepricing": "reversePricing", "reverse": "reversePricing",
}

ZONE_ALIASES = {
    "assam": "assam",
    "nebysurface": "neBySurface", "nesurface": "neBySurface", "northeastsurface": "neBySurface",
    "nebyairagtimp": "neByAirAgtImp", "neair": "neByAirAgtImp", "agtimp": "neByAirAgtImp",
    "northeastairpriority": "neByAirAgtImp",
    "restofindia": "restOfIndia", "roi": "restOfIndia",
    "kol": "kol", "kolkata": "kol",
}

SECTION_BANDS = {
    "doxPricing":      {"01gm-250gm": "01gm-250gm", "251gm-500gm": "251gm-500gm", "add500gm": "add500gm"},
    "priorityPricing": {"01gm-500gm": "01gm-500gm", "add500gm": "add500gm"},
}

CORRIDOR_ALIASES = {
    "toassam": "toAssam", "assam": "toAssam",
    "tonortheast": "toNorthEast", "northeast": "toNorthEast", "ne": "toNorthEast",
}
MODE_ALIASES = {
    "byroad": "byRoad", "road": "byRoad",
    "bytrain": "byTrain", "train": "byTrain",
    "byflight": "byFlight", "flight": "byFlight", "air": "byFlight",
}
DELIVERY_TYPES = ("normal", "priority")

# Empty cells, skipped without a warning
BLANK_RATES = ('', '-', 'N/A', 'n/a', 'NA')


def _key(val: Optional[str]) -> str:
    return "".join(ch for ch in (val or "").lower() if ch.isalnum())


def _clean_float(val) -> Optional[float]:
    if val is None or str(val).strip() in BLANK_RATES:
        return None
    try:
        return float(str(val).replace(',', '').replace('₹', '').replace('INR', '').strip())
    except ValueError:
        return None


def _map_headers(headers: List[str], col_map: dict) -> dict:
    headers_lower = {h.lower().strip(): h for h in headers if h}
    result = {}
    for canonical, aliases in col_map.items():
        for alias in aliases:
            if alias.lower() in headers_lower:
                result[canonical] = headers_lower[alias.lower()]
                break
    return result


def _place_zone_rate(tariff: dict, section: str, band: Optional[str], zone: Optional[str], rate: float) -> bool:
    column = ZONE_ALIASES.get(_key(zone))
    if column is None:
        return False

    if section in SECTION_BANDS:
        band_key = SECTION_BANDS[section].get((band or "").strip().lower())
        if band_key is None:
            return False
        tariff.setdefault(section, {}).setdefault(band_key, {})[column] = rate
    else:
        tariff.setdefault(section, {})[column] = rate
    return True


def _place_reverse_rate(tariff: dict, corridor: Optional[str], mode: Optional[str],
                        delivery: Optional[str], rate: float) -> bool:
    corridor_key = CORRIDOR_ALIASES.get(_key(corridor))
    mode_key = MODE_ALIASES.get(_key(mode))
    delivery_key = (delivery or "").strip().lower()
    if corridor_key is None or mode_key is None or delivery_key not in DELIVERY_TYPES:
        return False
    tariff.setdefault("reversePricing", {}).setdefault(corridor_key, {}).setdefault(mode_key, {})[delivery_key] = rate
    return True


def parse_tariff_csv(content: str) -> dict:
    """
    Long-format tariff CSV → tariff record for load_tariff_table().

        section,band,zone,mode,delivery,rate
        doxPricing,01gm-250gm,assam,,,30
        nonDoxSurfacePricing,,restOfIndia,,,80
        reversePricing,toNorthEast,,byTrain,priority,15
    """
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    headers = [h for h in (reader.fieldnames or []) if h]
    mapping = _map_headers(headers, TARIFF_COL_MAP)
    if "section" not in mapping or "rate" not in mapping:
        raise ValidationError("Tariff CSV needs at least 'section' and 'rate' columns")

    tariff: dict = {}
    placed = 0
    for line_no, row in enumerate(reader, start=2):
        def get(field):
            col = mapping.get(field)
            if col is None:
                return None
            val = row.get(col)
            return str(val).strip() if val is not None else None

        raw_rate = get("rate")
        if raw_rate is None or raw_rate in BLANK_RATES:
            continue
        rate = _clean_float(raw_rate)
        if rate is None:
            logger.warning(f"Tariff CSV line {line_no}: unparseable rate {raw_rate!r} skipped")
            continue
        if rate < 0:
            logger.warning(f"Tariff CSV line {line_no}: negative rate {rate} skipped")
            continue

        section = SECTION_ALIASES.get(_key(get("section")))
        if section == "reversePricing":
            ok = _place_reverse_rate(tariff, get("band"), get("mode"), get("delivery"), rate)
        elif section is not None:
            ok = _place_zone_rate(tariff, section, get("band"), get("zone"), rate)
        else:
            ok = False

        if ok:
            placed += 1
        else:
            logger.warning(f"Tariff CSV line {line_no}: unrecognised row {dict(row)} skipped")

    if not placed:
        raise ValidationError("Tariff CSV contained no usable rate rows")

    logger.info(f"Tariff CSV: {placed} rates across {sorted(tariff)}")
    return tariff
