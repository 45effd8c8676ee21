"""
Pincode → tariff zone classification.

Zones are checked in a fixed order, first match wins:
  Assam      781000–788999
  Kolkata    700000–700999
  Manipur / Tripura (795xxx, 799xxx) → NE air priority ("AGT IMP") on air
             routes, NE surface otherwise
  Other NE   Arunachal, Meghalaya, Mizoram, Nagaland, Sikkim → NE surface
  Anything else, unparseable input included → Rest of India

The Assam / North-East predicates used by reverse pricing keep their own
range tables on purpose: they do not cover Kolkata and must not drift
with the classifier.
"""
import re
from typing import Optional, Tuple
from app.models.schemas import PostalZone

PINCODE_MIN = 100000
PINCODE_MAX = 999999

_PINCODE_RE = re.compile(r"^[0-9]{6}$")

Range = Tuple[int, int]

# Classifier ranges
ASSAM_ZONE_RANGES: Tuple[Range, ...] = ((781000, 788999),)
KOLKATA_ZONE_RANGES: Tuple[Range, ...] = ((700000, 700999),)
DUAL_MODE_NE_RANGES: Tuple[Range, ...] = (
    (795000, 795999),   # Manipur
    (799000, 799999),   # Tripura
)
SURFACE_ONLY_NE_RANGES: Tuple[Range, ...] = (
    (790000, 791999),   # Arunachal Pradesh
    (793000, 793999),   # Meghalaya
    (796000, 796999),   # Mizoram
    (797000, 797999),   # Nagaland
    (737000, 737999),   # Sikkim
)

# Reverse-pricing predicate ranges
ASSAM_RANGES: Tuple[Range, ...] = ((781000, 788999),)
NORTH_EAST_RANGES: Tuple[Range, ...] = (
    (790000, 791999),   # Arunachal Pradesh
    (793000, 793999),   # Meghalaya
    (795000, 795999),   # Manipur
    (796000, 796999),   # Mizoram
    (797000, 797999),   # Nagaland
    (737000, 737999),   # Sikkim
    (799000, 799999),   # Tripura
)


def parse_pincode(pincode) -> Optional[int]:
    """Six-digit pincode as int, or None when it can't be one."""
    if pincode is None:
        return None
    text = str(pincode).strip()
    if not _PINCODE_RE.match(text):
        return None
    pin = int(text)
    if not PINCODE_MIN <= pin <= PINCODE_MAX:
        return None
    return pin


def _in_ranges(pin: Optional[int], ranges: Tuple[Range, ...]) -> bool:
    if pin is None:
        return False
    return any(lo <= pin <= hi for lo, hi in ranges)


def classify_zone(pincode, is_air_route: bool = False) -> PostalZone:
    pin = parse_pincode(pincode)
    if pin is None:
        return PostalZone.REST_OF_INDIA

    if _in_ranges(pin, ASSAM_ZONE_RANGES):
        return PostalZone.ASSAM
    if _in_ranges(pin, KOLKATA_ZONE_RANGES):
        return PostalZone.KOLKATA
    if _in_ranges(pin, DUAL_MODE_NE_RANGES):
        return PostalZone.NORTH_EAST_AIR_PRIORITY if is_air_route else PostalZone.NORTH_EAST_SURFACE
    if _in_ranges(pin, SURFACE_ONLY_NE_RANGES):
        return PostalZone.NORTH_EAST_SURFACE
    return PostalZone.REST_OF_INDIA


def is_assam_pincode(pincode) -> bool:
    return _in_ranges(parse_pincode(pincode), ASSAM_RANGES)


def is_north_east_pincode(pincode) -> bool:
    return _in_ranges(parse_pincode(pincode), NORTH_EAST_RANGES)
