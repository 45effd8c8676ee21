"""
Rate Calculation Engine: prices one shipment against one tariff table.

Two modes:
  Reverse  = origin pincode given AND category NON-DOX. Shipment moving into
             Assam / North-East; corridor × transport mode × delivery type
             price per kg, billed on max(weight, mode minimum).
  Forward  = everything else. Destination zone from the classifier, then
             DOX   (grams): flat band price, above 500 g the 500 g band price
                            plus ceil((w - 500) / 500) × add500gm
             NON-DOX (kg):  surface or air price per kg × weight

Pure: no I/O, no state. The tariff table is a frozen snapshot and every
missing cell reads as 0 through services.tariff.tariff_cell.
"""
import logging
import math
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.models.schemas import Corridor, PostalZone, PricingRequest, PricingResult, TariffTable
from app.services.tariff import load_tariff_table, tariff_cell, zone_column
from app.services.zone_classifier import classify_zone, is_assam_pincode, is_north_east_pincode

logger = logging.getLogger(__name__)

DOX = "dox"
NON_DOX = "non-dox"
SERVICE_CATEGORY_ALIASES: dict[str, str] = {
    "dox": DOX,
    "non-dox": NON_DOX, "non_dox": NON_DOX, "nondox": NON_DOX,
}

# Reverse pricing: minimum chargeable weight (kg) per transport mode
MIN_CHARGEABLE_WEIGHT: dict[str, float] = {
    "byRoad":   500,
    "byTrain":  100,
    "byFlight": 25,
}
TRANSPORT_MODE_FIELDS: dict[str, str] = {
    "byRoad":   "by_road",
    "byTrain":  "by_train",
    "byFlight": "by_flight",
}
DELIVERY_TYPES = ("normal", "priority")
DEFAULT_TRANSPORT_MODE = "byRoad"
DEFAULT_DELIVERY_TYPE = "normal"

CORRIDOR_FIELDS: dict[Corridor, str] = {
    Corridor.TO_ASSAM:      "to_assam",
    Corridor.TO_NORTH_EAST: "to_north_east",
}

# DOX band bounds (grams)
DOX_FIRST_BAND_MAX = 250
DOX_BASE_BAND_MAX = 500
DOX_INCREMENT = 500


# ─── Request validation ────────────────────────────────────────────────

def _coerce_request(request: Union[PricingRequest, dict]) -> PricingRequest:
    if isinstance(request, PricingRequest):
        return request
    if not isinstance(request, dict):
        raise ValidationError("Pricing request must be a mapping")
    try:
        return PricingRequest.model_validate(request)
    except PydanticValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ()))
        raise ValidationError(f"Invalid pricing request field '{field}': {err.get('msg')}") from e


def _parse_weight(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Please enter destination pincode and weight")
    try:
        weight = float(str(value).replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Weight must be a number, got {value!r}")
    if math.isnan(weight) or math.isinf(weight):
        raise ValidationError(f"Weight must be a finite number, got {value!r}")
    if weight < 0:
        raise ValidationError(f"Weight cannot be negative, got {weight:g}")
    return weight


def _service_category(req: PricingRequest) -> str:
    category = SERVICE_CATEGORY_ALIASES.get((req.service_category or "").strip().lower())
    if category is None:
        raise ValidationError(f"Unknown service category '{req.service_category}' — expected 'dox' or 'non-dox'")
    return category


def _transport_mode(req: PricingRequest) -> str:
    mode = req.transport_mode or DEFAULT_TRANSPORT_MODE
    if mode not in MIN_CHARGEABLE_WEIGHT:
        raise ValidationError(f"Unknown transport mode '{mode}' — expected one of {', '.join(MIN_CHARGEABLE_WEIGHT)}")
    return mode


def _delivery_type(req: PricingRequest) -> str:
    delivery = req.delivery_type or DEFAULT_DELIVERY_TYPE
    if delivery not in DELIVERY_TYPES:
        raise ValidationError(f"Unknown delivery type '{delivery}' — expected 'normal' or 'priority'")
    return delivery


def is_reverse_request(req: PricingRequest) -> bool:
    """Reverse mode is opted into explicitly, never inferred from geography."""
    has_origin = bool((req.origin_pincode or "").strip())
    return has_origin and SERVICE_CATEGORY_ALIASES.get((req.service_category or "").strip().lower()) == NON_DOX


def _service_label(req: PricingRequest, category: str, transport_mode: Optional[str]) -> str:
    label = category.upper()
    if req.priority:
        label += " (Priority)"
    if req.by_air:
        label += " (By Air)"
    if transport_mode:
        label += f" ({transport_mode})"
    return label


# ─── Reverse pricing ───────────────────────────────────────────────────

def _reverse_corridor(destination: str) -> Corridor:
    if is_assam_pincode(destination):
        return Corridor.TO_ASSAM
    if is_north_east_pincode(destination):
        return Corridor.TO_NORTH_EAST
    raise ValidationError("Reverse pricing only available for Assam/North-East destinations")


def _price_reverse(table: TariffTable, req: PricingRequest, weight: float) -> PricingResult:
    mode = _transport_mode(req)
    delivery = _delivery_type(req)

    chargeable = max(weight, MIN_CHARGEABLE_WEIGHT[mode])
    corridor = _reverse_corridor(req.destination_pincode)

    per_kg = tariff_cell(table, "reverse_pricing", CORRIDOR_FIELDS[corridor], TRANSPORT_MODE_FIELDS[mode], delivery)
    return PricingResult(
        price=per_kg * chargeable,
        zone=corridor.value,
        chargeable_weight=chargeable,
        minimum_weight_applied=chargeable > weight,
        mode="reverse",
        weight_unit="kg",
        service_label=_service_label(req, NON_DOX, mode),
    )


# ─── Forward pricing ───────────────────────────────────────────────────

def _price_dox(table: TariffTable, zone: PostalZone, weight: float, priority: bool) -> float:
    col = zone_column(zone)
    if priority:
        section, first_band, base_band = "priority_pricing", "upto_500gm", "upto_500gm"
        first_band_max = DOX_BASE_BAND_MAX
    else:
        section, first_band, base_band = "dox_pricing", "upto_250gm", "upto_500gm"
        first_band_max = DOX_FIRST_BAND_MAX

    if weight <= first_band_max:
        return tariff_cell(table, section, first_band, col)
    if weight <= DOX_BASE_BAND_MAX:
        return tariff_cell(table, section, base_band, col)

    base = tariff_cell(table, section, base_band, col)
    increments = math.ceil((weight - DOX_BASE_BAND_MAX) / DOX_INCREMENT)
    return base + increments * tariff_cell(table, section, "add_500gm", col)


def _price_non_dox(table: TariffTable, zone: PostalZone, weight: float, by_air: bool) -> float:
    section = "non_dox_air_pricing" if by_air else "non_dox_surface_pricing"
    return tariff_cell(table, section, zone_column(zone)) * weight


def _price_forward(table: TariffTable, req: PricingRequest, category: str, weight: float) -> PricingResult:
    zone = classify_zone(req.destination_pincode, req.by_air)
    if category == DOX:
        price = _price_dox(table, zone, weight, req.priority)
        unit = "g"
    else:
        price = _price_non_dox(table, zone, weight, req.by_air)
        unit = "kg"

    return PricingResult(
        price=price,
        zone=zone.value,
        chargeable_weight=weight,
        minimum_weight_applied=False,
        mode="forward",
        weight_unit=unit,
        service_label=_service_label(req, category, None),
    )


# ─── Entry point ───────────────────────────────────────────────────────

def calculate_price(tariff_table: Union[TariffTable, dict, None],
                    request: Union[PricingRequest, dict]) -> PricingResult:
    """
    Price one request. Raises ValidationError for a missing destination
    pincode or weight, an unknown option value, or a reverse request to a
    destination outside Assam / North-East. Never returns a partial result.
    """
    req = _coerce_request(request)
    if not (req.destination_pincode or "").strip():
        raise ValidationError("Please enter destination pincode and weight")
    weight = _parse_weight(req.weight)
    category = _service_category(req)
    table = load_tariff_table(tariff_table)

    if is_reverse_request(req):
        result = _price_reverse(table, req, weight)
    else:
        result = _price_forward(table, req, category, weight)

    logger.debug(
        f"Priced {result.service_label} to {req.destination_pincode} ({result.zone}): "
        f"{result.chargeable_weight:g}{result.weight_unit} → {result.price:.2f}"
    )
    return result


def describe_result(request: Union[PricingRequest, dict], result: PricingResult) -> str:
    """One-line summary shown next to a calculated price."""
    req = _coerce_request(request)
    origin = (req.origin_pincode or "").strip()
    from_text = f" from {origin}" if origin else ""
    weight_text = f" (charged for {result.chargeable_weight:g}kg)" if result.minimum_weight_applied else ""
    return f"Calculated price: ₹{result.price:.2f} for {result.service_label}{from_text} to {result.zone}{weight_text}"
