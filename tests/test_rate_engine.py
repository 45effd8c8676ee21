import math
import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.models.schemas import PricingRequest, TariffTable
from app.services.rate_engine import calculate_price, describe_result, is_reverse_request
from app.services.tariff import load_tariff_table


def dox(dest, weight, **kw):
    return {"destinationPincode": dest, "weight": weight, "serviceCategory": "dox", **kw}


def non_dox(dest, weight, **kw):
    return {"destinationPincode": dest, "weight": weight, "serviceCategory": "non-dox", **kw}


def reverse(dest, weight, **kw):
    return non_dox(dest, weight, originPincode="110001", **kw)


# ─── Forward DOX ───────────────────────────────────────────────────────

def test_dox_assam_scenario(tariff_record):
    assert calculate_price(tariff_record, dox("781001", 300)).price == 50
    assert calculate_price(tariff_record, dox("781001", 1100)).price == 50 + 2 * 20


@pytest.mark.parametrize("weight,expected", [
    (0, 30), (1, 30), (250, 30),
    (250.5, 50), (251, 50), (500, 50),
    (501, 70), (1000, 70), (1000.01, 90), (1500, 90), (1501, 110),
])
def test_dox_standard_bands(tariff_record, weight, expected):
    result = calculate_price(tariff_record, dox("781001", weight))
    assert result.price == expected
    assert result.zone == "Assam"
    assert result.weight_unit == "g"
    assert result.mode == "forward"


def test_500_vs_501_grams_differs_by_exactly_one_increment(tariff_record):
    at_500 = calculate_price(tariff_record, dox("400001", 500)).price
    at_501 = calculate_price(tariff_record, dox("400001", 501)).price
    add500 = tariff_record["doxPricing"]["add500gm"]["restOfIndia"]
    assert at_501 - at_500 == add500


@pytest.mark.parametrize("weight,expected", [
    (100, 100), (500, 100), (501, 135), (1000, 135), (1001, 170),
])
def test_dox_priority_bands(tariff_record, weight, expected):
    assert calculate_price(tariff_record, dox("781001", weight, priority=True)).price == expected


def test_dox_above_500_uses_500gm_band_not_250gm_band(tariff_record):
    # 95 (251-500 RoI) + 1 × 45, never 70 + 45
    assert calculate_price(tariff_record, dox("400001", 900)).price == 140


def test_dox_air_route_to_tripura_uses_agt_imp_column(tariff_record):
    surface = calculate_price(tariff_record, dox("799001", 200))
    air = calculate_price(tariff_record, dox("799001", 200, byAir=True))
    assert (surface.zone, surface.price) == ("NorthEastSurface", 45)
    assert (air.zone, air.price) == ("NorthEastAirPriority", 60)


# ─── Forward NON-DOX ───────────────────────────────────────────────────

def test_non_dox_surface_per_kg(tariff_record):
    result = calculate_price(tariff_record, non_dox("400001", 2.5))
    assert result.price == 200
    assert result.weight_unit == "kg"
    assert result.minimum_weight_applied is False
    assert result.chargeable_weight == 2.5


def test_non_dox_air_per_kg(tariff_record):
    assert calculate_price(tariff_record, non_dox("795001", 2, byAir=True)).price == 250


def test_forward_non_dox_has_no_minimum_weight(tariff_record):
    result = calculate_price(tariff_record, non_dox("781001", 0.5))
    assert result.price == 20
    assert result.chargeable_weight == 0.5


# ─── Reverse ───────────────────────────────────────────────────────────

def test_reverse_north_east_train_priority_scenario(tariff_record):
    result = calculate_price(tariff_record, reverse("796001", 40, transportMode="byTrain", deliveryType="priority"))
    assert result.mode == "reverse"
    assert result.zone == "toNorthEast"
    assert result.chargeable_weight == 100
    assert result.price == 1500
    assert result.minimum_weight_applied is True


@pytest.mark.parametrize("weight", [0, 1, 10, 24.99])
def test_reverse_flight_below_minimum_billed_at_25kg(tariff_record, weight):
    result = calculate_price(tariff_record, reverse("781001", weight, transportMode="byFlight"))
    assert result.chargeable_weight == 25
    assert result.price == 25 * 60
    assert result.minimum_weight_applied is True


def test_reverse_flight_at_exact_minimum_is_not_flagged(tariff_record):
    result = calculate_price(tariff_record, reverse("781001", 25, transportMode="byFlight"))
    assert result.chargeable_weight == 25
    assert result.minimum_weight_applied is False


def test_reverse_above_minimum_bills_actual_weight(tariff_record):
    result = calculate_price(tariff_record, reverse("781001", 30, transportMode="byFlight", deliveryType="priority"))
    assert result.price == 30 * 75
    assert result.minimum_weight_applied is False


def test_reverse_defaults_to_road_normal(tariff_record):
    result = calculate_price(tariff_record, reverse("781001", 100))
    assert result.chargeable_weight == 500
    assert result.price == 500 * 8
    assert result.service_label == "NON-DOX (byRoad)"


def test_reverse_to_mumbai_is_rejected(tariff_record):
    with pytest.raises(ValidationError, match="Assam/North-East"):
        calculate_price(tariff_record, reverse("400001", 50))


def test_reverse_to_kolkata_is_rejected(tariff_record):
    with pytest.raises(ValidationError):
        calculate_price(tariff_record, reverse("700001", 50))


def test_origin_with_dox_stays_forward(tariff_record):
    req = dox("400001", 300, originPincode="781001")
    assert not is_reverse_request(PricingRequest.model_validate(req))
    result = calculate_price(tariff_record, req)
    assert result.mode == "forward"
    assert result.price == 95


def test_non_dox_to_north_east_without_origin_stays_forward(tariff_record):
    result = calculate_price(tariff_record, non_dox("796001", 40))
    assert result.mode == "forward"
    assert result.price == 55 * 40


def test_blank_origin_is_not_reverse(tariff_record):
    assert calculate_price(tariff_record, non_dox("400001", 1, originPincode="  ")).mode == "forward"


# ─── Validation ────────────────────────────────────────────────────────

@pytest.mark.parametrize("request_", [
    {"weight": 300},
    {"destinationPincode": "", "weight": 300},
    {"destinationPincode": "781001"},
    {"destinationPincode": "781001", "weight": ""},
    {"destinationPincode": "781001", "weight": "heavy"},
    {"destinationPincode": "781001", "weight": float("nan")},
    {"destinationPincode": "781001", "weight": float("inf")},
    {"destinationPincode": "781001", "weight": -1},
    {"destinationPincode": "781001", "weight": 1, "serviceCategory": "parcel"},
    {"destinationPincode": "781001", "weight": [1]},
    {"destinationPincode": "400001", "weight": True, "serviceCategory": "non-dox"},
    {"destinationPincode": "781001", "weight": False},
])
def test_invalid_requests_raise_before_pricing(tariff_record, request_):
    with pytest.raises(ValidationError):
        calculate_price(tariff_record, request_)


def test_invalid_request_is_rejected_even_with_empty_table():
    with pytest.raises(ValidationError):
        calculate_price(None, {"destinationPincode": "781001"})


@pytest.mark.parametrize("opts", [{"transportMode": "byShip"}, {"deliveryType": "express"}])
def test_unknown_reverse_options_are_rejected(tariff_record, opts):
    with pytest.raises(ValidationError):
        calculate_price(tariff_record, reverse("781001", 10, **opts))


def test_numeric_string_weight_is_accepted(tariff_record):
    assert calculate_price(tariff_record, dox("781001", "300")).price == 50


def test_bool_weight_is_not_read_as_one():
    with pytest.raises(PydanticValidationError):
        PricingRequest(destination_pincode="400001", weight=True, service_category="non-dox")


# ─── Configuration gaps price as zero ──────────────────────────────────
# Intentional: an admin-curated table with an empty cell is priced at 0,
# not an error. Changing this needs business sign-off.

def test_missing_surface_cell_prices_zero(tariff_record):
    del tariff_record["nonDoxSurfacePricing"]["restOfIndia"]
    result = calculate_price(tariff_record, non_dox("400001", 12))
    assert result.price == 0


def test_missing_reverse_section_prices_zero(tariff_record):
    del tariff_record["reversePricing"]
    result = calculate_price(tariff_record, reverse("781001", 10, transportMode="byTrain"))
    assert result.price == 0
    assert result.chargeable_weight == 100


def test_missing_add500_band_contributes_zero(tariff_record):
    del tariff_record["doxPricing"]["add500gm"]
    assert calculate_price(tariff_record, dox("781001", 1600)).price == 50


def test_empty_table_prices_zero():
    assert calculate_price({}, dox("781001", 300)).price == 0
    assert calculate_price(None, non_dox("400001", 3)).price == 0


def test_kolkata_without_its_own_column_prices_zero(tariff_record):
    result = calculate_price(tariff_record, dox("700001", 200))
    assert result.zone == "Kolkata"
    assert result.price == 0


def test_kolkata_column_is_used_when_configured(tariff_record):
    tariff_record["doxPricing"]["01gm-250gm"]["kol"] = 35
    assert calculate_price(tariff_record, dox("700001", 200)).price == 35


# ─── Purity ────────────────────────────────────────────────────────────

def test_identical_calls_give_identical_results(tariff_record):
    table = load_tariff_table(tariff_record)
    req = PricingRequest.model_validate(reverse("796001", 40, transportMode="byTrain", deliveryType="priority"))
    first = calculate_price(table, req)
    second = calculate_price(table, req)
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_full_precision_price_with_display_rounding():
    table = {"nonDoxSurfacePricing": {"restOfIndia": 33.333}}
    result = calculate_price(table, non_dox("400001", 1.5))
    assert math.isclose(result.price, 49.9995)
    assert result.display_price == round(result.price, 2)


# ─── Description ───────────────────────────────────────────────────────

def test_describe_forward_dox(tariff_record):
    req = dox("781001", 1100)
    result = calculate_price(tariff_record, req)
    assert describe_result(req, result) == "Calculated price: ₹90.00 for DOX to Assam"


def test_describe_forward_flags(tariff_record):
    req = dox("799001", 300, priority=True, byAir=True)
    result = calculate_price(tariff_record, req)
    assert result.service_label == "DOX (Priority) (By Air)"
    assert describe_result(req, result).endswith("to NorthEastAirPriority")


def test_describe_reverse_with_minimum(tariff_record):
    req = reverse("796001", 40, transportMode="byTrain", deliveryType="priority")
    result = calculate_price(tariff_record, req)
    assert describe_result(req, result) == (
        "Calculated price: ₹1500.00 for NON-DOX (byTrain) from 110001 to toNorthEast (charged for 100kg)"
    )


def test_typed_table_and_request_are_accepted(tariff_record):
    table = TariffTable.model_validate(tariff_record)
    req = PricingRequest(destination_pincode="781001", weight=300)
    assert calculate_price(table, req).price == 50
