from datetime import datetime
from enum import Enum
from typing import Optional, Any, Dict, Union
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


class PostalZone(str, Enum):
    ASSAM = "Assam"
    KOLKATA = "Kolkata"
    NORTH_EAST_SURFACE = "NorthEastSurface"
    NORTH_EAST_AIR_PRIORITY = "NorthEastAirPriority"
    REST_OF_INDIA = "RestOfIndia"


class Corridor(str, Enum):
    TO_ASSAM = "toAssam"
    TO_NORTH_EAST = "toNorthEast"


# ─── Tariff table ──────────────────────────────────────────────────────
# Field aliases are the keys used by the stored pricing-plan record.
# Every price is optional; a missing cell is priced at zero by services.tariff.

Price = Optional[float]


class _TariffModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class ZoneRates(_TariffModel):
    assam: Price = Field(None, ge=0)
    ne_by_surface: Price = Field(None, ge=0, alias="neBySurface")
    ne_by_air_agt_imp: Price = Field(None, ge=0, alias="neByAirAgtImp")
    rest_of_india: Price = Field(None, ge=0, alias="restOfIndia")
    kolkata: Price = Field(None, ge=0, alias="kol")


class DoxPricing(_TariffModel):
    upto_250gm: ZoneRates = Field(default_factory=ZoneRates, alias="01gm-250gm")
    upto_500gm: ZoneRates = Field(default_factory=ZoneRates, alias="251gm-500gm")
    add_500gm: ZoneRates = Field(default_factory=ZoneRates, alias="add500gm")


class PriorityPricing(_TariffModel):
    upto_500gm: ZoneRates = Field(default_factory=ZoneRates, alias="01gm-500gm")
    add_500gm: ZoneRates = Field(default_factory=ZoneRates, alias="add500gm")


class DeliveryRates(_TariffModel):
    normal: Price = Field(None, ge=0)
    priority: Price = Field(None, ge=0)


class ModeRates(_TariffModel):
    by_road: DeliveryRates = Field(default_factory=DeliveryRates, alias="byRoad")
    by_train: DeliveryRates = Field(default_factory=DeliveryRates, alias="byTrain")
    by_flight: DeliveryRates = Field(default_factory=DeliveryRates, alias="byFlight")


class ReversePricing(_TariffModel):
    to_assam: ModeRates = Field(default_factory=ModeRates, alias="toAssam")
    to_north_east: ModeRates = Field(default_factory=ModeRates, alias="toNorthEast")


class TariffTable(_TariffModel):
    name: Optional[str] = None
    version: Optional[str] = None
    dox_pricing: DoxPricing = Field(default_factory=DoxPricing, alias="doxPricing")
    non_dox_surface_pricing: ZoneRates = Field(default_factory=ZoneRates, alias="nonDoxSurfacePricing")
    non_dox_air_pricing: ZoneRates = Field(default_factory=ZoneRates, alias="nonDoxAirPricing")
    priority_pricing: PriorityPricing = Field(default_factory=PriorityPricing, alias="priorityPricing")
    reverse_pricing: ReversePricing = Field(default_factory=ReversePricing, alias="reversePricing")


# ─── Calculation ───────────────────────────────────────────────────────

class PricingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    origin_pincode: Optional[str] = Field(None, alias="originPincode")
    destination_pincode: Optional[str] = Field(None, alias="destinationPincode")
    # number or numeric string, never bool; checked by the rate engine
    weight: Optional[Union[StrictFloat, StrictInt, str]] = None
    service_category: str = Field("dox", alias="serviceCategory")
    by_air: bool = Field(False, alias="byAir")
    priority: bool = False
    transport_mode: Optional[str] = Field(None, alias="transportMode")
    delivery_type: Optional[str] = Field(None, alias="deliveryType")


class PricingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    zone: str
    chargeable_weight: float
    minimum_weight_applied: bool = False
    mode: str = "forward"
    weight_unit: str = "kg"
    service_label: str = ""

    @property
    def display_price(self) -> float:
        return round(self.price, 2)


class ChargeBreakdown(BaseModel):
    freight: float
    awb_charge: float
    fuel_charge_pct: float
    fuel_surcharge: float
    cgst: float
    sgst: float
    grand_total: float


# ─── API payloads ──────────────────────────────────────────────────────

class CalculateIn(BaseModel):
    request: PricingRequest
    tariff: Optional[Dict[str, Any]] = None
    plan_id: Optional[int] = None
    corporate_id: Optional[str] = None
    include_charges: bool = False


class CalculateOut(BaseModel):
    price: float
    display_price: float
    zone: str
    chargeable_weight: float
    minimum_weight_applied: bool
    mode: str
    weight_unit: str
    service_label: str
    description: str
    plan_id: Optional[int] = None
    charges: Optional[ChargeBreakdown] = None


class ZoneOut(BaseModel):
    pincode: str
    is_air_route: bool
    zone: PostalZone
    is_assam: bool
    is_north_east: bool


class PricingPlanIn(BaseModel):
    corporate_id: str
    name: str
    tariff: Dict[str, Any]
    fuel_charge_pct: Optional[float] = Field(None, ge=0)


class PlanStatusUpdate(BaseModel):
    status: str


class PricingPlanOut(BaseModel):
    id: int
    corporate_id: str
    name: str
    status: str
    tariff: Optional[dict] = None
    fuel_charge_pct: Optional[float] = None
    created_at: datetime
    approved_at: Optional[datetime] = None

    class Config:
        from_attributes = True
