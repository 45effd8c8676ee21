"""
Invoice charges on top of the calculated freight, per consignment:

  AWB charge      = flat settings.AWB_CHARGE
  Fuel surcharge  = plan fuel % (settings.DEFAULT_FUEL_CHARGE_PCT if unset) of freight
  CGST / SGST     = settings.CGST_PCT / settings.SGST_PCT of freight
  Grand total     = freight + AWB + fuel + CGST + SGST
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.schemas import ChargeBreakdown


def round_currency(value: float) -> float:
    """Half-up to paise: 2.675 -> 2.68."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _fuel_pct(fuel_charge_pct: Optional[float]) -> float:
    return fuel_charge_pct if fuel_charge_pct else settings.DEFAULT_FUEL_CHARGE_PCT


def build_charge_breakdown(freight: float, fuel_charge_pct: Optional[float] = None) -> ChargeBreakdown:
    if freight is None or freight < 0:
        raise ValidationError(f"Freight must be a non-negative amount, got {freight!r}")

    pct  = _fuel_pct(fuel_charge_pct)
    awb  = settings.AWB_CHARGE
    fuel = freight * pct / 100
    cgst = freight * settings.CGST_PCT / 100
    sgst = freight * settings.SGST_PCT / 100

    return ChargeBreakdown(
        freight=round_currency(freight),
        awb_charge=round_currency(awb),
        fuel_charge_pct=pct,
        fuel_surcharge=round_currency(fuel),
        cgst=round_currency(cgst),
        sgst=round_currency(sgst),
        grand_total=round_currency(freight + awb + fuel + cgst + sgst),
    )
