"""
Client offer pricing.

Order of operations is fixed:
  margin    = cost * margin% / 100
  logistics = max(distance * rate, minimum fee)
  subtotal  = cost + margin + logistics
  vat       = subtotal * vat% / 100
  total     = subtotal + vat

All arithmetic is Decimal. Subtotal and total are each rounded half-up to cents from the
unrounded value, so final_total == round((cost + margin + logistics) * 1.15). VAT is
final_total - subtotal, so subtotal + vat == total to the cent.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from marketplace.config import VAT_PERCENT, TRANSIT_KM_PER_DAY
from marketplace.errors import ValidationError

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValidationError("Missing numeric value")
    try:
        return Decimal(str(value))
    except (ArithmeticError, ValueError) as e:
        raise ValidationError(f"Not a number: {value!r}") from e


def money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    supplier_cost: Decimal
    margin_percent: Decimal
    margin_amount: Decimal
    distance_km: Decimal
    rate_per_km: Decimal
    computed_logistics: Decimal
    min_logistics_fee: Decimal
    logistics_fee: Decimal
    minimum_fee_applied: bool
    subtotal: Decimal
    vat_percent: Decimal
    vat_amount: Decimal
    final_total: Decimal


def calculate_price(
    supplier_cost,
    margin_percent,
    distance_km,
    rate_per_km,
    min_logistics_fee,
    vat_percent=VAT_PERCENT,
) -> PriceBreakdown:
    cost = to_decimal(supplier_cost)
    margin_pct = to_decimal(margin_percent)
    distance = to_decimal(distance_km)
    rate = to_decimal(rate_per_km)
    min_fee = to_decimal(min_logistics_fee)
    vat_pct = to_decimal(vat_percent)

    if cost <= 0:
        raise ValidationError("Supplier cost must be positive")
    if margin_pct < 0 or margin_pct > HUNDRED:
        raise ValidationError("Margin percent must be between 0 and 100")
    if distance < 0:
        raise ValidationError("Distance cannot be negative")
    if rate < 0:
        raise ValidationError("Rate per km cannot be negative")
    if min_fee < 0:
        raise ValidationError("Minimum logistics fee cannot be negative")
    if vat_pct < 0:
        raise ValidationError("VAT percent cannot be negative")

    margin_amount = cost * margin_pct / HUNDRED
    computed_logistics = distance * rate
    # Short routes still carry the fixed dispatch overhead
    logistics_fee = max(computed_logistics, min_fee)
    subtotal = cost + margin_amount + logistics_fee
    final_total = money(subtotal + subtotal * vat_pct / HUNDRED)
    subtotal = money(subtotal)

    return PriceBreakdown(
        supplier_cost=cost,
        margin_percent=margin_pct,
        margin_amount=money(margin_amount),
        distance_km=distance,
        rate_per_km=rate,
        computed_logistics=money(computed_logistics),
        min_logistics_fee=min_fee,
        logistics_fee=money(logistics_fee),
        minimum_fee_applied=computed_logistics < min_fee,
        subtotal=subtotal,
        vat_percent=vat_pct,
        vat_amount=final_total - subtotal,
        final_total=final_total,
    )


def estimate_delivery_days(lead_time_days: int, distance_km) -> int:
    """Supplier lead time plus road transit, at least one day on the road."""
    distance = to_decimal(distance_km)
    transit_days = max(1, math.ceil(distance / TRANSIT_KM_PER_DAY))
    return int(lead_time_days) + transit_days
