"""
AR Aging Primitives

Aging snapshot value object, weighted DSO, collection rate and the
bucket-level collections forecast.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from money import HUNDRED, ZERO, decimal_str, multiply, percent_of, safe_divide, to_decimal

logger = logging.getLogger(__name__)

# Average days until an amount in each bucket is collected
BUCKET_DAYS_TO_COLLECT = {
    "0-30": Decimal("15"),
    "31-60": Decimal("45"),
    "61-90": Decimal("75"),
    "90+": Decimal("120"),
}

FORECAST_MONTHS = 6
DAYS_PER_MONTH = Decimal("30")


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class AgingSnapshot:
    """Receivables split into the four aging buckets"""
    current: Decimal = ZERO
    days_31_60: Decimal = ZERO
    days_61_90: Decimal = ZERO
    days_90_plus: Decimal = ZERO

    def __post_init__(self):
        for name in ("current", "days_31_60", "days_61_90", "days_90_plus"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def total(self) -> Decimal:
        return self.current + self.days_31_60 + self.days_61_90 + self.days_90_plus

    def to_mapping(self) -> Dict[str, Decimal]:
        return {
            "0-30": self.current,
            "31-60": self.days_31_60,
            "61-90": self.days_61_90,
            "90+": self.days_90_plus,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AgingSnapshot":
        """Build from the {"0-30", "31-60", "61-90", "90+"} keyed form"""
        return cls(
            current=data.get("0-30"),
            days_31_60=data.get("31-60"),
            days_61_90=data.get("61-90"),
            days_90_plus=data.get("90+"),
        )

    def to_dict(self) -> Dict[str, str]:
        return {bucket: decimal_str(value) for bucket, value in self.to_mapping().items()}


@dataclass(frozen=True)
class BucketCollectionRate:
    """Expected collection rate (percent) and days-to-collect for one bucket"""
    bucket: str
    rate: Decimal
    days_to_collect: Optional[Decimal] = None


@dataclass(frozen=True)
class ARForecastResult:
    forecasted_collection: Decimal
    collection_effectiveness: Decimal
    dso: Decimal
    monthly_breakdown: Dict[str, Decimal]

    def to_dict(self) -> Dict:
        return {
            "forecasted_collection": decimal_str(self.forecasted_collection),
            "collection_effectiveness": decimal_str(self.collection_effectiveness),
            "dso": decimal_str(self.dso),
            "monthly_breakdown": {k: decimal_str(v) for k, v in self.monthly_breakdown.items()},
        }


# =============================================================================
# METRICS
# =============================================================================

def weighted_dso(aging: AgingSnapshot, days_to_collect: Optional[Mapping[str, Decimal]] = None) -> Decimal:
    """Amount-weighted average days to collect; zero on an empty snapshot"""
    days = days_to_collect or BUCKET_DAYS_TO_COLLECT
    weighted = sum(
        (multiply(amount, days[bucket]) for bucket, amount in aging.to_mapping().items()),
        ZERO,
    )
    return safe_divide(weighted, aging.total)


def collection_rate(aging: AgingSnapshot) -> Decimal:
    """Share of AR younger than 60 days, in percent"""
    return percent_of(aging.current + aging.days_31_60, aging.total)


# =============================================================================
# COLLECTIONS FORECAST
# =============================================================================

def _coerce_rate(item: Any) -> BucketCollectionRate:
    if isinstance(item, BucketCollectionRate):
        return item
    days = item.get("days_to_collect")
    return BucketCollectionRate(
        bucket=item["bucket"],
        rate=to_decimal(item.get("rate")),
        days_to_collect=to_decimal(days) if days is not None else None,
    )


def forecast_ar_collections(aging: AgingSnapshot, collection_rates: Iterable[Any]) -> ARForecastResult:
    """
    Forecast collections from aging and per-bucket collection rates.

    Buckets without a rate collect nothing; buckets without days-to-collect use
    BUCKET_DAYS_TO_COLLECT. The monthly breakdown spreads the total linearly
    over ceil(dso / 30) months.
    """
    total_ar = aging.total
    if total_ar == 0:
        return ARForecastResult(ZERO, ZERO, ZERO, {})

    rates = {r.bucket: r for r in (_coerce_rate(item) for item in collection_rates)}

    total_collections = ZERO
    days: Dict[str, Decimal] = {}
    for bucket, amount in aging.to_mapping().items():
        rate = rates.get(bucket)
        if rate is not None:
            total_collections += multiply(amount, rate.rate) / HUNDRED
        if rate is not None and rate.days_to_collect:
            days[bucket] = rate.days_to_collect
        else:
            days[bucket] = BUCKET_DAYS_TO_COLLECT[bucket]

    effectiveness = percent_of(total_collections, total_ar)
    dso = weighted_dso(aging, days)

    months_to_collect = safe_divide(dso, DAYS_PER_MONTH).to_integral_value(rounding=ROUND_CEILING)
    monthly_rate = safe_divide(total_collections, months_to_collect)
    monthly_breakdown = {f"month_{i + 1}": monthly_rate for i in range(FORECAST_MONTHS)}

    logger.debug(f"AR forecast: total_ar={total_ar} collections={total_collections} dso={dso}")

    return ARForecastResult(
        forecasted_collection=total_collections,
        collection_effectiveness=effectiveness,
        dso=dso,
        monthly_breakdown=monthly_breakdown,
    )
