"""
Blood sufficiency: compare a required volume against in-stock inventory of one blood type.
No side effects; safe to call speculatively.
"""
import logging
from typing import Any, Dict, Iterable, Optional

from donation_engine.config import Settings, get_settings
from donation_engine.models.inventory import (
    BloodType,
    InventoryRecord,
    InventoryStatus,
    ensure_volume,
)
from donation_engine.schemas.inventory import (
    STATUS_ENOUGH,
    STATUS_INSUFFICIENT,
    InventorySummary,
    SufficiencyVerdict,
)

logger = logging.getLogger(__name__)


def compare_blood_supply(
    required_volume: Any,
    blood_type: Any,
    records: Iterable[InventoryRecord],
) -> SufficiencyVerdict:
    """
    Sum in-stock records of ``blood_type`` and compare against ``required_volume``.

    Exactly enough counts as sufficient; a zero requirement is always sufficient.

    Raises:
        InvalidInputError: negative volume or unknown blood type
    """
    required = ensure_volume(required_volume, "required_volume")
    wanted = BloodType.parse(blood_type)

    matched = tuple(
        r for r in records
        if r.blood_type == wanted and r.status == InventoryStatus.IN_STOCK
    )
    available = sum(r.volume for r in matched)
    is_sufficient = available >= required

    logger.debug(
        f"Supply check {wanted.value}: required={required} available={available} "
        f"from {len(matched)} record(s)"
    )
    return SufficiencyVerdict(
        blood_type=wanted,
        required_volume=required,
        available_volume=available,
        is_sufficient=is_sufficient,
        status=STATUS_ENOUGH if is_sufficient else STATUS_INSUFFICIENT,
        matched_records=matched,
    )


def summarize_inventory(
    records: Iterable[InventoryRecord],
    settings: Optional[Settings] = None,
) -> Dict[BloodType, InventorySummary]:
    """Per blood type totals for dashboards; every blood type is present, even with no stock."""
    settings = settings or get_settings()
    summary = {bt: InventorySummary(blood_type=bt) for bt in BloodType}

    for record in records:
        line = summary[record.blood_type]
        line.total_volume += record.volume
        if record.status == InventoryStatus.IN_STOCK:
            line.available_volume += record.volume
        elif record.status == InventoryStatus.EXPIRED:
            line.expired_volume += record.volume
        else:
            line.depleted_volume += record.volume

    for line in summary.values():
        line.low = line.available_ratio < settings.low_stock_ratio
    return summary


class BloodSufficiencyCalculator:
    def compare(
        self,
        required_volume: Any,
        blood_type: Any,
        records: Iterable[InventoryRecord],
    ) -> SufficiencyVerdict:
        return compare_blood_supply(required_volume, blood_type, records)


blood_sufficiency_calculator = BloodSufficiencyCalculator()
