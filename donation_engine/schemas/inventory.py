from pydantic import BaseModel, ConfigDict

from donation_engine.models.inventory import BloodType, InventoryRecord

STATUS_ENOUGH = "enough"
STATUS_INSUFFICIENT = "insufficient"


class SufficiencyVerdict(BaseModel):
    """Computed comparison of a required volume against in-stock inventory. Never stored."""

    model_config = ConfigDict(frozen=True)

    blood_type: BloodType
    required_volume: float
    available_volume: float
    is_sufficient: bool
    status: str  # display label only; is_sufficient is authoritative
    matched_records: tuple[InventoryRecord, ...] = ()

    @property
    def shortfall(self) -> float:
        return max(0.0, self.required_volume - self.available_volume)

    @property
    def coverage_percent(self) -> float:
        if self.required_volume <= 0:
            return 100.0
        return min(100.0, self.available_volume / self.required_volume * 100)


class InventorySummary(BaseModel):
    blood_type: BloodType
    total_volume: float = 0.0
    available_volume: float = 0.0
    expired_volume: float = 0.0
    depleted_volume: float = 0.0
    low: bool = False

    @property
    def available_ratio(self) -> float:
        if self.total_volume <= 0:
            return 0.0
        return self.available_volume / self.total_volume
