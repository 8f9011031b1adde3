"""Unit tests for the blood supply comparison and inventory summary."""
import math

import pytest

from donation_engine.config import Settings
from donation_engine.exceptions import InvalidInputError
from donation_engine.models import BloodType, InventoryRecord, InventoryStatus
from donation_engine.schemas import STATUS_ENOUGH, STATUS_INSUFFICIENT
from donation_engine.services import (
    blood_sufficiency_calculator,
    compare_blood_supply,
    summarize_inventory,
)


def test_expired_stock_does_not_count():
    records = [
        InventoryRecord(record_id=1, blood_type="O-", volume=300, status="Còn hạn"),
        InventoryRecord(record_id=2, blood_type="O-", volume=300, status="Hết hạn"),
    ]
    verdict = compare_blood_supply(500, "O-", records)
    assert verdict.available_volume == 300
    assert verdict.is_sufficient is False
    assert verdict.status == STATUS_INSUFFICIENT
    assert verdict.shortfall == 200
    assert verdict.coverage_percent == pytest.approx(60.0)
    assert [r.record_id for r in verdict.matched_records] == [1]


def test_other_blood_types_ignored(inventory_records):
    verdict = compare_blood_supply(450, "A-", inventory_records)
    assert verdict.available_volume == 0
    assert not verdict.is_sufficient


def test_sums_matching_in_stock_records(inventory_records):
    verdict = compare_blood_supply(500, BloodType.O_NEG, inventory_records)
    assert verdict.available_volume == 600
    assert verdict.is_sufficient
    assert verdict.status == STATUS_ENOUGH
    assert verdict.shortfall == 0
    assert verdict.coverage_percent == 100.0


def test_exactly_enough_is_sufficient(inventory_records):
    assert compare_blood_supply(600, "O-", inventory_records).is_sufficient
    assert not compare_blood_supply(600.5, "O-", inventory_records).is_sufficient


def test_zero_requirement_always_sufficient():
    verdict = compare_blood_supply(0, "AB+", [])
    assert verdict.is_sufficient
    assert verdict.coverage_percent == 100.0


def test_depleted_stock_does_not_count():
    records = [InventoryRecord(blood_type="B+", volume=250, status="Đã sử dụng")]
    verdict = compare_blood_supply(100, "B+", records)
    assert verdict.available_volume == 0


def test_legacy_blood_type_ids(inventory_records):
    verdict = compare_blood_supply("250", "8", inventory_records)
    assert verdict.blood_type == BloodType.O_NEG
    assert verdict.required_volume == 250.0


@pytest.mark.parametrize("volume", [-1, "abc", None, math.nan, True])
def test_invalid_required_volume(volume, inventory_records):
    with pytest.raises(InvalidInputError):
        compare_blood_supply(volume, "O-", inventory_records)


@pytest.mark.parametrize("blood_type", ["C+", "9", "", None])
def test_unknown_blood_type(blood_type, inventory_records):
    with pytest.raises(InvalidInputError):
        compare_blood_supply(100, blood_type, inventory_records)


def test_invalid_records_rejected_at_construction():
    with pytest.raises(InvalidInputError):
        InventoryRecord(blood_type="O-", volume=-50)
    with pytest.raises(InvalidInputError):
        InventoryRecord(blood_type="O-", volume=50, status="không rõ")


def test_calculator_delegates(inventory_records):
    assert blood_sufficiency_calculator.compare(100, "A+", inventory_records).available_volume == 450


def test_summarize_inventory(inventory_records, settings):
    summary = summarize_inventory(inventory_records, settings)
    assert set(summary) == set(BloodType)

    o_neg = summary[BloodType.O_NEG]
    assert o_neg.total_volume == 1050
    assert o_neg.available_volume == 600
    assert o_neg.expired_volume == 450
    assert o_neg.low is False

    assert summary[BloodType.A_POS].available_ratio == 1.0
    # nothing on hand at all is low
    assert summary[BloodType.AB_NEG].low is True


def test_summarize_inventory_low_threshold():
    records = [
        InventoryRecord(blood_type="B-", volume=100, status=InventoryStatus.IN_STOCK),
        InventoryRecord(blood_type="B-", volume=400, status=InventoryStatus.EXPIRED),
    ]
    strict = summarize_inventory(records, Settings(_env_file=None, low_stock_ratio=0.25))
    lenient = summarize_inventory(records, Settings(_env_file=None, low_stock_ratio=0.1))
    assert strict[BloodType.B_NEG].low is True
    assert lenient[BloodType.B_NEG].low is False
