"""Unit tests for the retailer profile: GSTIN handling and snapshots."""

from __future__ import annotations

import pytest
from django.core.exceptions import ValidationError

from modules.customers.models import Customer

pytestmark = pytest.mark.unit


def _profile(**overrides) -> Customer:
    fields = {
        "name": "Ramesh Patil",
        "email": "krishi@example.com",
        "phone": "9876543210",
        "business_name": "Krishi Seva Kendra",
        "gstin": "27ABCDE1234F1Z5",
    }
    fields.update(overrides)
    return Customer(**fields)


class TestGstin:
    def test_valid_gstin_passes(self):
        profile = _profile()
        profile.clean()
        assert profile.gstin == "27ABCDE1234F1Z5"

    def test_gstin_is_normalized(self):
        profile = _profile(gstin=" 27abcde1234f1z5 ")
        profile.clean()
        assert profile.gstin == "27ABCDE1234F1Z5"

    def test_gstin_is_optional(self):
        profile = _profile(gstin="")
        profile.clean()
        assert profile.gstin == ""

    @pytest.mark.parametrize(
        "gstin",
        [
            "27ABCDE1234F1Y5",  # 14th character must be Z
            "2ABCDE1234F1Z5",  # too short
            "27ABCD11234F1Z5",  # PAN letters
            "27ABCDE1234F0Z5",  # entity code cannot be 0
        ],
    )
    def test_invalid_gstin(self, gstin):
        with pytest.raises(ValidationError) as exc_info:
            _profile(gstin=gstin).clean()
        assert "gstin" in exc_info.value.message_dict


class TestSnapshot:
    def test_snapshot_fields(self):
        assert _profile().to_snapshot() == {
            "name": "Ramesh Patil",
            "email": "krishi@example.com",
            "phone": "9876543210",
            "business_name": "Krishi Seva Kendra",
            "gstin": "27ABCDE1234F1Z5",
        }

    def test_str_masks_gstin(self):
        assert str(_profile()) == "Krishi Seva Kendra (GSTIN: ***F1Z5)"

    def test_str_without_gstin(self):
        assert str(_profile(gstin="", business_name="")) == "Ramesh Patil"
