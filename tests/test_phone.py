"""Tests for phone normalization."""

import pytest

from crm.errors import InvalidInput, InvalidPhoneNumber
from crm.utils.phone import normalize_phone, phone_region, require_phone


class TestNormalizePhone:
    """Tests for normalize_phone()."""

    def test_missing_plus_is_prepended(self):
        assert normalize_phone("491234567890") == normalize_phone("+491234567890")

    def test_canonical_form_is_international(self):
        assert normalize_phone("491234567890").startswith("+49")

    def test_formatting_variants_collapse(self):
        assert normalize_phone("+1 (650) 253-0000") == normalize_phone("16502530000") == "+1 650-253-0000"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_means_no_phone(self, value):
        assert normalize_phone(value) is None

    def test_unparseable_raises(self):
        with pytest.raises(InvalidPhoneNumber):
            normalize_phone("not a phone")

    def test_invalid_phone_is_an_input_error(self):
        with pytest.raises(InvalidInput):
            normalize_phone("abc")


class TestPhoneRegion:
    """Tests for phone_region()."""

    def test_region_of_us_number(self):
        assert phone_region("+1 650-253-0000") == "US"

    def test_region_of_german_number(self):
        assert phone_region("+491701234567") == "DE"

    def test_unparseable_has_no_region(self):
        assert phone_region("not a phone") is None
        assert phone_region(None) is None


class TestRequirePhone:
    """Tests for require_phone()."""

    def test_returns_canonical_form(self):
        assert require_phone("16502530000") == "+1 650-253-0000"

    def test_empty_is_rejected(self):
        with pytest.raises(InvalidPhoneNumber):
            require_phone("")
