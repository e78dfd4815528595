"""Tests for the unit converter."""

import pytest

from lfw_harvester.core.units import UnitConversionError, convert_unit


class TestConvertUnit:
    """Tests for convert_unit."""

    @pytest.mark.parametrize(
        "unit,expected",
        [("kg", "KGM"), ("l", "LTR"), ("stk", "C62")],
    )
    def test_known_units(self, unit: str, expected: str) -> None:
        """Test the three supported LFW units."""
        assert convert_unit(unit) == expected

    def test_unknown_unit_fails(self) -> None:
        """Test that an unknown unit raises instead of defaulting."""
        with pytest.raises(UnitConversionError) as exc_info:
            convert_unit("lb")

        assert exc_info.value.unit == "lb"
        assert "lb" in str(exc_info.value)

    def test_error_is_value_error(self) -> None:
        """Test that conversion errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            convert_unit("KG")

    def test_none_fails(self) -> None:
        """Test that a missing unit fails too."""
        with pytest.raises(UnitConversionError):
            convert_unit(None)  # type: ignore[arg-type]
