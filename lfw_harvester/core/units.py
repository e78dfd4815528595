"""Conversion of LFW units of measurement to UN/CEFACT common codes."""

# LFW unit -> UN/CEFACT code as used by the webshop
CEFACT_UNITS: dict[str, str] = {
    "kg": "KGM",
    "l": "LTR",
    "stk": "C62",
}


class UnitConversionError(ValueError):
    """Raised when an LFW unit has no known UN/CEFACT counterpart."""

    def __init__(self, unit: str) -> None:
        self.unit = unit
        super().__init__(f"Could not translate unit {unit!r}")


def convert_unit(unit: str) -> str:
    """
    Convert an LFW unit to a UN/CEFACT code.

    Args:
        unit: LFW unit code ("kg", "l" or "stk").

    Returns:
        The UN/CEFACT code.

    Raises:
        UnitConversionError: If the unit is not one of the supported codes.
    """
    try:
        return CEFACT_UNITS[unit]
    except (KeyError, TypeError):
        raise UnitConversionError(unit) from None
