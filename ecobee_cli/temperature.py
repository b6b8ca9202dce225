"""Temperature conversion between the ecobee API and decimal degrees.

The API exchanges every temperature as an integer number of tenths of a
degree. Everything the operator types or reads, and every comparison made
by the client, uses :class:`decimal.Decimal` degrees so that values which are
exact tenths survive the round trip unchanged.
"""

from decimal import ROUND_HALF_EVEN, Decimal, DecimalException, InvalidOperation

TENTHS_PER_DEGREE = 10


class TemperatureParseError(ValueError):
    """Exception raised for temperature strings that are not numbers."""


def from_api(tenths: int) -> Decimal:
    """Convert an API temperature in tenths of a degree to degrees.

    Args:
        tenths: Temperature as reported by the API.

    Returns:
        Temperature in decimal degrees.

    """
    return Decimal(tenths) / TENTHS_PER_DEGREE


def to_api(degrees: Decimal) -> int:
    """Convert decimal degrees to the API's tenths of a degree.

    Values finer than a tenth are rounded half-to-even.

    Args:
        degrees: Temperature in decimal degrees.

    Returns:
        Temperature in integer tenths.

    Raises:
        TemperatureParseError: If degrees is too large to represent in tenths.

    """
    try:
        scaled = Decimal(degrees) * TENTHS_PER_DEGREE
        return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))
    except DecimalException as err:
        error_msg = f"Temperature out of representable range: {degrees}"
        raise TemperatureParseError(error_msg) from err


def quantize(degrees: Decimal) -> Decimal:
    """Return the degrees value that will actually be transmitted."""
    return from_api(to_api(degrees))


def parse_absolute(text: str) -> Decimal:
    """Parse an absolute temperature.

    Args:
        text: Decimal number such as "72" or "68.5".

    Returns:
        Parsed temperature in degrees.

    Raises:
        TemperatureParseError: If text is not a finite decimal number.

    """
    try:
        value = Decimal(text.strip())
    except InvalidOperation as err:
        error_msg = f"Invalid temperature: {text!r}"
        raise TemperatureParseError(error_msg) from err

    if not value.is_finite():
        error_msg = f"Invalid temperature: {text!r}"
        raise TemperatureParseError(error_msg)

    return value


def parse_relative(text: str, current: Decimal) -> Decimal:
    """Parse a temperature that may be relative to the current value.

    A leading "+" adds to the current value and a leading "-" subtracts
    from it; anything else is absolute.

    Args:
        text: Temperature string, e.g. "72", "+2" or "-0.5".
        current: Current temperature in degrees.

    Returns:
        Resolved temperature in degrees.

    Raises:
        TemperatureParseError: If the numeric part is malformed.

    """
    if text.startswith("+"):
        return current + parse_absolute(text[1:])
    if text.startswith("-"):
        return current - parse_absolute(text[1:])
    return parse_absolute(text)
