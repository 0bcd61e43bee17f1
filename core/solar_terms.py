"""
The 24 solar terms and the analysis date they select.
Offsets are minutes after the Minor Cold term of the tropical year.
"""

from datetime import datetime, date, timedelta
from enum import Enum
from typing import Optional, Union

import pytz

# Length of the tropical year used by the term table
TROPICAL_YEAR_MS = 31556925974.7
# Minor Cold, 1900
TERM_EPOCH = pytz.UTC.localize(datetime(1900, 1, 6, 2, 5))


class SolarTerm(Enum):
    """Solar term with its offset in minutes."""

    MINOR_COLD = 0
    MAJOR_COLD = 21208
    START_OF_SPRING = 42467
    RAIN_WATER = 63836
    AWAKENING_OF_INSECTS = 85337
    SPRING_EQUINOX = 107014
    PURE_BRIGHTNESS = 128867
    GRAIN_RAIN = 150921
    START_OF_SUMMER = 173149
    GRAIN_BUDS = 195551
    GRAIN_IN_EAR = 218072
    SUMMER_SOLSTICE = 240693
    MINOR_HEAT = 263343
    MAJOR_HEAT = 285989
    START_OF_AUTUMN = 308563
    END_OF_HEAT = 331033
    WHITE_DEW = 353350
    AUTUMN_EQUINOX = 375494
    COLD_DEW = 397447
    FROST_DESCENT = 419210
    START_OF_WINTER = 440795
    MINOR_SNOW = 462224
    MAJOR_SNOW = 483532
    WINTER_SOLSTICE = 504758

    @property
    def offset_minutes(self) -> int:
        return self.value


def parse_solar_term(term: Union[str, int, 'SolarTerm', None]) -> Optional[SolarTerm]:
    """
    Resolve a solar term from config input.

    Args:
        term: Enum member, member name (case-insensitive, e.g. 'winter_solstice')
              or raw minute offset

    Returns:
        SolarTerm or None if term is None

    Raises:
        ValueError: If the term is unknown
    """
    if term is None or isinstance(term, SolarTerm):
        return term
    if isinstance(term, int):
        return SolarTerm(term)
    key = str(term).strip().upper().replace(' ', '_').replace('-', '_')
    try:
        return SolarTerm[key]
    except KeyError:
        raise ValueError(f"Unknown solar term: {term}") from None


def solar_term_instant(offset_minutes: float, year: int) -> datetime:
    """UTC instant of a solar term in the given year."""
    milliseconds = TROPICAL_YEAR_MS * (year - 1900) + offset_minutes * 60000
    return TERM_EPOCH + timedelta(milliseconds=milliseconds)


def solar_term_date(
    term: Union[SolarTerm, float],
    year: Optional[int] = None,
    timezone: str = "Asia/Shanghai"
) -> date:
    """
    Local calendar date on which a solar term falls.

    Args:
        term: SolarTerm or minute offset
        year: Calendar year (default: current year)
        timezone: Timezone used to read the calendar date

    Returns:
        Local date of the term
    """
    offset = term.offset_minutes if isinstance(term, SolarTerm) else float(term)
    if year is None:
        year = date.today().year
    instant = solar_term_instant(offset, year)
    return instant.astimezone(pytz.timezone(timezone)).date()
