"""
Sun position calculator and solar direction sampler.
Produces the per-minute sun directions used by the sunlight occlusion analysis.
"""

import math
import logging
from datetime import datetime, date, time, timedelta
from typing import Tuple, Optional, List, Iterator, Union

import numpy as np
import pytz
from astral import LocationInfo
from astral.sun import sun, azimuth as astral_azimuth, elevation as astral_elevation

from models.calculation_result import SolarSample
from utils.config_loader import get_config_value
from utils.geometry_utils import spherical_to_cartesian, normalize_vector
from .solar_terms import SolarTerm, parse_solar_term, solar_term_date

logger = logging.getLogger(__name__)

DEFAULT_LATITUDE = 23.1291
DEFAULT_LONGITUDE = 113.2644
DEFAULT_TIMEZONE = "Asia/Shanghai"
# Only the direction matters, the radius is normalized away
SUN_SPHERE_RADIUS = 200.0


class SunPositionCalculator:
    """
    Calculates sun position (azimuth and elevation) for a given location and time.
    """

    def __init__(self, latitude: float, longitude: float, timezone: str = DEFAULT_TIMEZONE):
        """
        Initialize sun position calculator.

        Args:
            latitude: Latitude in decimal degrees (positive for North)
            longitude: Longitude in decimal degrees (positive for East)
            timezone: Timezone name (e.g., "Asia/Shanghai")
        """
        if not -90.0 <= latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {latitude}")
        if not -180.0 <= longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {longitude}")

        self.latitude = latitude
        self.longitude = longitude
        self.tz = pytz.timezone(timezone)
        self.location = LocationInfo(
            name="Site",
            region="",
            timezone=timezone,
            latitude=latitude,
            longitude=longitude
        )

    def localize(self, dt: datetime) -> datetime:
        """Attach the calculator timezone to naive datetimes, convert aware ones."""
        if dt.tzinfo is None:
            return self.tz.localize(dt)
        return dt.astimezone(self.tz)

    def get_sun_position(self, dt: datetime) -> Tuple[float, float]:
        """
        Calculate sun azimuth and elevation for a given datetime.

        Args:
            dt: Datetime object (naive values are taken as local time)

        Returns:
            Tuple of (azimuth_degrees, elevation_degrees)
            - Azimuth: 0° = North, 90° = East, 180° = South, 270° = West
            - Elevation: 0° = horizon, 90° = zenith
        """
        dt = self.localize(dt)
        azimuth_degrees = astral_azimuth(self.location.observer, dt)
        elevation_degrees = astral_elevation(self.location.observer, dt, with_refraction=False)
        return azimuth_degrees, elevation_degrees

    def get_sun_direction(self, dt: datetime) -> np.ndarray:
        """
        Unit vector pointing from the scene origin toward the sun.

        Args:
            dt: Datetime object

        Returns:
            Direction (x, y, z) in the y-up scene frame
        """
        azimuth_degrees, elevation_degrees = self.get_sun_position(dt)
        return direction_from_angles(azimuth_degrees, elevation_degrees)

    def get_sunrise_sunset(self, date_obj: date) -> Tuple[datetime, datetime]:
        """
        Get sunrise and sunset times for a given date.

        Args:
            date_obj: Date object

        Returns:
            Tuple of (sunrise, sunset) datetime objects
        """
        s = sun(self.location.observer, date=date_obj, tzinfo=self.tz)
        return s['sunrise'], s['sunset']

    def get_daylight_hours(self, date_obj: date) -> float:
        """
        Calculate total daylight hours for a given date.

        Args:
            date_obj: Date object

        Returns:
            Daylight hours as float
        """
        sunrise, sunset = self.get_sunrise_sunset(date_obj)
        delta = sunset - sunrise
        return delta.total_seconds() / 3600.0


def direction_from_angles(azimuth_degrees: float, elevation_degrees: float) -> np.ndarray:
    """
    Convert sun azimuth/elevation to a unit direction in the scene frame.

    Azimuth is re-expressed from South, positive toward West, and used
    negated as the longitude angle; the zenith angle is the polar angle.

    Args:
        azimuth_degrees: Azimuth, 0 = North, clockwise
        elevation_degrees: Elevation above the horizon

    Returns:
        Direction (x, y, z) in the y-up scene frame
    """
    altitude = math.radians(elevation_degrees)
    south_azimuth = math.radians(azimuth_degrees - 180.0)
    direction = spherical_to_cartesian(SUN_SPHERE_RADIUS, math.pi / 2 - altitude, -south_azimuth)
    return normalize_vector(direction)


def _parse_clock(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    hours, _, minutes = str(value).partition(':')
    return time(int(hours), int(minutes or 0))


class SolarDirectionSampler:
    """
    Fixed-cadence sequence of sun directions over a daylight window.

    The sequence is finite and restartable: every iteration recomputes the
    same samples from the inputs, nothing is cached between samples.
    """

    def __init__(
        self,
        latitude: float = DEFAULT_LATITUDE,
        longitude: float = DEFAULT_LONGITUDE,
        timezone: str = DEFAULT_TIMEZONE,
        calculation_date: Optional[date] = None,
        solar_term: Union[SolarTerm, str, int, None] = None,
        year: Optional[int] = None,
        start_time: Union[str, time] = "08:00",
        end_time: Union[str, time] = "16:00",
        step_minutes: int = 1
    ):
        """
        Initialize solar direction sampler.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees
            timezone: Timezone of the sampling window
            calculation_date: Explicit analysis date (takes precedence over solar_term)
            solar_term: Solar term selecting the analysis date (default: Minor Cold)
            year: Year for the solar term (default: current year)
            start_time: Window start, local clock time
            end_time: Window end (exclusive), local clock time
            step_minutes: Sampling cadence in minutes
        """
        self.sun_calculator = SunPositionCalculator(latitude, longitude, timezone)
        self.start_time = _parse_clock(start_time)
        self.end_time = _parse_clock(end_time)
        if step_minutes < 1:
            raise ValueError(f"Sampling step must be at least 1 minute, got {step_minutes}")
        if self.start_time >= self.end_time:
            raise ValueError(f"Sampling window start {self.start_time} is not before end {self.end_time}")
        self.step = timedelta(minutes=step_minutes)

        if calculation_date is not None:
            self.calculation_date = calculation_date
            self.solar_term = None
        else:
            self.solar_term = parse_solar_term(solar_term) or SolarTerm.MINOR_COLD
            self.calculation_date = solar_term_date(self.solar_term, year, timezone)

    @classmethod
    def from_config(cls, config: dict) -> 'SolarDirectionSampler':
        """Build a sampler from the 'location' and 'solar' config sections."""
        calculation_date = get_config_value(config, 'solar.date')
        if isinstance(calculation_date, str):
            calculation_date = date.fromisoformat(calculation_date)
        return cls(
            latitude=get_config_value(config, 'location.latitude', DEFAULT_LATITUDE),
            longitude=get_config_value(config, 'location.longitude', DEFAULT_LONGITUDE),
            timezone=get_config_value(config, 'location.timezone', DEFAULT_TIMEZONE),
            calculation_date=calculation_date,
            solar_term=get_config_value(config, 'solar.term'),
            year=get_config_value(config, 'solar.year'),
            start_time=str(get_config_value(config, 'solar.start_time', '08:00')),
            end_time=str(get_config_value(config, 'solar.end_time', '16:00')),
            step_minutes=int(get_config_value(config, 'solar.step_minutes', 1))
        )

    @property
    def step_minutes(self) -> int:
        return int(self.step.total_seconds() // 60)

    def timestamps(self) -> List[datetime]:
        """Local sampling instants across the window."""
        start = datetime.combine(self.calculation_date, self.start_time)
        end = datetime.combine(self.calculation_date, self.end_time)
        result = []
        current = start
        while current < end:
            result.append(self.sun_calculator.localize(current))
            current += self.step
        return result

    def __len__(self) -> int:
        start = datetime.combine(self.calculation_date, self.start_time)
        end = datetime.combine(self.calculation_date, self.end_time)
        return math.ceil((end - start) / self.step)

    def __iter__(self) -> Iterator[SolarSample]:
        for dt in self.timestamps():
            azimuth, elevation = self.sun_calculator.get_sun_position(dt)
            direction = direction_from_angles(azimuth, elevation)
            yield SolarSample(
                timestamp=dt,
                direction=tuple(float(c) for c in direction),
                azimuth=azimuth,
                elevation=elevation
            )

    def samples(self) -> List[SolarSample]:
        """Materialize the full sample sequence."""
        samples = list(self)
        logger.info(
            f"Generated {len(samples)} solar sample(s) for {self.calculation_date} "
            f"({self.start_time:%H:%M}-{self.end_time:%H:%M}, step {self.step_minutes} min)"
        )
        return samples
