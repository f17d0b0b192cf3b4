"""TLE (Two-Line Element) parsing and boundary validation.

This module provides TLE parsing using the sgp4 library, with a clean
Pythonic interface for working with orbital elements. Malformed element
sets are rejected here, before any propagation or sweep is attempted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sgp4.api import Satrec, WGS72

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


def tle_checksum(line: str) -> int:
    """Compute the modulo-10 checksum of a TLE line.

    Digits count at face value, minus signs count as 1, everything else
    counts as 0. Only the first 68 columns are summed.
    """
    total = 0
    for char in line[:68]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def _checksum_ok(line: str) -> bool:
    return line[68].isdigit() and int(line[68]) == tle_checksum(line)


@dataclass(frozen=True)
class TLE:
    """A parsed Two-Line Element set.

    Attributes:
        name: Satellite name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        bstar: BSTAR drag term.
        satrec: Underlying sgp4 Satrec object for propagation.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    bstar: float
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(
        cls,
        line1: str,
        line2: str,
        name: str = "",
        verify_checksum: bool = False,
    ) -> TLE:
        """Parse a TLE from two (or three) lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional satellite name (line 0).
            verify_checksum: Also reject lines whose column-69 checksum
                does not match.

        Returns:
            A parsed TLE object.

        Raises:
            ValueError: If the TLE lines are malformed, the catalog numbers
                of the two lines disagree, or SGP4 cannot initialise the
                element set.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != TLE_LINE_LENGTH or not line1.startswith("1"):
            logger.error("Invalid TLE line 1: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != TLE_LINE_LENGTH or not line2.startswith("2"):
            logger.error("Invalid TLE line 2: %r", line2)
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        if line1[2:7] != line2[2:7]:
            logger.error("TLE catalog number mismatch: %r vs %r", line1[2:7], line2[2:7])
            raise ValueError(
                f"TLE catalog number mismatch: line 1 has {line1[2:7].strip()!r}, "
                f"line 2 has {line2[2:7].strip()!r}"
            )

        if verify_checksum:
            for number, line in ((1, line1), (2, line2)):
                if not _checksum_ok(line):
                    logger.error("Bad checksum on TLE line %d: %r", number, line)
                    raise ValueError(f"Bad checksum on TLE line {number}: {line!r}")

        try:
            norad_id = int(line1[2:7].strip())
            year = int(line1[18:20])
            day_of_year = float(line1[20:32])
        except ValueError as exc:
            logger.error("Unreadable TLE line 1 fields: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}") from exc

        try:
            sat = Satrec.twoline2rv(line1, line2, WGS72)
        except (ValueError, IndexError) as exc:
            logger.error("sgp4 could not parse TLE for NORAD %d", norad_id)
            raise ValueError(f"Invalid TLE for NORAD {norad_id}: {exc}") from exc

        if sat.error != 0:
            logger.error("SGP4 initialisation failed for NORAD %d: error code %d", norad_id, sat.error)
            raise ValueError(
                f"SGP4 initialisation failed for NORAD {norad_id}: error code {sat.error}"
            )

        # Extract epoch
        year = year + 2000 if year < 57 else year + 1900
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=day_of_year - 1
        )

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=norad_id,
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            arg_perigee_deg=math.degrees(sat.argpo),
            mean_anomaly_deg=math.degrees(sat.mo),
            mean_motion_rev_per_day=sat.no_kozai * 1440 / (2 * math.pi),
            bstar=sat.bstar,
            satrec=sat,
        )

    def __str__(self) -> str:
        header = f"0 {self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


def parse_tle(text: str, verify_checksum: bool = False) -> list[TLE]:
    """Parse one or more TLEs from text.

    Handles both 2-line and 3-line (with name) formats. A name line may carry
    the conventional ``0 `` prefix.

    Args:
        text: Raw TLE text, one or more TLE sets separated by newlines.
        verify_checksum: Passed through to :meth:`TLE.from_lines`.

    Returns:
        A list of parsed TLE objects.

    Raises:
        ValueError: If a recognised TLE pair is malformed.
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    tles: list[TLE] = []
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            tles.append(TLE.from_lines(lines[i], lines[i + 1], verify_checksum=verify_checksum))
            i += 2
        elif (
            not lines[i].startswith("1 ")
            and not lines[i].startswith("2 ")
            and i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            name = lines[i][2:] if lines[i].startswith("0 ") else lines[i]
            tles.append(
                TLE.from_lines(lines[i + 1], lines[i + 2], name=name, verify_checksum=verify_checksum)
            )
            i += 3
        else:
            i += 1  # skip unrecognized lines

    logger.debug("Parsed %d TLEs from text", len(tles))
    return tles
