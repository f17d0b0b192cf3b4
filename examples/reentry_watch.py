"""OrbitWatch Reentry Watch — rank very-low-orbit objects by decay urgency."""

from datetime import datetime, timezone

from orbitwatch import decay_snapshot, parse_tle
from orbitwatch.utils.constants import DECAY_DISPLAY_LIMIT

# Replace with a full catalog dump (e.g. Celestrak "active" + "last-30-days")
catalog_text = """
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
""".strip()

catalog = parse_tle(catalog_text)
at = datetime(2024, 2, 14, 14, 0, tzinfo=timezone.utc)

for record in decay_snapshot(catalog, at=at, limit=DECAY_DISPLAY_LIMIT):
    speed = f"{record.velocity_kmh:,.0f} km/h" if record.velocity_kmh is not None else "—"
    print(f"{record.status.value:<9} {record.norad_id:>6} {record.name:<20} "
          f"{record.altitude_km:7.1f} km  {speed}")
