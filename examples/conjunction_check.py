"""OrbitWatch Quickstart — closest approach between two objects over a day."""

import logging
from datetime import datetime, timezone

from orbitwatch import analyze_conjunction, parse_tle

logging.basicConfig(level=logging.INFO)

tle_text = """
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
""".strip()

iss, css = parse_tle(tle_text)
start = datetime(2024, 2, 14, 14, 0, tzinfo=timezone.utc)

result = analyze_conjunction(iss, css, horizon_hours=24, start=start)

if result.indeterminate:
    print("Could not compute: no sample propagated for both objects")
else:
    print(f"Pair:      {iss.name} / {css.name}")
    print(f"Miss:      {result.min_distance_km:.3f} km")
    print(f"TCA:       {result.time_of_closest_approach.isoformat()}")
    print(f"Risk:      {result.risk_level.value}")
    print(f"Took:      {result.calculation_duration_ms:.1f} ms")
