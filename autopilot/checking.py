"""Runtime type checking shared by the autopilot package.

Telemetry streams and JSON configuration hand over ints where the flight
code annotates floats, so the numeric tower is enabled.
"""

from beartype import BeartypeConf, beartype

typechecked = beartype(conf=BeartypeConf(is_pep484_tower=True))
