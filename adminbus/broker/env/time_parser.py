import re
from datetime import timedelta


class TimeParser:
    def __init__(self) -> None:
        self._units = {
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

    def parse(self, time_amount: str):
        durations: dict[str, float] = {}
        for m in re.finditer(
            r"(?P<val>\d+(\.\d+)?)(?P<unit>[smhdw]?)",
            time_amount,
            flags=re.I,
        ):
            unit = self._units.get(
                m.group("unit").lower(),
                "seconds",
            )
            durations[unit] = durations.get(unit, 0.0) + float(m.group("val"))

        return float(
            timedelta(**durations).total_seconds()
        )
