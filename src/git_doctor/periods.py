from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True)
class Period:
    label: str
    start: dt.date  # inclusive
    end: dt.date  # exclusive

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()


def parse_period(spec: str) -> Period:
    s = (spec or "").strip()
    if len(s) == 4 and s.isdigit():
        year = int(s)
        return Period(label=s, start=dt.date(year, 1, 1), end=dt.date(year + 1, 1, 1))
    if len(s) == 6 and s[:4].isdigit() and s[4:].upper() in ("H1", "H2"):
        year = int(s[:4])
        half = s[4:].upper()
        if half == "H1":
            return Period(label=f"{year}H1", start=dt.date(year, 1, 1), end=dt.date(year, 7, 1))
        return Period(label=f"{year}H2", start=dt.date(year, 7, 1), end=dt.date(year + 1, 1, 1))
    if len(s) == 6 and s[:2].upper() in ("H1", "H2") and s[2:].isdigit():
        half = s[:2].upper()
        year = int(s[2:])
        return parse_period(f"{year}{half}")
    raise ValueError(f"Invalid period: {spec!r} (expected YYYY, YYYYH1, or YYYYH2)")


def window_period(since: str, until: str = "", *, today: dt.date | None = None) -> Period:
    """Period from ISO dates; `until` is inclusive and defaults to today."""
    start = dt.date.fromisoformat(since.strip())
    if until.strip():
        last = dt.date.fromisoformat(until.strip())
    else:
        last = today if today is not None else dt.date.today()
    end = last + dt.timedelta(days=1)
    if end <= start:
        raise ValueError(f"--until ({last.isoformat()}) is before --since ({start.isoformat()})")
    return Period(label=f"{start.isoformat()}_{last.isoformat()}", start=start, end=end)


def slugify(s: str) -> str:
    s = (s or "").strip()
    out: list[str] = []
    for ch in s:
        if ch.isalnum() or ch in ("-", "_"):
            out.append(ch)
        else:
            out.append("-")
    slug = "".join(out).strip("-")
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug or "run"
