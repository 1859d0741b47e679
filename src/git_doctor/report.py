from __future__ import annotations

import datetime as dt
from pathlib import Path

from .models import CheckResult

COMPLETION_MARKER = "Validation complete."


class Report:
    """Append-only sequence of check results for one run."""

    def __init__(self, log_file: Path | None = None, *, echo: bool = False) -> None:
        self.results: list[CheckResult] = []
        self.log_file = log_file
        self.echo = echo

    def add(self, message: str, success: bool, *, indent: int = 0, detail: str | None = None) -> CheckResult:
        result = CheckResult(message=message, success=success, indent=indent, detail=detail or None)
        self.results.append(result)
        if self.echo:
            print(render_result(result))
        if not success and self.log_file is not None:
            append_failure_log(self.log_file, result)
        return result

    def ok(self, message: str, *, indent: int = 0, detail: str | None = None) -> CheckResult:
        return self.add(message, True, indent=indent, detail=detail)

    def fail(self, message: str, *, indent: int = 0, detail: str | None = None) -> CheckResult:
        return self.add(message, False, indent=indent, detail=detail)

    def heading(self, title: str) -> None:
        if self.echo:
            print("")
            print(f"== {title} ==")

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.success]

    @property
    def passed(self) -> bool:
        return not self.failures


def render_result(result: CheckResult) -> str:
    pad = "  " * max(0, result.indent)
    tag = "[ OK ]" if result.success else "[FAIL]"
    lines = [f"{pad}{tag} {result.message}"]
    if result.detail:
        for line in result.detail.splitlines():
            lines.append(f"{pad}       {line}")
    return "\n".join(lines)


def render_report(report: Report) -> str:
    out = [render_result(r) for r in report.results]
    out.append("")
    out.append(summary_line(report))
    return "\n".join(out)


def summary_line(report: Report) -> str:
    failed = len(report.failures)
    return f"{COMPLETION_MARKER} {len(report.results) - failed} passed, {failed} failed."


def append_failure_log(path: Path, result: CheckResult) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    ts = dt.datetime.now(tz=dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{ts} FAIL {result.message}\n")
        if result.detail:
            for line in result.detail.splitlines():
                f.write(f"    {line}\n")
