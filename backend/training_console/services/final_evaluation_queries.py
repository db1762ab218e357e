from __future__ import annotations

import re
from collections.abc import Iterable

from training_console.models.final_evaluation import (
    FinalEvaluationRecord,
    FinalEvaluationResult,
)

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(value: str) -> tuple[int, int]:
    match = _MONTH_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Month must be formatted as YYYY-MM: {value}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {value}")
    return year, month


def filter_records(
    records: Iterable[FinalEvaluationRecord],
    *,
    location: str | None = None,
    month: str | None = None,
) -> list[FinalEvaluationRecord]:
    selected = list(records)
    if location and location != "all":
        selected = [record for record in selected if record.plan.location == location]
    if month:
        year, month_number = parse_month(month)
        prefix = f"{year:04d}-{month_number:02d}"
        selected = [
            record for record in selected if record.plan.evaluation_date.startswith(prefix)
        ]
    return selected


def summarize(records: Iterable[FinalEvaluationRecord]) -> dict[str, int]:
    items = list(records)
    stats = {
        "total": len(items),
        "pending": sum(1 for record in items if not record.is_completed),
        "completed": sum(1 for record in items if record.is_completed),
    }
    for result in FinalEvaluationResult:
        if not result.is_terminal:
            continue
        stats[result.name.lower()] = sum(
            1 for record in items if record.is_completed and record.result is result
        )
    return stats
