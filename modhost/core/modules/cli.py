from __future__ import annotations

"""CLI rendering helpers for pipeline reports."""

import json
from typing import List

from modhost.core.modules.models import PipelineReport


def report_lines(report: PipelineReport) -> List[str]:
    """
    Render a report as table lines.
    Columns: module_id | state | detail
    """
    lines = ["module_id | state | detail"]
    for mid in report.loaded:
        lines.append(f"{mid} | LOADED | ")
    for rem in report.removed:
        lines.append(f"{rem.module_id} | {rem.reason_code.value} | {rem.detail}")
    for sk in report.skipped_files:
        lines.append(f"{sk.path} | SKIPPED | {sk.error}")
    if report.notify_failures:
        lines.append(f"notify_failures: {', '.join(report.notify_failures)}")
    return lines


def report_json(report: PipelineReport) -> str:
    return json.dumps(report.to_dict(), indent=2, sort_keys=True)
