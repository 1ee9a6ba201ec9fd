"""
Text reports for cutflows and fill skips.

Emitted next to histogram output so that lost events are visible.
"""

from typing import Sequence

from domain.statistics import Cutflow, FillOutcome, FillStatistics


def format_cutflow(cutflow: Cutflow) -> str:
    """
    Render a cutflow as a fixed-width text table.

    Example:
        Cutflow: preselection (1000 events)
        Filter               Passed  Cumulative  Efficiency      Errors
        trigger                 800         800      0.8000           0
    """
    width = max([len("Filter")] + [len(row.filter_name) for row in cutflow.rows])
    lines = [
        f"Cutflow: {cutflow.module} ({cutflow.total_events} events)",
        f"{'Filter':<{width}}  {'Passed':>10}  {'Cumulative':>10}  {'Efficiency':>10}  "
        f"{'Errors':>10}",
        "-" * (width + 50),
    ]
    for row in cutflow.rows:
        lines.append(
            f"{row.filter_name:<{width}}  {row.passed:>10d}  {row.cumulative:>10d}  "
            f"{row.efficiency:>10.4f}  {row.errors:>10d}"
        )
    lines.append(f"{'selected':<{width}}  {'':>10}  {cutflow.selected:>10d}")
    return "\n".join(lines) + "\n"


def format_skip_report(statistics: Sequence[FillStatistics]) -> str:
    """Render per-histogram fill outcomes as a fixed-width text table."""
    columns = [outcome.reason_code for outcome in FillOutcome]
    width = max([len("Histogram")] + [len(s.name) for s in statistics])
    header = f"{'Histogram':<{width}}  {'attempts':>10}  " + "  ".join(
        f"{c:>14}" for c in columns
    )
    lines = ["Fill report", header, "-" * len(header)]
    for stats in statistics:
        counts = dict(stats.outcomes)
        lines.append(
            f"{stats.name:<{width}}  {stats.attempts:>10d}  "
            + "  ".join(f"{counts.get(c, 0):>14d}" for c in columns)
        )
        if stats.is_paired:
            lines.append(
                f"{'':<{width}}  matched={stats.matched} unmatched={stats.unmatched}"
            )
    return "\n".join(lines) + "\n"
