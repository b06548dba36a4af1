"""
Text Summary

Plain-text rendering of a DecisionRecord, written to latest-summary.txt
and printed by the CLI.
"""
from __future__ import annotations

from ..models import DecisionRecord

RULE = "=" * 60


def _plural(name: str, count: int) -> str:
    return name if count == 1 else f"{name}s"


def render_summary(record: DecisionRecord) -> str:
    q = record.qualified
    lines = [
        f"Role Update Summary - {record.run_at.strftime('%Y-%m-%d %H:%M UTC')}",
        RULE,
    ]
    if record.period:
        lines.append(f"Period: {record.period}")
    if record.dry_run:
        lines.append("DRY RUN - no roles changed, grace state not saved")
    lines += [
        f"Threshold: {q.threshold} mentions",
        "",
        f"TOP {record.top_n} REGULAR MEMBERS:",
    ]
    lines += [
        f"  {rank}. {r.display_name} - {r.mention_count} mentions"
        for rank, r in enumerate(q.qualified_regular, start=1)
    ] or ["  None"]
    lines.append("")

    if q.qualified_special:
        lines.append(f"QUALIFIED SPECIAL ROLE MEMBERS ({len(q.qualified_special)}):")
        lines += [f"  * {r.display_name} - {r.mention_count} mentions" for r in q.qualified_special]
        lines.append("")

    if q.qualified_protected:
        lines.append(f"PROTECTED MEMBERS ({len(q.qualified_protected)}):")
        lines += [f"  * {r.display_name} - {r.mention_count} mentions" for r in q.qualified_protected]
        lines.append("")

    lines.append(f"ROLES ADDED ({len(record.added)}):")
    lines += [f"  + {r.display_name} ({r.mention_count} mentions)" for r in record.added] or ["  None"]
    lines.append("")

    lines.append(f"ROLES REMOVED ({len(record.removed)}):")
    lines += [f"  - {r.display_name} ({r.reason.value})" for r in record.removed] or ["  None"]
    lines.append("")

    if record.grace_periods > 0 and record.grace_active:
        unit = _plural(record.period_name, record.grace_periods)
        lines.append(f"USERS IN GRACE PERIOD ({len(record.grace_active)}):")
        lines += [
            f"  ~ {g.display_name} ({g.weeks_out}/{record.grace_periods} {unit}, "
            f"{g.weeks_remaining} remaining)"
            for g in record.grace_active
        ]
        lines.append("")

    if record.protected_skipped:
        lines.append(f"PROTECTED, NOT REVIEWED ({len(record.protected_skipped)}):")
        lines += [f"  = {s.display_name}" for s in record.protected_skipped]
        lines.append("")

    if record.mutation_failures:
        lines.append(f"FAILED ROLE CHANGES ({len(record.mutation_failures)}):")
        lines += [f"  ! {f.action} {f.user_id}: {f.error}" for f in record.mutation_failures]
        lines.append("")

    lines.append(f"TOTAL WITH HIERARCH: {record.total_holding}")
    return "\n".join(lines)
