"""
Channel Announcement

The markdown post that summarises a run in the community's summary
channel. Users are referenced as <@id> mentions.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..collaborators import SummaryPublisher
from ..models import DecisionRecord

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 1900


def _mention_list(user_ids: Iterable[str]) -> str:
    return "\n".join(f"- <@{uid}>" for uid in user_ids)


def render_announcement(record: DecisionRecord) -> str:
    q = record.qualified
    parts = [
        "# Summary of Attendance",
        f"Based on people mentioned in tracked channels over the last {record.window_days} days",
        f"## Top {record.top_n} Members",
        _mention_list(r.user_id for r in q.qualified_regular) or "- None",
    ]

    others = q.qualified_protected + q.qualified_special
    if others:
        parts += [
            f"## Top {record.top_n} With Special Roles",
            _mention_list(r.user_id for r in others),
        ]

    parts.append("# Hierarch Role Changes Update")
    if record.added:
        parts += ["## Role Added", _mention_list(r.user_id for r in record.added)]
    if record.removed:
        parts += [
            "## Role Removed",
            "\n".join(f"- <@{r.user_id}> ({r.reason.value})" for r in record.removed),
        ]
    if record.grace_active:
        unit = record.period_name if record.grace_periods == 1 else f"{record.period_name}s"
        parts += [
            "## Grace Period Active",
            "\n".join(
                f"- <@{g.user_id}> ({g.weeks_out}/{record.grace_periods} {unit})"
                for g in record.grace_active
            ),
        ]
    if not record.has_changes:
        parts.append(f"- No role changes this {record.period_name}.")

    return "\n".join(parts)


def split_message(content: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """
    Split a post into chunks of at most ``limit`` characters, breaking on
    line boundaries. A single line longer than the limit is hard-split.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    if not content:
        return []

    chunks: list[str] = []
    current: Optional[str] = None   # None until a chunk is started
    for line in content.split("\n"):
        while len(line) > limit:
            if current is not None:
                chunks.append(current)
                current = None
            chunks.append(line[:limit])
            line = line[limit:]
        if current is None:
            current = line
        elif len(current) + 1 + len(line) > limit:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}"
    if current is not None:
        chunks.append(current)
    return chunks


class AnnouncementReporter:
    """Posts the announcement through a SummaryPublisher, chunked."""

    def __init__(
        self,
        publisher: SummaryPublisher,
        channel_id: Optional[str] = None,
        limit: int = MESSAGE_LIMIT,
    ) -> None:
        self.publisher = publisher
        self.channel_id = channel_id
        self.limit = limit

    def report(self, record: DecisionRecord) -> None:
        chunks = split_message(render_announcement(record), self.limit)
        for chunk in chunks:
            self.publisher.post(self.channel_id, chunk)
        logger.info("Summary posted in %d message(s)", len(chunks),
                    extra={"run_id": record.run_id})
