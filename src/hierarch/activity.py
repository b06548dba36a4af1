"""
Mention Scanner

Platform-agnostic channel scan that produces the mention counts the
engine ranks on.

A MessageFeed returns pages of messages, newest first. For every
configured channel the scanner pages backwards until it reaches the first
message older than the trailing window. Each mentioned user is counted
once per message.

Any failure of the feed aborts the scan with ActivitySourceError: a
partial count would bias the ranking, so no counts are returned at all.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Sequence

from .config import EngineConfig
from .exceptions import ActivitySourceError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


@dataclass(frozen=True)
class Message:
    id: str
    created_at: datetime
    mentioned_user_ids: tuple[str, ...] = ()


class MessageFeed(Protocol):
    def fetch_page(
        self,
        channel_id: str,
        before: Optional[str],
        limit: int,
    ) -> Optional[Sequence[Message]]:
        """
        Up to ``limit`` messages older than ``before`` (newest first).

        Returns None if the channel does not exist or holds no messages.
        """
        ...


@dataclass
class ScanStats:
    messages_scanned: dict[str, int] = field(default_factory=dict)
    skipped_channels: list[str] = field(default_factory=list)

    @property
    def total_scanned(self) -> int:
        return sum(self.messages_scanned.values())


class MentionScanner:
    """
    ActivitySource over a MessageFeed.

    Usage:
        scanner = MentionScanner(feed, channel_ids=["1", "2"], window_days=60)
        counts = scanner.mention_counts()
    """

    def __init__(
        self,
        feed: MessageFeed,
        channel_ids: Sequence[str],
        window_days: int,
        now: Optional[datetime] = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        if window_days < 1:
            raise ValueError(f"window_days must be >= 1, got {window_days}")
        self.feed = feed
        self.channel_ids = tuple(channel_ids)
        self.window = timedelta(days=window_days)
        self.now = now
        self.page_size = page_size
        self.stats = ScanStats()

    @classmethod
    def from_config(
        cls,
        feed: MessageFeed,
        config: EngineConfig,
        now: Optional[datetime] = None,
    ) -> MentionScanner:
        return cls(feed, config.channel_ids, config.window_days, now=now)

    def mention_counts(self) -> dict[str, int]:
        now = self.now or datetime.now(timezone.utc)
        cutoff = now - self.window
        counts: Counter[str] = Counter()
        self.stats = ScanStats()

        for channel_id in self.channel_ids:
            logger.info("Scanning channel: %s", channel_id)
            try:
                scanned = self._scan_channel(channel_id, cutoff, counts)
            except ActivitySourceError:
                raise
            except Exception as e:
                raise ActivitySourceError(
                    message=f"Scan of channel {channel_id} failed: {e}",
                    details={"channel_id": channel_id},
                ) from e
            if scanned is None:
                logger.warning("Channel %s not found or not text-based, skipping", channel_id)
                self.stats.skipped_channels.append(channel_id)
                continue
            self.stats.messages_scanned[channel_id] = scanned

        logger.info(
            "Total messages scanned: %d; unique users mentioned: %d",
            self.stats.total_scanned, len(counts),
        )
        return dict(counts)

    def _scan_channel(
        self,
        channel_id: str,
        cutoff: datetime,
        counts: Counter[str],
    ) -> Optional[int]:
        before: Optional[str] = None
        scanned = 0
        first_page = True

        while True:
            page = self.feed.fetch_page(channel_id, before, self.page_size)
            if page is None and first_page:
                return None
            first_page = False
            if not page:
                break

            for message in page:
                if message.created_at < cutoff:
                    logger.info("Reached time limit in %s after %d messages", channel_id, scanned)
                    return scanned
                scanned += 1
                for user_id in set(message.mentioned_user_ids):
                    counts[user_id] += 1

            before = page[-1].id
        return scanned
