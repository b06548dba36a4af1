"""Reporting: text summary, channel announcement and run log files."""
from __future__ import annotations

from .announcement import (
    MESSAGE_LIMIT,
    AnnouncementReporter,
    render_announcement,
    split_message,
)
from .files import FileReporter
from .summary import render_summary

__all__ = [
    "render_summary",
    "render_announcement",
    "split_message",
    "MESSAGE_LIMIT",
    "AnnouncementReporter",
    "FileReporter",
]
