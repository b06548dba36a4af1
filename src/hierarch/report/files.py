"""
File Reporter

Writes the run logs into the logs directory:

- role-update-<YYYY-MM-DD>.json   full DecisionRecord
- latest-summary.txt              text summary of the latest run
- summary-<YYYY-MM-DD>.txt        dated copy of the text summary
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from ..canon import pretty_json
from ..models import DecisionRecord
from .summary import render_summary

logger = logging.getLogger(__name__)


class FileReporter:
    def __init__(self, logs_dir: Union[str, Path]) -> None:
        self.logs_dir = Path(logs_dir)

    def paths_for(self, record: DecisionRecord) -> dict[str, Path]:
        day = record.run_at.strftime("%Y-%m-%d")
        return {
            "json": self.logs_dir / f"role-update-{day}.json",
            "latest": self.logs_dir / "latest-summary.txt",
            "history": self.logs_dir / f"summary-{day}.txt",
        }

    def report(self, record: DecisionRecord) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        paths = self.paths_for(record)
        summary = render_summary(record)

        paths["json"].write_text(pretty_json(record.to_dict()), encoding="utf-8")
        paths["latest"].write_text(summary, encoding="utf-8")
        paths["history"].write_text(summary, encoding="utf-8")
        logger.info("Logs saved to %s", self.logs_dir, extra={"run_id": record.run_id})
