"""
Append-only run history for liquidity calculations.

RunHistory: In-memory, append-only record of calculation runs keyed by
    (submission, reporting date, ratio type)
RunArchive: Writes each run to its own directory as parquet + JSON and
    never overwrites an existing run

Reruns for the same submission and date append a new run with a fresh
run id; earlier runs are never mutated, so the history is a full audit
trail.

Archive layout:
    <base>/<submission_id>/<reporting_date>/<ratio_type>/<run_id>/
        breakdown.parquet
        unclassified.parquet
        excluded.parquet
        validation.json
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

import polars as pl

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import CalculationRun
    from liquidity_calc.domain.enums import RatioType

logger = logging.getLogger(__name__)

UNSCOPED_SUBMISSION = "_unscoped"

HistoryKey = tuple[str | None, date, str]


def _history_key(run: CalculationRun) -> HistoryKey:
    v = run.validation
    return (v.submission_id, v.reporting_date, v.ratio_type.value)


# =============================================================================
# In-memory History
# =============================================================================


class RunHistory:
    """
    Append-only store of calculation runs.

    Safe to share between threads running independent calculations.

    Usage:
        history = RunHistory()
        history.append(run)
        latest = history.latest("SUB-1", date(2025, 3, 31), RatioType.LCR)
    """

    def __init__(self, archive: RunArchive | None = None) -> None:
        """
        Args:
            archive: Optional archive every appended run is also written to
        """
        self._runs: dict[HistoryKey, list[CalculationRun]] = {}
        self._run_ids: set[str] = set()
        self._pending: set[str] = set()
        self._lock = threading.Lock()
        self.archive = archive

    def append(self, run: CalculationRun) -> None:
        """
        Record a run.

        The run id is reserved under the lock and the archive write happens
        outside it. A failed write releases the id again.

        Raises:
            ValueError: If a run with the same run_id was already recorded
        """
        with self._lock:
            if run.run_id in self._run_ids or run.run_id in self._pending:
                raise ValueError(f"Run {run.run_id} already recorded; runs are immutable")
            self._pending.add(run.run_id)

        try:
            if self.archive is not None:
                self.archive.write(run)
        except Exception:
            with self._lock:
                self._pending.discard(run.run_id)
            raise

        with self._lock:
            self._pending.discard(run.run_id)
            self._run_ids.add(run.run_id)
            self._runs.setdefault(_history_key(run), []).append(run)

        logger.debug("Recorded %s run %s", run.ratio_type.value, run.run_id)

    def runs_for(
        self,
        submission_id: str | None,
        reporting_date: date,
        ratio_type: RatioType,
    ) -> tuple[CalculationRun, ...]:
        """All runs for a key, oldest first."""
        with self._lock:
            return tuple(self._runs.get((submission_id, reporting_date, ratio_type.value), ()))

    def latest(
        self,
        submission_id: str | None,
        reporting_date: date,
        ratio_type: RatioType,
    ) -> CalculationRun | None:
        """Most recent run for a key, or None."""
        runs = self.runs_for(submission_id, reporting_date, ratio_type)
        return runs[-1] if runs else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._run_ids)

    def __contains__(self, run_id: object) -> bool:
        with self._lock:
            return run_id in self._run_ids


# =============================================================================
# On-disk Archive
# =============================================================================


@dataclass(frozen=True)
class ArchivedRun:
    """
    Handle to an archived run with lazy scan accessors.

    No data is loaded until a scan or read method is called.
    """

    run_dir: Path

    @property
    def run_id(self) -> str:
        return self.run_dir.name

    def scan_breakdown(self) -> pl.LazyFrame:
        return pl.scan_parquet(self.run_dir / "breakdown.parquet")

    def scan_unclassified(self) -> pl.LazyFrame:
        return pl.scan_parquet(self.run_dir / "unclassified.parquet")

    def scan_excluded(self) -> pl.LazyFrame:
        return pl.scan_parquet(self.run_dir / "excluded.parquet")

    def read_validation(self) -> dict:
        return json.loads((self.run_dir / "validation.json").read_text())


class RunArchive:
    """
    Writes calculation runs to disk, one directory per run.

    The validation record is written last, through a temporary file that
    is renamed into place, so a run directory without validation.json is
    an incomplete write and is not listed.
    """

    def __init__(self, base_dir: Path | str) -> None:
        """
        Args:
            base_dir: Root directory of the archive, created if needed
        """
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _key_dir(
        self,
        submission_id: str | None,
        reporting_date: date,
        ratio_type: str,
    ) -> Path:
        return (
            self._base_dir
            / (submission_id or UNSCOPED_SUBMISSION)
            / reporting_date.isoformat()
            / ratio_type
        )

    def write(self, run: CalculationRun) -> ArchivedRun:
        """
        Write a run to its own directory.

        Raises:
            FileExistsError: If the run has already been archived
        """
        submission_id, reporting_date, ratio_type = _history_key(run)
        run_dir = self._key_dir(submission_id, reporting_date, ratio_type) / run.run_id
        run_dir.parent.mkdir(parents=True, exist_ok=True)
        run_dir.mkdir(exist_ok=False)

        run.breakdown.write_parquet(run_dir / "breakdown.parquet")
        run.unclassified.write_parquet(run_dir / "unclassified.parquet")
        run.excluded.write_parquet(run_dir / "excluded.parquet")
        # Written last and renamed into place: listed runs are always complete
        partial = run_dir / "validation.json.tmp"
        partial.write_text(json.dumps(run.validation.to_dict(), indent=2))
        partial.replace(run_dir / "validation.json")

        logger.info("Archived %s run %s to %s", ratio_type, run.run_id, run_dir)
        return ArchivedRun(run_dir=run_dir)

    def list_runs(
        self,
        submission_id: str | None,
        reporting_date: date,
        ratio_type: RatioType,
    ) -> list[ArchivedRun]:
        """Complete archived runs for a key, oldest first by creation time."""
        key_dir = self._key_dir(submission_id, reporting_date, ratio_type.value)
        if not key_dir.exists():
            return []

        runs = [
            ArchivedRun(run_dir=p)
            for p in key_dir.iterdir()
            if p.is_dir() and (p / "validation.json").exists()
        ]
        return sorted(runs, key=lambda r: (r.read_validation().get("created_at") or "", r.run_id))
