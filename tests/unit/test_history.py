"""Unit tests for run history and the on-disk run archive.

Tests cover:
- Append-only recording keyed by submission, date and ratio
- Reruns appended with fresh run ids, earlier runs untouched
- Archive layout, no-overwrite guarantee and lazy read-back
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import polars as pl
import pytest

from liquidity_calc.contracts.bundles import CalculationRun, LiquidityInputBundle
from liquidity_calc.contracts.config import CalculationConfig
from liquidity_calc.domain.enums import RatioType
from liquidity_calc.engine.history import UNSCOPED_SUBMISSION, RunArchive, RunHistory
from liquidity_calc.engine.pipeline import create_pipeline
from tests.fixtures.line_items import (
    REPORTING_DATE,
    SUBMISSION_ID,
    create_sample_line_items,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def config() -> CalculationConfig:
    return CalculationConfig.us_liquidity(
        reporting_date=REPORTING_DATE, submission_id=SUBMISSION_ID
    )


@pytest.fixture
def data() -> LiquidityInputBundle:
    return LiquidityInputBundle(line_items=create_sample_line_items().lazy())


def _lcr_run(data: LiquidityInputBundle, config: CalculationConfig) -> CalculationRun:
    """Produce an LCR run from a throwaway pipeline."""
    return create_pipeline().run_lcr(data, config)


class TestRunHistory:
    """Tests for the in-memory append-only history."""

    def test_append_and_latest(self, data, config):
        history = RunHistory()
        run = _lcr_run(data, config)

        history.append(run)

        assert len(history) == 1
        assert run.run_id in history
        assert history.latest(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR) is run

    def test_reruns_are_appended(self, data, config):
        history = RunHistory()
        first = _lcr_run(data, config)
        second = _lcr_run(data, config)

        history.append(first)
        history.append(second)

        runs = history.runs_for(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR)
        assert runs == (first, second)
        assert first.run_id != second.run_id
        assert history.latest(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR) is second

    def test_duplicate_run_rejected(self, data, config):
        history = RunHistory()
        run = _lcr_run(data, config)
        history.append(run)

        with pytest.raises(ValueError, match="already recorded"):
            history.append(run)

        assert len(history) == 1

    def test_archive_written_outside_lock(self, data, config):
        """Other threads can read the history while a run is archived."""
        archive = MagicMock()
        history = RunHistory(archive=archive)
        lock_held = []
        archive.write.side_effect = lambda run: lock_held.append(history._lock.locked())
        run = _lcr_run(data, config)

        history.append(run)

        archive.write.assert_called_once_with(run)
        assert lock_held == [False]
        assert run.run_id in history

    def test_failed_archive_write_releases_run_id(self, data, config):
        archive = MagicMock()
        archive.write.side_effect = OSError("disk full")
        history = RunHistory(archive=archive)
        run = _lcr_run(data, config)

        with pytest.raises(OSError, match="disk full"):
            history.append(run)

        assert run.run_id not in history
        assert len(history) == 0

        archive.write.side_effect = None
        history.append(run)

        assert run.run_id in history

    def test_keys_are_separate(self, data, config):
        history = RunHistory()
        history.append(_lcr_run(data, config))

        assert history.runs_for(SUBMISSION_ID, REPORTING_DATE, RatioType.NSFR) == ()
        assert history.latest("OTHER", REPORTING_DATE, RatioType.LCR) is None

    def test_pipeline_records_every_run(self, data, config):
        history = RunHistory()
        pipeline = create_pipeline(history=history)

        bundle = pipeline.run_with_data(data, config)

        assert len(history) == 2
        assert bundle.lcr.run_id in history
        assert bundle.nsfr.run_id in history
        assert pipeline.history is history


class TestRunArchive:
    """Tests for the on-disk archive."""

    def test_write_layout(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path / "archive")
        run = _lcr_run(data, config)

        archived = archive.write(run)

        expected_dir = (
            tmp_path / "archive" / SUBMISSION_ID / REPORTING_DATE.isoformat() / "LCR" / run.run_id
        )
        assert archived.run_dir == expected_dir
        assert archived.run_id == run.run_id
        for name in ("breakdown.parquet", "unclassified.parquet", "excluded.parquet", "validation.json"):
            assert (expected_dir / name).exists()

    def test_read_back(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path)
        run = _lcr_run(data, config)

        archived = archive.write(run)

        assert archived.scan_breakdown().collect().equals(run.breakdown)
        assert isinstance(archived.scan_unclassified(), pl.LazyFrame)
        assert archived.scan_excluded().collect().height == run.excluded.height
        validation = archived.read_validation()
        assert validation["run_id"] == run.run_id
        assert validation["ratio"] == pytest.approx(run.ratio)
        assert validation["overall_status"] == run.validation.overall_status.value

    def test_never_overwrites(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path)
        run = _lcr_run(data, config)
        archive.write(run)

        with pytest.raises(FileExistsError):
            archive.write(run)

    def test_unscoped_submission(self, tmp_path: Path, data):
        archive = RunArchive(tmp_path)
        config = CalculationConfig.us_liquidity(reporting_date=REPORTING_DATE)

        archived = archive.write(_lcr_run(data, config))

        assert archived.run_dir.parents[2].name == UNSCOPED_SUBMISSION

    def test_list_runs_oldest_first(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path)
        first = _lcr_run(data, config)
        second = _lcr_run(data, config)
        archive.write(second)
        archive.write(first)

        listed = archive.list_runs(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR)

        assert [r.run_id for r in listed] == [first.run_id, second.run_id]

    def test_incomplete_runs_not_listed(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path)
        archived = archive.write(_lcr_run(data, config))
        (archived.run_dir / "validation.json").unlink()

        assert archive.list_runs(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR) == []

    def test_no_partial_validation_file_left(self, tmp_path: Path, data, config):
        archived = RunArchive(tmp_path).write(_lcr_run(data, config))

        assert sorted(p.name for p in archived.run_dir.iterdir()) == [
            "breakdown.parquet",
            "excluded.parquet",
            "unclassified.parquet",
            "validation.json",
        ]

    def test_partial_validation_file_not_listed(self, tmp_path: Path, data, config):
        """A write interrupted before the rename leaves only the partial file."""
        archive = RunArchive(tmp_path)
        archived = archive.write(_lcr_run(data, config))
        (archived.run_dir / "validation.json").rename(archived.run_dir / "validation.json.tmp")

        assert archive.list_runs(SUBMISSION_ID, REPORTING_DATE, RatioType.LCR) == []

    def test_list_unknown_key(self, tmp_path: Path):
        assert RunArchive(tmp_path).list_runs("NONE", REPORTING_DATE, RatioType.NSFR) == []

    def test_history_writes_through(self, tmp_path: Path, data, config):
        archive = RunArchive(tmp_path)
        history = RunHistory(archive=archive)

        bundle = create_pipeline(history=history).run_with_data(data, config)

        listed = archive.list_runs(SUBMISSION_ID, REPORTING_DATE, RatioType.NSFR)
        assert [r.run_id for r in listed] == [bundle.nsfr.run_id]
