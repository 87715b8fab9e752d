"""
Unit tests for progress snapshots and the progress logger.
"""

from unittest.mock import Mock

import pytest

from density_clustering.core.progress import Progress
from density_clustering.utils.advanced_logging import ProgressLogger


@pytest.mark.unit
class TestProgress:
    """Test Progress snapshots."""

    def test_percentage(self):
        """Test percentage computation."""
        assert Progress("Clustering", 25, 100, 2).percentage == 25.0

    def test_percentage_empty_total(self):
        """Test empty runs count as complete."""
        assert Progress("Clustering", 0, 0, 0).percentage == 100.0

    def test_str(self):
        """Test human readable form."""
        text = str(Progress("Clustering", 5, 10, 1))
        assert text.startswith("Clustering: 5/10")
        assert "50%" in text
        assert "#Clusters: 1" in text

    def test_frozen(self):
        """Test snapshots are immutable."""
        progress = Progress("Clustering", 1, 2, 0)
        with pytest.raises(AttributeError):
            progress.processed = 2


@pytest.mark.unit
class TestProgressLogger:
    """Test the logging progress callback."""

    def test_logs_every_interval(self):
        """Test progress is logged once per interval."""
        logger = Mock()
        callback = ProgressLogger(log_interval=10, logger=logger)

        for processed in range(1, 31):
            callback(Progress("Clustering", processed, 100, 0))

        assert logger.info.call_count == 3
        assert callback.updates == 30

    def test_final_update_always_logged(self):
        """Test the last update of a run is logged even off-interval."""
        logger = Mock()
        callback = ProgressLogger(log_interval=100, logger=logger)

        callback(Progress("Clustering", 3, 7, 0))
        callback(Progress("Clustering", 7, 7, 1))
        callback(Progress("Clustering", 7, 7, 1))

        assert logger.info.call_count == 1
        kwargs = logger.info.call_args.kwargs
        assert kwargs["processed"] == 7
        assert kwargs["total"] == 7
        assert kwargs["clusters"] == 1

    def test_log_event_fields(self):
        """Test logged fields."""
        logger = Mock()
        callback = ProgressLogger(log_interval=1, logger=logger)
        callback(Progress("Clustering", 1, 4, 0))

        args, kwargs = logger.info.call_args
        assert args == ("clustering_progress",)
        assert kwargs["task"] == "Clustering"
        assert kwargs["progress_pct"] == 25.0

    def test_custom_log_level(self):
        """Test configurable log level."""
        logger = Mock()
        callback = ProgressLogger(log_interval=1, logger=logger, log_level="debug")
        callback(Progress("Clustering", 1, 1, 0))

        logger.debug.assert_called_once()
        logger.info.assert_not_called()

    def test_last_progress_recorded(self):
        """Test the callback keeps the latest snapshot."""
        callback = ProgressLogger(log_interval=50, logger=Mock())
        progress = Progress("Clustering", 2, 10, 0)
        callback(progress)
        assert callback.last_progress is progress
