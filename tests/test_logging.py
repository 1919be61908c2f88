"""
Structured log output for index and parking store operations.
"""

import logging
from datetime import datetime

import pytest

from topic_map.core.staging import NodeSnapshot, StagingStore
from topic_map.vector import InMemoryVectorIndex, DimensionMismatchError
from util.logging import StructuredLogger, truncate


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO, logger="topic_map")
    return caplog


def test_truncate():
    """Test truncation of long values."""
    assert truncate("short") == "short"
    assert truncate("x" * 80) == "x" * 47 + "..."
    assert truncate(12) == 12


def test_log_operation_format(caplog_info):
    """Test the structured message format."""
    StructuredLogger().log_operation("vector.add", "success", {"record_id": "a"})

    assert "Operation: vector.add, Status: success, Details: {'record_id': 'a'}" in caplog_info.text


def test_vector_operations_are_logged(caplog_info):
    """Test that index mutations are logged."""
    index = InMemoryVectorIndex(dimension=2)
    index.add("n1", "Black holes", [1, 0])
    index.remove("n1")

    assert "vector.add" in caplog_info.text
    assert "vector.remove" in caplog_info.text


def test_rejected_add_logged_as_warning(caplog_info):
    """Test that a rejected add is logged at warning level."""
    index = InMemoryVectorIndex(dimension=2)
    with pytest.raises(DimensionMismatchError):
        index.add("n1", "Black holes", [1, 0, 0])

    warnings = [r for r in caplog_info.records if r.levelno == logging.WARNING]
    assert warnings
    assert "Status: rejected" in warnings[0].getMessage()


def test_sweep_logged_with_count(caplog_info):
    """Test that sweeps log the number removed."""
    store = StagingStore(clock=lambda: datetime(2026, 1, 1))
    store.park(NodeSnapshot(node_id="n1", label="Comets"), 0)
    store.sweep_expired()

    assert "staging.sweep" in caplog_info.text
    assert "'removed': 1" in caplog_info.text
