"""
Tests for the history log
"""
import json
import pytest

from opstream.models import Operation, OpType
from opstream.runner_engine.history import History, HISTORY_JSON, HISTORY_TXT


def record(type, process, index, f="r", value=None, error=None):
    return Operation(f=f, value=value, type=type, process=process, index=index, time=index * 100, error=error)


@pytest.fixture
def history():
    """Two processes with interleaved operations"""
    h = History()
    h.append(record(OpType.INVOKE, 0, 1, value=1))
    h.append(record(OpType.INVOKE, 1, 2))
    h.append(record(OpType.OK, 0, 3, value=1))
    h.append(record(OpType.FAIL, 1, 4, error="boom"))
    return h


def test_append_and_len(history):
    assert len(history) == 4
    assert history[0].index == 1
    assert [op.index for op in history] == [1, 2, 3, 4]


def test_operations_returns_copy(history):
    """Test readers cannot mutate the log through its accessor"""
    ops = history.operations
    ops.clear()
    assert len(history) == 4


def test_invocations_and_completions(history):
    assert [op.index for op in history.invocations()] == [1, 2]
    assert [op.index for op in history.completions()] == [3, 4]


def test_pairs(history):
    """Test every invoke is matched with its process' completion"""
    pairs = history.pairs()
    assert [(i.index, c.index) for i, c in pairs] == [(1, 3), (2, 4)]


def test_pairs_rejects_orphan_completion():
    h = History()
    h.append(record(OpType.OK, 0, 1))
    with pytest.raises(ValueError):
        h.pairs()


def test_pairs_rejects_double_invoke():
    h = History()
    h.append(record(OpType.INVOKE, 0, 1))
    h.append(record(OpType.INVOKE, 0, 2))
    with pytest.raises(ValueError):
        h.pairs()


def test_pairs_rejects_pending_invoke():
    h = History()
    h.append(record(OpType.INVOKE, 0, 1))
    with pytest.raises(ValueError, match="without completion"):
        h.pairs()


def test_to_text(history):
    lines = history.to_text().splitlines()
    assert len(lines) == 4
    assert lines[0].startswith("{:process 0, :type :invoke")
    assert ":error 'boom'" in lines[3]


def test_save_and_load(history, tmp_path):
    """Test the history is written in both forms and loads back"""
    paths = history.save(tmp_path / "run-1")

    json_path = tmp_path / "run-1" / HISTORY_JSON
    txt_path = tmp_path / "run-1" / HISTORY_TXT
    assert paths == {'json': str(json_path), 'text': str(txt_path)}
    assert json_path.exists()
    assert txt_path.read_text() == history.to_text()

    with open(json_path) as f:
        data = json.load(f)
    assert data[0]['type'] == 'invoke'
    assert data[3]['error'] == 'boom'

    loaded = History.load(json_path)
    assert loaded.operations == history.operations


def test_empty_history():
    h = History()
    assert len(h) == 0
    assert h.pairs() == []
