"""
Tests for the shared operation source
"""
import threading
import pytest

from opstream import generator as gen
from opstream.models import Operation, OpType
from opstream.runner_engine.operation_source import OperationSource, INDEX_BASE
from opstream.runner_engine.history import History


def test_index_base_is_one():
    assert INDEX_BASE == 1


def test_next_invocation_stamps_operation():
    """Test a pulled template becomes an invoke with index, process and time"""
    source = OperationSource(gen.iterate([{"f": "w", "value": 5}]))
    op = source.next_invocation(3)

    assert op.type == OpType.INVOKE
    assert op.f == "w"
    assert op.value == 5
    assert op.process == 3
    assert op.index == 1
    assert isinstance(op.time, int)
    assert source.history.operations == [op]


def test_exhaustion_is_latched():
    """Test the generator is never pulled again after it ends"""
    calls = []

    def step(param, state):
        calls.append(state)
        return gen.EXHAUSTED

    source = OperationSource(gen.wrap(step))
    assert source.next_invocation(0) is None
    assert source.next_invocation(1) is None
    assert source.exhausted
    assert len(calls) == 1


def test_record_completion_allocates_next_index():
    source = OperationSource(gen.iterate([{"f": "r"}]))
    invoke = source.next_invocation(0)
    completion = source.record_completion(0, Operation(f="r", type=OpType.OK, value=[1]))

    assert completion.index == invoke.index + 1
    assert completion.process == 0
    assert completion.time >= invoke.time
    assert [op.index for op in source.history] == [1, 2]


def test_uses_given_history():
    history = History()
    source = OperationSource(gen.iterate([{"f": "r"}]), history)
    source.next_invocation(0)
    assert len(history) == 1


def test_callable_templates_are_called():
    source = OperationSource(gen.duplicate(lambda: {"f": "now"}).take(1))
    assert source.next_invocation(0).f == "now"


def test_invalid_template_propagates():
    """Test a value that is not a template raises to the caller"""
    source = OperationSource(gen.iterate([42]))
    with pytest.raises(TypeError):
        source.next_invocation(0)
    assert len(source.history) == 0


def test_generator_error_propagates():
    source = OperationSource(gen.range(3).map(lambda x: 1 / 0))
    with pytest.raises(ZeroDivisionError):
        source.next_invocation(0)


def test_abort_stops_further_invocations():
    source = OperationSource(gen.tabulate(lambda i: {"f": "r", "value": i}))
    assert source.next_invocation(0) is not None

    source.abort("protocol violation")
    source.abort("second reason")

    assert source.aborted
    assert source.abort_reason == "protocol violation"
    assert source.next_invocation(0) is None


def test_concurrent_pulls_have_unique_contiguous_indexes():
    """Test many threads never observe the same generator transition"""
    total = 500
    source = OperationSource(gen.tabulate(lambda i: {"f": "w", "value": i}).take(total))

    def pull(process):
        while True:
            op = source.next_invocation(process)
            if op is None:
                return
            source.record_completion(process, Operation(f="w", value=op.value, type=OpType.OK))

    threads = [threading.Thread(target=pull, args=(p,)) for p in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    history = source.history.operations
    assert len(history) == 2 * total
    assert [op.index for op in history] == list(range(1, 2 * total + 1))
    assert sorted(op.value for op in source.history.invocations()) == list(range(total))
    assert len(source.history.pairs()) == total
