import pytest

from lambdaimage.domain.types.operation import FlipOperation, ResizeOperation, RotateOperation
from lambdaimage.ops.pipeline import OperationLog


def test_operations_keep_application_order():
    log = OperationLog()
    log.add(RotateOperation(angle=90))
    log.add(ResizeOperation(width=10, height=20))
    log.add(RotateOperation(angle=90))
    assert [op.action for op in log] == ["rotate", "resize", "rotate"]
    assert len(log) == 3


def test_snapshot_is_independent_of_later_adds():
    log = OperationLog([FlipOperation(horizontal=True, vertical=False)])
    snapshot = log.snapshot()
    log.add(ResizeOperation(width=1, height=1))
    assert len(snapshot) == 1
    log.restore(snapshot)
    assert log.to_list() == [FlipOperation(horizontal=True, vertical=False)]


def test_clear_empties_log():
    log = OperationLog([RotateOperation(angle=0)])
    log.clear()
    assert not log
    assert log.to_list() == []


def test_rotate_angle_is_not_validated():
    log = OperationLog()
    log.add(RotateOperation(angle=1234.5))
    assert log.to_list()[0].angle == 1234.5


if __name__ == "__main__":
    pytest.main()
