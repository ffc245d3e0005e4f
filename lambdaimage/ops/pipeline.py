"""
Ordered log of pending transform operations.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence, Tuple

from lambdaimage.domain.types.operation import Operation

logger = logging.getLogger(__name__)


class OperationLog:
    """
    Append-only list of operations not yet applied to any pixels.

    Operations are kept in application order and are never merged or
    validated here; the remote processor replays them as given.
    """

    def __init__(self, operations: Sequence[Operation] = ()):
        self._operations: List[Operation] = list(operations)

    def add(self, operation: Operation) -> None:
        logger.debug("Queued %s operation: %s", operation.action, operation)
        self._operations.append(operation)

    def snapshot(self) -> Tuple[Operation, ...]:
        # descriptors are frozen models, a shallow copy is enough
        return tuple(self._operations)

    def restore(self, snapshot: Sequence[Operation]) -> None:
        self._operations = list(snapshot)

    def clear(self) -> None:
        self._operations = []

    def to_list(self) -> List[Operation]:
        return list(self._operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __bool__(self) -> bool:
        return bool(self._operations)

    def __repr__(self) -> str:
        return f"OperationLog({self._operations!r})"
