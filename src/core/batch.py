"""
Batch — поэлементное исполнение пакетных операций

Каждый элемент пакета исполняется как самостоятельная атомарная операция:
отказ одного элемента не откатывает и не блокирует остальные.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

from src.core.errors import ErrorKind, LedgerError


@dataclass(frozen=True)
class BatchFailure:
    """Отказ одного элемента пакета."""

    address: str
    kind: ErrorKind
    reason: str
    message: str


@dataclass(frozen=True)
class BatchResult:
    """Результат пакетной операции."""

    succeeded: Tuple[str, ...]
    failed: Tuple[BatchFailure, ...]

    # Сумма, перемещённая успешными элементами
    total_amount: int

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


def run_batch(addresses: Iterable[str], operation: Callable[[str], int]) -> BatchResult:
    """
    Исполнение операции для каждого адреса.

    Args:
        addresses: Адреса элементов (порядок сохраняется)
        operation: Операция над одним адресом, возвращает перемещённую сумму

    Returns:
        BatchResult; LedgerError элемента попадает в failed
    """
    succeeded: List[str] = []
    failed: List[BatchFailure] = []
    total = 0

    for address in addresses:
        try:
            total += operation(address)
        except LedgerError as e:
            failed.append(BatchFailure(address=address, kind=e.kind, reason=e.reason, message=e.message))
        else:
            succeeded.append(address)

    return BatchResult(succeeded=tuple(succeeded), failed=tuple(failed), total_amount=total)
