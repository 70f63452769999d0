from typing import List


def truncating_mean(values: List[int]) -> int:
    """sum / count rounded toward zero, like C or Java integer division."""
    if not values:
        raise ValueError("mean of empty ledger")
    total = sum(values)
    q = abs(total) // len(values)
    return -q if total < 0 else q


class ValueLedger:
    """
    Ordered, append-only values seen by the coordinator.
    Seeded with the coordinator's own value, so it is never empty.
    Grows without bound until the process exits.
    """

    def __init__(self, initial: int):
        self._values: List[int] = [initial]

    def append(self, value: int):
        self._values.append(value)

    def average(self) -> int:
        return truncating_mean(self._values)

    @property
    def values(self) -> List[int]:
        return list(self._values)

    def __len__(self):
        return len(self._values)
