"""Token and cost usage accumulation across assistant messages."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from conversation_extractor.models import UsageCost, UsageRecord

USAGE_FIELDS = ("input", "output", "cacheRead", "cacheWrite", "totalTokens")
COST_FIELDS = ("input", "output", "cacheRead", "cacheWrite", "total")


def _number(value: Any) -> int | float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    return 0


def merge_usage(acc: UsageRecord, incoming: Optional[Mapping[str, Any]]) -> UsageRecord:
    """Return `acc` plus `incoming`, summed field by field.

    Absent fields count as zero on both sides. `None` leaves `acc` unchanged.
    """
    if not isinstance(incoming, Mapping):
        return acc
    raw_cost = incoming.get("cost")
    cost = raw_cost if isinstance(raw_cost, Mapping) else {}
    return UsageRecord(
        **{name: getattr(acc, name) + _number(incoming.get(name)) for name in USAGE_FIELDS},
        cost=UsageCost(
            **{name: getattr(acc.cost, name) + _number(cost.get(name)) for name in COST_FIELDS}
        ),
    )


class UsageAccumulator:
    """Running usage for one turn; collapses to None if nothing was merged."""

    def __init__(self) -> None:
        self._record = UsageRecord()
        self._merged = False

    def add(self, incoming: Optional[Mapping[str, Any]]) -> None:
        if not isinstance(incoming, Mapping):
            return
        self._record = merge_usage(self._record, incoming)
        self._merged = True

    def result(self) -> Optional[UsageRecord]:
        return self._record if self._merged else None
