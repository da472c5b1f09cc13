"""crashkernel reservation sizing."""

from typing import NamedTuple, Optional, Sequence


class MemorySizingRule(NamedTuple):
    """Reservation for hosts with less than ``upper_bound_gb`` of RAM.

    The last rule has no upper bound and catches everything else.
    """

    upper_bound_gb: Optional[int]
    size: str


DEFAULT_RULES = (
    MemorySizingRule(8, "256M"),
    MemorySizingRule(16, "384M"),
    MemorySizingRule(None, "512M"),
)


def recommend_crashkernel_size(
    total_ram_gb: int, rules: Sequence[MemorySizingRule] = DEFAULT_RULES
) -> str:
    """Pick the crashkernel size for a host with ``total_ram_gb`` whole GiB.

    Args:
        total_ram_gb: Total RAM, truncated to whole gigabytes
        rules: Rules in ascending bound order, last one unbounded

    Returns:
        Size string used verbatim as ``crashkernel=<size>``
    """
    if total_ram_gb < 0:
        raise ValueError(f"Total RAM cannot be negative: {total_ram_gb}")

    for rule in rules:
        if rule.upper_bound_gb is None or total_ram_gb < rule.upper_bound_gb:
            return rule.size

    raise ValueError("Sizing rules must end with an unbounded rule")
