"""Tests for crashkernel sizing."""

import pytest

from kdump_enabler.sizing import DEFAULT_RULES, MemorySizingRule, recommend_crashkernel_size


@pytest.mark.parametrize(
    "ram_gb, expected",
    [
        (0, "256M"),
        (4, "256M"),
        (7, "256M"),
        (8, "384M"),
        (15, "384M"),
        (16, "512M"),
        (64, "512M"),
        (4096, "512M"),
    ],
)
def test_default_tiers(ram_gb, expected):
    """Bounds are exclusive, so exactly 8 and 16 move up a tier."""
    assert recommend_crashkernel_size(ram_gb) == expected


def test_monotonic():
    """More RAM never yields a smaller reservation."""
    order = [rule.size for rule in DEFAULT_RULES]
    sizes = [order.index(recommend_crashkernel_size(gb)) for gb in range(0, 70)]
    assert sizes == sorted(sizes)


def test_negative_ram_rejected():
    with pytest.raises(ValueError):
        recommend_crashkernel_size(-1)


def test_custom_rules():
    rules = (MemorySizingRule(2, "128M"), MemorySizingRule(None, "1G"))
    assert recommend_crashkernel_size(1, rules) == "128M"
    assert recommend_crashkernel_size(2, rules) == "1G"


def test_rules_without_catch_all():
    with pytest.raises(ValueError):
        recommend_crashkernel_size(32, (MemorySizingRule(8, "256M"),))
