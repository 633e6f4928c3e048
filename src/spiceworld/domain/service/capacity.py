"""Capacity of a category's attribute schema.

Maximum variants = product of all attribute value counts.
Example: Weight (3 values) x Origin (2 values) = at most 6 variants.
A category without attributes allows exactly one variant.
"""

from __future__ import annotations

from collections.abc import Iterable

from spiceworld.domain.model.category import Category


def max_combinations(value_counts: Iterable[int]) -> int:
    result = 1
    for count in value_counts:
        # An attribute without values cannot tell variants apart.
        result *= count or 1
    return result


def category_capacity(category: Category) -> int:
    return max_combinations(category.value_counts())
