"""Unit tests for category capacity."""

from spiceworld.domain.service.capacity import category_capacity, max_combinations
from tests.builders import make_category


class TestCategoryCapacity:

    def test_capacity_is_product_of_value_counts(self):
        category = make_category(
            attributes={"Weight": ["50g", "100g", "250g"], "Origin": ["ES", "HU"]}
        )
        assert category_capacity(category) == 6

    def test_category_without_attributes_allows_one_variant(self):
        assert category_capacity(make_category()) == 1


class TestMaxCombinations:

    def test_attribute_without_values_counts_as_one(self):
        assert max_combinations([3, 0, 2]) == 6

    def test_empty_schema(self):
        assert max_combinations([]) == 1
