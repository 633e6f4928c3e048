"""Unit tests for the Category aggregate's schema edits."""

import pytest

from spiceworld.domain.exceptions import ConflictError, EntityNotFoundError, ValidationError
from spiceworld.domain.model.category import Attribute, AttributeValue, normalize_category_name
from tests.builders import make_category


def _category():
    return make_category(attributes={"Weight": ["50g", "100g"], "Heat": ["mild", "hot"]})


class TestLookups:

    def test_find_attribute_and_owner_of_value(self):
        category = _category()

        assert category.find_attribute("cat-1-heat").name == "Heat"
        assert category.attribute_of_value("weight-100g").id == "cat-1-weight"

    def test_unknown_ids_raise_not_found(self):
        category = _category()

        with pytest.raises(EntityNotFoundError):
            category.find_attribute("cat-1-origin")
        with pytest.raises(EntityNotFoundError):
            category.attribute_of_value("weight-1kg")


class TestAttributeEdits:

    def test_add_attribute_adopts_category(self):
        category = _category()

        category.add_attribute(Attribute("a-new", "Origin", "elsewhere"))

        assert category.attributes[-1].category_id == "cat-1"

    def test_add_attribute_name_clash_is_conflict(self):
        category = _category()

        with pytest.raises(ConflictError, match="Attribute names already exist: weight"):
            category.add_attribute(Attribute("a-new", "weight", "cat-1"))
        assert len(category.attributes) == 2

    def test_rename_onto_other_attribute_is_conflict(self):
        category = _category()

        with pytest.raises(ConflictError, match="Attribute name conflicts: Heat"):
            category.rename_attribute("cat-1-weight", "Heat")

    def test_rename_keeps_own_name_with_new_case(self):
        category = _category()

        category.rename_attribute("cat-1-weight", "  WEIGHT ")

        assert category.find_attribute("cat-1-weight").name == "WEIGHT"

    def test_blank_attribute_name_rejected(self):
        with pytest.raises(ValidationError):
            _category().rename_attribute("cat-1-weight", "  ")

    def test_remove_attribute_returns_its_value_ids(self):
        category = _category()

        removed = category.remove_attribute("cat-1-heat")

        assert removed == ["heat-mild", "heat-hot"]
        assert [a.id for a in category.attributes] == ["cat-1-weight"]


class TestValueEdits:

    def test_add_values_rejects_existing_value(self):
        category = _category()

        with pytest.raises(ConflictError, match="Attribute Weight already has values: 50G"):
            category.add_values("cat-1-weight", [AttributeValue("w-x", "50G")])

    def test_add_values_rejects_duplicates_within_batch(self):
        category = _category()

        with pytest.raises(ValidationError):
            category.add_values(
                "cat-1-weight", [AttributeValue("w-1", "1kg"), AttributeValue("w-2", "1KG")]
            )
        assert len(category.find_attribute("cat-1-weight").values) == 2

    def test_rename_value_keeps_id(self):
        category = _category()

        renamed = category.rename_value("heat-hot", "very hot")

        assert renamed == AttributeValue("heat-hot", "very hot")
        assert category.find_value("heat-hot").value == "very hot"

    def test_rename_value_onto_sibling_is_conflict(self):
        with pytest.raises(ConflictError):
            _category().rename_value("heat-hot", "Mild")

    def test_remove_values_reports_unknown_ids(self):
        category = _category()

        with pytest.raises(EntityNotFoundError, match="Value IDs not found: heat-mild"):
            category.remove_values("cat-1-weight", ["weight-50g", "heat-mild"])
        assert len(category.find_attribute("cat-1-weight").values) == 2

    def test_remove_values_returns_removed_ids(self):
        category = _category()

        assert category.remove_values("cat-1-weight", ["weight-50g"]) == ["weight-50g"]
        assert category.value_to_attribute() == {
            "weight-100g": "cat-1-weight",
            "heat-mild": "cat-1-heat",
            "heat-hot": "cat-1-heat",
        }


class TestNameNormalization:

    def test_collapses_whitespace_and_lowercases(self):
        assert normalize_category_name("  Ground   Spices ") == "ground spices"
