"""Unit tests for keeping products consistent with a shrinking category schema."""

from spiceworld.domain.model.product import ProductStatus
from spiceworld.domain.service.schema_reconciliation import reconcile_product, strip_removed_values
from tests.builders import make_category, make_product, make_variant


def _product(status=ProductStatus.PUBLISHED):
    return make_product(
        status=status,
        variants=[
            make_variant("v1", values=("weight-50g", "heat-mild")),
            make_variant("v2", values=("weight-100g", "heat-mild")),
        ],
    )


def _category_without(*value_ids):
    category = make_category(attributes={"Weight": ["50g", "100g"], "Heat": ["mild", "hot"]})
    for attr in category.attributes:
        attr.values = [v for v in attr.values if v.id not in value_ids]
    return category


class TestStripRemovedValues:

    def test_reports_whether_anything_changed(self):
        product = _product()

        assert strip_removed_values(product, {"heat-hot"}) is False
        assert strip_removed_values(product, {"heat-mild"}) is True
        assert [v.attribute_value_ids for v in product.variants] == [
            ("weight-50g",),
            ("weight-100g",),
        ]


class TestReconcileProduct:

    def test_untouched_product_returns_none(self):
        product = _product()

        assert reconcile_product(_category_without("heat-hot"), product, ["heat-hot"]) is None
        assert product.status == ProductStatus.PUBLISHED

    def test_still_distinct_variants_stay_published(self):
        product = _product()
        category = _category_without()
        category.remove_attribute("cat-1-heat")

        warnings = reconcile_product(category, product, ["heat-mild", "heat-hot"])

        assert warnings == ()
        assert product.status == ProductStatus.PUBLISHED

    def test_collapsed_variants_move_to_draft(self):
        product = _product()
        category = _category_without()
        category.remove_attribute("cat-1-weight")

        warnings = reconcile_product(category, product, ["weight-50g", "weight-100g"])

        assert warnings
        assert {issue.code for issue in warnings} & {"VVA3", "VVA4"}
        assert product.status == ProductStatus.DRAFT

    def test_draft_products_are_stripped_without_warnings(self):
        product = _product(ProductStatus.DRAFT)
        category = _category_without()
        category.remove_attribute("cat-1-weight")

        assert reconcile_product(category, product, ["weight-50g", "weight-100g"]) == ()
        assert product.variants[0].attribute_value_ids == ("heat-mild",)
