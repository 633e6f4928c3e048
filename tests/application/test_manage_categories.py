"""Integration tests for the category patch, delete and attribute use cases."""

import pytest

from spiceworld.application.delete_category import DeleteCategoryHandler
from spiceworld.application.dto import (
    AttributeOperationsSpec,
    AttributeSpec,
    AttributeUpdateSpec,
)
from spiceworld.application.listing_cache import ListingCache
from spiceworld.application.manage_attributes import (
    AddAttributeValueHandler,
    CreateAttributeHandler,
    DeleteAttributeHandler,
    DeleteAttributeValueHandler,
    RenameAttributeHandler,
    RenameAttributeValueHandler,
)
from spiceworld.application.update_category import UpdateCategoryHandler
from spiceworld.domain.exceptions import ConflictError, EntityNotFoundError
from spiceworld.domain.model.listing import ListingQuery
from spiceworld.domain.model.product import ProductStatus
from tests.builders import make_category, make_image, make_product, make_variant
from tests.fakes import FakeFileStorage, FakeUnitOfWork, image_file


def _setup():
    uow = FakeUnitOfWork()
    category = make_category(attributes={"Weight": ["50g", "100g"], "Heat": ["mild"]})
    category.image = make_image("cat-img", is_thumbnail=True)
    uow.store.categories[category.id] = category
    other = make_category("cat-2", "whole spices")
    uow.store.categories[other.id] = other
    product = make_product(
        variants=[
            make_variant("v1", values=("weight-50g", "heat-mild")),
            make_variant("v2", values=("weight-100g", "heat-mild")),
        ]
    )
    uow.store.products[product.id] = product
    cache = ListingCache()
    for category_id in ("cat-1", "cat-2"):
        cache.put(ListingQuery(category_ids=(category_id,)), [category_id])
    return uow, FakeFileStorage(), cache


def _ops(**kwargs):
    return AttributeOperationsSpec(**kwargs)


class TestUpdateCategory:

    def test_rename_is_normalized(self):
        uow, storage, cache = _setup()

        dto = UpdateCategoryHandler(uow, storage, cache).handle("cat-1", name="  Ground  BLENDS")

        assert dto.name == "ground blends"
        assert uow.store.categories["cat-1"].name == "ground blends"

    def test_rename_onto_other_category_is_conflict(self):
        uow, storage, cache = _setup()

        with pytest.raises(ConflictError):
            UpdateCategoryHandler(uow, storage, cache).handle("cat-1", name="Whole Spices")
        assert uow.store.categories["cat-1"].name == "ground spices"

    def test_missing_category(self):
        uow, storage, cache = _setup()

        with pytest.raises(EntityNotFoundError):
            UpdateCategoryHandler(uow, storage, cache).handle("cat-9", name="x")

    def test_attribute_operations_applied_together(self):
        uow, storage, cache = _setup()
        ops = _ops(
            create=(AttributeSpec("Origin", ("es", "hu")),),
            update=(AttributeUpdateSpec("cat-1-weight", name="Net weight", add_values=("250g",)),),
        )

        dto = UpdateCategoryHandler(uow, storage, cache).handle("cat-1", attributes=ops)

        assert [a.name for a in dto.attributes] == ["Net weight", "Heat", "Origin"]
        assert [v.value for v in dto.attributes[0].values] == ["50g", "100g", "250g"]
        assert dto.drafted_product_ids == ()
        assert uow.store.products["prod-1"].version == 1

    def test_conflicting_create_leaves_category_untouched(self):
        uow, storage, cache = _setup()
        ops = _ops(
            update=(AttributeUpdateSpec("cat-1-heat", name="Spice level"),),
            create=(AttributeSpec("weight", ("1kg",)),),
        )

        with pytest.raises(ConflictError, match="Attribute names already exist"):
            UpdateCategoryHandler(uow, storage, cache).handle("cat-1", attributes=ops)
        assert [a.name for a in uow.store.categories["cat-1"].attributes] == ["Weight", "Heat"]

    def test_delete_then_create_may_reuse_a_name(self):
        uow, storage, cache = _setup()
        ops = _ops(delete=("cat-1-heat",), create=(AttributeSpec("Heat", ("hot",)),))

        dto = UpdateCategoryHandler(uow, storage, cache).handle("cat-1", attributes=ops)

        heat = dto.attributes[-1]
        assert heat.name == "Heat"
        assert heat.id != "cat-1-heat"

    def test_removed_value_strips_variants_and_drafts_product(self):
        uow, storage, cache = _setup()
        ops = _ops(update=(AttributeUpdateSpec("cat-1-weight", delete_value_ids=("weight-100g",)),))

        dto = UpdateCategoryHandler(uow, storage, cache).handle("cat-1", attributes=ops)

        product = uow.store.products["prod-1"]
        assert dto.drafted_product_ids == ("prod-1",)
        assert product.status == ProductStatus.DRAFT
        assert product.version == 2
        assert product.variants[1].attribute_value_ids == ("heat-mild",)

    def test_unknown_value_id_is_not_found(self):
        uow, storage, cache = _setup()
        ops = _ops(update=(AttributeUpdateSpec("cat-1-weight", delete_value_ids=("heat-mild",)),))

        with pytest.raises(EntityNotFoundError, match="Value IDs not found: heat-mild"):
            UpdateCategoryHandler(uow, storage, cache).handle("cat-1", attributes=ops)

    def test_image_replace_discards_old_files_after_commit(self):
        uow, storage, cache = _setup()

        dto = UpdateCategoryHandler(uow, storage, cache).handle("cat-1", image=image_file())

        assert storage.deleted == ["cat-img-thumb", "cat-img-medium", "cat-img-large"]
        assert dto.image_url == "https://cdn.test/ground spices/1-medium.jpg"
        assert uow.store.categories["cat-1"].image.id != "cat-img"

    def test_failed_commit_discards_new_upload(self, monkeypatch):
        uow, storage, cache = _setup()

        def fail():
            raise RuntimeError("disk full")

        monkeypatch.setattr(uow, "commit", fail)

        with pytest.raises(RuntimeError):
            UpdateCategoryHandler(uow, storage, cache).handle("cat-1", image=image_file())
        assert storage.stored == set()
        assert "cat-img-medium" not in storage.deleted
        assert uow.store.categories["cat-1"].image.id == "cat-img"

    def test_cache_entries_of_category_dropped(self):
        uow, storage, cache = _setup()

        UpdateCategoryHandler(uow, storage, cache).handle("cat-1", name="ground blends")

        assert cache.get(ListingQuery(category_ids=("cat-1",))) is None
        assert cache.get(ListingQuery(category_ids=("cat-2",))) == ["cat-2"]


class TestDeleteCategory:

    def test_refused_while_products_exist(self):
        uow, storage, cache = _setup()

        with pytest.raises(ConflictError, match="still has 1 product"):
            DeleteCategoryHandler(uow, storage, cache).handle("cat-1")
        assert "cat-1" in uow.store.categories
        assert storage.deleted == []

    def test_deletes_category_and_image(self):
        uow, storage, cache = _setup()
        del uow.store.products["prod-1"]

        DeleteCategoryHandler(uow, storage, cache).handle("cat-1")

        assert "cat-1" not in uow.store.categories
        assert storage.deleted == ["cat-img-thumb", "cat-img-medium", "cat-img-large"]
        assert cache.get(ListingQuery(category_ids=("cat-1",))) is None

    def test_missing_category(self):
        uow, storage, cache = _setup()

        with pytest.raises(EntityNotFoundError):
            DeleteCategoryHandler(uow, storage, cache).handle("cat-9")


class TestAttributeHandlers:

    def test_create_attribute(self):
        uow, _, cache = _setup()

        dto = CreateAttributeHandler(uow, cache).handle("cat-2", "Origin", ["es", " hu "])

        assert [v.value for v in dto.values] == ["es", "hu"]
        stored = uow.store.categories["cat-2"].find_attribute(dto.id)
        assert stored.category_id == "cat-2"
        assert cache.get(ListingQuery(category_ids=("cat-2",))) is None

    def test_create_attribute_on_missing_category(self):
        uow, _, cache = _setup()

        with pytest.raises(EntityNotFoundError):
            CreateAttributeHandler(uow, cache).handle("cat-9", "Origin", [])

    def test_rename_attribute_conflict(self):
        uow, _, cache = _setup()

        with pytest.raises(ConflictError, match="Attribute name conflicts: heat"):
            RenameAttributeHandler(uow, cache).handle("cat-1-weight", "heat")

    def test_rename_attribute(self):
        uow, _, cache = _setup()

        dto = RenameAttributeHandler(uow, cache).handle("cat-1-heat", "Spice level")

        assert dto.name == "Spice level"
        assert uow.store.categories["cat-1"].find_attribute("cat-1-heat").name == "Spice level"

    def test_delete_attribute_keeps_distinct_product_published(self):
        uow, _, cache = _setup()

        drafted = DeleteAttributeHandler(uow, cache).handle("cat-1-heat")

        product = uow.store.products["prod-1"]
        assert drafted == ()
        assert product.status == ProductStatus.PUBLISHED
        assert [v.attribute_value_ids for v in product.variants] == [
            ("weight-50g",),
            ("weight-100g",),
        ]

    def test_delete_missing_attribute(self):
        uow, _, cache = _setup()

        with pytest.raises(EntityNotFoundError, match="Attribute cat-1-origin not found"):
            DeleteAttributeHandler(uow, cache).handle("cat-1-origin")

    def test_add_value_rejects_duplicate(self):
        uow, _, cache = _setup()

        with pytest.raises(ConflictError):
            AddAttributeValueHandler(uow, cache).handle("cat-1-heat", "MILD")

    def test_add_and_rename_value(self):
        uow, _, cache = _setup()

        added = AddAttributeValueHandler(uow, cache).handle("cat-1-heat", "hot")
        renamed = RenameAttributeValueHandler(uow, cache).handle(added.id, "very hot")

        assert renamed.id == added.id
        assert uow.store.categories["cat-1"].find_value(added.id).value == "very hot"

    def test_delete_value_drafts_collapsed_product(self):
        uow, _, cache = _setup()

        drafted = DeleteAttributeValueHandler(uow, cache).handle("weight-100g")

        assert drafted == ("prod-1",)
        assert uow.store.products["prod-1"].status == ProductStatus.DRAFT

    def test_delete_missing_value(self):
        uow, _, cache = _setup()

        with pytest.raises(EntityNotFoundError):
            DeleteAttributeValueHandler(uow, cache).handle("weight-1kg")
