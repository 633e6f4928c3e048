"""Application service: Bulk Update Products use case.

Sets the status and/or category of many products in one transaction.
Every product is checked before any is written: a category that cannot
hold a product's variants (VVA5) rejects the whole batch.  Products
that fail the publish-readiness or auto-draft rules are stored as
DRAFT and reported in ``warnings`` keyed by product id.
"""

from __future__ import annotations

import logging

from spiceworld.application.dto import BulkUpdateResultDTO
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import (
    EntityNotFoundError,
    ProductValidationError,
    ValidationError,
)
from spiceworld.domain.model.category import Category
from spiceworld.domain.model.product import Product, ProductStatus
from spiceworld.domain.model.validation import ValidationIssue
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.publish_readiness import (
    StatusDecision,
    analyze_variant_operations,
    determine_status,
)
from spiceworld.domain.service.variant_validation import validate_category_change_capacity

logger = logging.getLogger(__name__)


class BulkUpdateProductsHandler:

    def __init__(self, uow: UnitOfWork, cache: ListingCache) -> None:
        self._uow = uow
        self._cache = cache

    def handle(
        self,
        product_ids: list[str],
        status: ProductStatus | None = None,
        category_id: str | None = None,
    ) -> BulkUpdateResultDTO:
        if not product_ids:
            raise ValidationError("At least one product id is required")
        if status is None and category_id is None:
            raise ValidationError("Nothing to update: give a status or a category")

        touched_categories: set[str] = set()
        touched_statuses: set[ProductStatus] = set()
        warnings: dict[str, list[dict]] = {}

        with self._uow:
            products = [self._load(pid) for pid in dict.fromkeys(product_ids)]
            new_category = self._load_category(category_id) if category_id else None

            issues: list[ValidationIssue] = []
            if new_category is not None:
                for product in products:
                    if product.category_id == new_category.id:
                        continue
                    issue = validate_category_change_capacity(
                        new_category, len(product.variants)
                    )
                    if issue is not None:
                        issues.append(issue.with_context(f"product {product.name!r}"))
            ProductValidationError.raise_for(
                "BULK_VALIDATION_FAILED", "Bulk update rejected", "ids", issues
            )

            categories: dict[str, Category] = {}
            for product in products:
                touched_categories.add(product.category_id)
                touched_statuses.add(product.status)

                decision = self._decide(product, status, new_category, categories)
                if new_category is not None and product.category_id != new_category.id:
                    product.clear_attribute_values()
                    product.category_id = new_category.id
                product.status = decision.final_status
                product.version = self._uow.products.update(product, product.version)

                touched_categories.add(product.category_id)
                touched_statuses.add(product.status)
                if decision.warnings:
                    warnings[product.id] = [w.to_payload() for w in decision.warnings]

            self._uow.commit()

        logger.info(
            "Bulk-updated %d product(s); %d downgraded to DRAFT",
            len(products),
            len(warnings),
        )
        self._cache.invalidate(category_ids=touched_categories, statuses=touched_statuses)
        return BulkUpdateResultDTO(updated_ids=[p.id for p in products], warnings=warnings)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, product_id: str) -> Product:
        product = self._uow.products.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return product

    def _load_category(self, category_id: str) -> Category:
        category = self._uow.categories.get_by_id(category_id)
        if category is None:
            raise EntityNotFoundError(f"Category with ID '{category_id}' not found")
        return category

    def _decide(
        self,
        product: Product,
        status: ProductStatus | None,
        new_category: Category | None,
        categories: dict[str, Category],
    ) -> StatusDecision:
        category_changed = new_category is not None and product.category_id != new_category.id
        if category_changed:
            category = new_category
        else:
            if product.category_id not in categories:
                categories[product.category_id] = self._load_category(product.category_id)
            category = categories[product.category_id]

        analysis = analyze_variant_operations(
            None,
            product.variants,
            category.has_attributes,
            category_changing=category_changed,
        )
        return determine_status(
            requested_status=status,
            current_status=product.status,
            current_variants=product.variants,
            ops=None,
            category_has_attributes=category.has_attributes,
            category_changed=category_changed,
            analysis=analysis,
        )
