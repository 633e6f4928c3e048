"""Application service: Update Product use case (partial update).

Steps:
1. Optimistic version check against the caller's ``expected_version``.
2. Early return when nothing would change (no version bump, no cache
   invalidation).
3. Image rules, then thumbnail reconciliation against current images.
4. On a category change without variant operations, the current variant
   count must fit the new category (VVA5).
5. Variant rules against the *target* category.
6. Status resolution: category-change auto-draft, then PUB1/PUB2.
7. Upload, apply, and write with a version compare-and-swap.

Variant values that belonged to the old category are cleared when the
request does not reconfigure every variant for the new one.
"""

from __future__ import annotations

import logging

from spiceworld.application.dto import ProductDTO, product_to_dto
from spiceworld.application.image_uploads import (
    UploadedImages,
    discard,
    upload_referenced_files,
)
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ProductValidationError,
    VersionConflictError,
)
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.operations import ImageOperations, UploadFile, VariantOperations
from spiceworld.domain.model.product import ProductStatus, slugify
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.change_detection import (
    has_image_changes,
    has_product_changes,
    has_variant_changes,
)
from spiceworld.domain.service.image_validation import validate_image_operations
from spiceworld.domain.service.publish_readiness import (
    analyze_variant_operations,
    determine_status,
)
from spiceworld.domain.service.thumbnail import reconcile_thumbnail
from spiceworld.domain.service.variant_validation import (
    validate_category_change_capacity,
    validate_variants,
)

logger = logging.getLogger(__name__)


class UpdateProductHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        storage: FileStorage,
        cache: ListingCache,
    ) -> None:
        self._uow = uow
        self._storage = storage
        self._cache = cache

    def handle(
        self,
        product_id: str,
        expected_version: int | None = None,
        name: str | None = None,
        description: str | None = None,
        status: ProductStatus | None = None,
        category_id: str | None = None,
        variants: VariantOperations | None = None,
        images: ImageOperations | None = None,
        files: list[UploadFile] | None = None,
    ) -> ProductDTO:
        files = list(files or [])
        if variants is not None and variants.is_empty:
            variants = None
        if images is not None and images.is_empty:
            images = None

        with self._uow:
            product = self._uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

            if expected_version is not None and expected_version != product.version:
                logger.warning(
                    "Stale update of product %s (expected v%d, stored v%d)",
                    product.id,
                    expected_version,
                    product.version,
                )
                raise VersionConflictError(expected_version, product.version)
            read_version = product.version

            changed = (
                has_product_changes(product, name, description, status, category_id)
                or has_image_changes(images, product.images)
                or has_variant_changes(variants, product.variants)
            )
            if not changed:
                return product_to_dto(product)

            before_category, before_status = product.category_id, product.status

            if images is not None:
                ProductValidationError.raise_for(
                    "IMAGES_VALIDATION_FAILED",
                    "Image validation failed",
                    "images",
                    validate_image_operations(images, len(files), product.images),
                )
                images = reconcile_thumbnail(images, product.images)

            category_changed = category_id is not None and category_id != product.category_id
            target_id = category_id if category_changed else product.category_id
            category = self._uow.categories.get_by_id(target_id)
            if category is None:
                raise EntityNotFoundError(f"Category with ID '{target_id}' not found")

            if category_changed and variants is None:
                issue = validate_category_change_capacity(category, len(product.variants))
                ProductValidationError.raise_for(
                    "VARIANTS_VALIDATION_FAILED",
                    "Variant validation failed",
                    "categoryId",
                    [issue] if issue else [],
                )

            if category_changed or variants is not None:
                ProductValidationError.raise_for(
                    "VARIANTS_VALIDATION_FAILED",
                    "Variant validation failed",
                    "variants",
                    validate_variants(category, variants, product.variants),
                )

            analysis = analyze_variant_operations(
                variants,
                product.variants,
                category.has_attributes,
                category_changing=category_changed,
            )
            decision = determine_status(
                requested_status=status,
                current_status=product.status,
                current_variants=product.variants,
                ops=variants,
                category_has_attributes=category.has_attributes,
                category_changed=category_changed,
                analysis=analysis,
            )

            if name is not None and slugify(name) != product.slug:
                other = self._uow.products.get_by_slug(slugify(name))
                if other is not None and other.id != product.id:
                    raise ConflictError(f"Product '{name.strip()}' already exists")

            uploads = UploadedImages()
            if images is not None:
                uploads = upload_referenced_files(
                    self._storage, (name or product.name).strip(), files, images
                )

            orphaned: list[str] = []
            try:
                if name is not None:
                    product.rename(name)
                if description is not None:
                    product.description = description
                if category_changed:
                    product.category_id = category.id
                    if not analysis.is_properly_reconfigured:
                        # Values given in this request are re-applied below.
                        product.clear_attribute_values()
                if variants is not None:
                    product.apply_variant_operations(variants)
                if images is not None:
                    orphaned = product.apply_image_operations(
                        images, uploads.for_creates(images), uploads.for_updates(images)
                    )
                product.status = decision.final_status

                product.version = self._uow.products.update(product, read_version)
                for op in variants.update if variants is not None else ():
                    if op.stock is not None:
                        self._uow.products.set_stock(op.id, op.stock)
                self._uow.commit()
            except Exception as exc:
                if isinstance(exc, VersionConflictError):
                    logger.warning("Concurrent update of product %s: %s", product.id, exc)
                discard(self._storage, uploads.keys, "failed product update")
                raise

        discard(self._storage, orphaned, "product update")
        if decision.downgraded:
            logger.info(
                "Product %s set to DRAFT: %s",
                product.id,
                ", ".join(w.code for w in decision.warnings),
            )
        self._cache.invalidate(
            category_ids={before_category, product.category_id},
            statuses={before_status, product.status},
        )
        return product_to_dto(product, decision.warnings)
