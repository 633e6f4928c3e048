"""Application service: Create Product use case.

Runs the full rule pipeline before anything is written:
1. variant rules against the chosen category (VVA1-VVA4)
2. image operation rules (VIO1-VIO5, at least one image)
3. thumbnail reconciliation
4. publish-readiness: a requested PUBLISHED that fails PUB1/PUB2 is
   stored as DRAFT and the reasons come back as warnings

Files are uploaded only after every rule passed and are deleted again
if the database write fails.
"""

from __future__ import annotations

import logging

from spiceworld.application.dto import ProductDTO, product_to_dto
from spiceworld.application.image_uploads import discard, upload_referenced_files
from spiceworld.application.listing_cache import ListingCache
from spiceworld.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ProductValidationError,
    ValidationError,
)
from spiceworld.domain.gateway.file_storage import FileStorage
from spiceworld.domain.model.operations import (
    ImageCreate,
    ImageOperations,
    UploadFile,
    VariantCreate,
    VariantOperations,
)
from spiceworld.domain.model.product import Product, ProductStatus, slugify
from spiceworld.domain.model.value_objects import new_id
from spiceworld.domain.repository.unit_of_work import UnitOfWork
from spiceworld.domain.service.image_validation import validate_image_operations
from spiceworld.domain.service.publish_readiness import resolve_publish_status
from spiceworld.domain.service.thumbnail import reconcile_thumbnail
from spiceworld.domain.service.variant_validation import validate_variants

logger = logging.getLogger(__name__)


class CreateProductHandler:

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
        name: str,
        category_id: str,
        variants: list[VariantCreate],
        images: list[ImageCreate],
        files: list[UploadFile],
        description: str | None = None,
        status: ProductStatus | None = None,
    ) -> ProductDTO:
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        name = name.strip()
        variant_ops = VariantOperations(create=variants)
        image_ops = ImageOperations(create=images)

        with self._uow:
            category = self._uow.categories.get_by_id(category_id)
            if category is None:
                raise EntityNotFoundError(f"Category with ID '{category_id}' not found")

            slug = slugify(name)
            if self._uow.products.get_by_slug(slug) is not None:
                raise ConflictError(f"Product '{name}' already exists")

            ProductValidationError.raise_for(
                "VARIANTS_VALIDATION_FAILED",
                "Variant validation failed",
                "variants",
                validate_variants(category, variant_ops),
            )
            ProductValidationError.raise_for(
                "IMAGES_VALIDATION_FAILED",
                "Image validation failed",
                "images",
                validate_image_operations(image_ops, len(files)),
            )
            image_ops = reconcile_thumbnail(image_ops)
            decision = resolve_publish_status(
                requested_status=status,
                current_status=ProductStatus.DRAFT,
                current_variants=(),
                ops=variant_ops,
                category_has_attributes=category.has_attributes,
            )

            uploads = upload_referenced_files(self._storage, name, files, image_ops)
            try:
                product = Product(
                    id=new_id(),
                    name=name,
                    slug=slug,
                    category_id=category.id,
                    description=description,
                    status=decision.final_status,
                )
                product.apply_variant_operations(variant_ops)
                product.apply_image_operations(image_ops, uploads.for_creates(image_ops), {})
                self._uow.products.add(product)
                self._uow.commit()
            except Exception:
                discard(self._storage, uploads.keys, "failed product create")
                raise

        if decision.downgraded:
            logger.info(
                "Product %s stored as DRAFT: %s",
                product.id,
                ", ".join(w.code for w in decision.warnings),
            )
        self._cache.invalidate(category_ids=[product.category_id], statuses=[product.status])
        return product_to_dto(product, decision.warnings)
