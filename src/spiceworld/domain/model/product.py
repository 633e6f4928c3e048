"""Product aggregate.

A product owns its variants (priced, stocked attribute combinations) and
its images.  The aggregate is a mutable dataclass: the application layer
validates a whole request first and only then applies the operations here.

Invariants (enforced by the rule services before any mutation):
- at least one variant and at least one image
- exactly one image flagged as thumbnail
- no two variants share the same attribute combination
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.operations import ImageOperations, VariantOperations
from spiceworld.domain.model.value_objects import Money, new_id


class ProductStatus(Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


@dataclass(frozen=True)
class StoredFile:
    key: str
    url: str


@dataclass(frozen=True)
class StoredImage:
    """The three size variants the storage service returns for one upload."""

    thumb: StoredFile
    medium: StoredFile
    large: StoredFile

    @property
    def keys(self) -> list[str]:
        return [self.thumb.key, self.medium.key, self.large.key]


@dataclass
class Image:
    id: str
    files: StoredImage
    alt_text: str | None = None
    is_thumbnail: bool = False


@dataclass
class ProductVariant:
    id: str
    price: Money
    stock: int = 0
    sku: str | None = None
    attribute_value_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError(f"Variant stock cannot be negative, got {self.stock}")
        self.attribute_value_ids = tuple(self.attribute_value_ids)

    @property
    def currency(self) -> str:
        return self.price.currency

    @property
    def combination(self) -> tuple[str, ...]:
        """Order-independent identity of the variant's attribute values."""
        return tuple(sorted(self.attribute_value_ids))

    @property
    def label(self) -> str:
        return self.sku or self.id


@dataclass
class Product:
    """Aggregate root for a sellable catalog entry."""

    id: str
    name: str
    slug: str
    category_id: str
    description: str | None = None
    status: ProductStatus = ProductStatus.DRAFT
    variants: list[ProductVariant] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    version: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Queries --------------------------------------------------------------

    @property
    def thumbnail(self) -> Image | None:
        for image in self.images:
            if image.is_thumbnail:
                return image
        return None

    def find_variant(self, variant_id: str) -> ProductVariant:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        raise ValidationError(f"Variant '{variant_id}' does not belong to product '{self.name}'")

    def find_image(self, image_id: str) -> Image:
        for image in self.images:
            if image.id == image_id:
                return image
        raise ValidationError(f"Image '{image_id}' does not belong to product '{self.name}'")

    # --- Mutations ------------------------------------------------------------

    def rename(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        self.name = name.strip()
        self.slug = slugify(self.name)

    def apply_variant_operations(
        self,
        ops: VariantOperations,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        deleted = set(ops.delete)
        for variant_id in deleted:
            self.find_variant(variant_id)
        self.variants = [v for v in self.variants if v.id not in deleted]

        for op in ops.update:
            variant = self.find_variant(op.id)
            if op.price is not None:
                variant.price = op.price
            if op.stock is not None:
                variant.stock = op.stock
            if op.sku is not None:
                variant.sku = op.sku
            if op.attribute_value_ids is not None:
                variant.attribute_value_ids = tuple(op.attribute_value_ids)

        for op in ops.create:
            self.variants.append(
                ProductVariant(
                    id=id_factory(),
                    price=op.price,
                    stock=op.stock,
                    sku=op.sku,
                    attribute_value_ids=tuple(op.attribute_value_ids),
                )
            )

    def clear_attribute_values(self) -> None:
        for variant in self.variants:
            variant.attribute_value_ids = ()

    def apply_image_operations(
        self,
        ops: ImageOperations,
        created_files: list[StoredImage],
        replaced_files: dict[str, StoredImage],
        id_factory: Callable[[], str] = new_id,
    ) -> list[str]:
        """Apply reconciled image operations.

        ``created_files`` lines up with ``ops.create``; ``replaced_files``
        maps image ids whose file is replaced to the new upload.  Returns the
        storage keys that are no longer referenced and may be deleted.
        """
        orphaned_keys: list[str] = []

        deleted = set(ops.delete)
        for image in self.images:
            if image.id in deleted:
                orphaned_keys.extend(image.files.keys)
        self.images = [img for img in self.images if img.id not in deleted]

        for op in ops.update:
            image = self.find_image(op.id)
            new_files = replaced_files.get(op.id)
            if new_files is not None:
                orphaned_keys.extend(image.files.keys)
                image.files = new_files
            if op.alt_text is not None:
                image.alt_text = op.alt_text
            if op.is_thumbnail is not None:
                image.is_thumbnail = op.is_thumbnail

        for op, files in zip(ops.create, created_files):
            self.images.append(
                Image(
                    id=id_factory(),
                    files=files,
                    alt_text=op.alt_text or f"{self.name} image",
                    is_thumbnail=bool(op.is_thumbnail),
                )
            )

        return orphaned_keys


@dataclass(frozen=True)
class VariantSnapshot:
    """Read-only view of a variant together with its owning product."""

    product_id: str
    product_name: str
    product_status: ProductStatus
    variant_id: str
    sku: str | None
    price: Money
    stock: int
