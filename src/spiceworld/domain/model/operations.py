"""Pending mutation sets for a product's variants and images.

Operations are immutable: rule services that need to adjust a request
(e.g. the thumbnail reconciler) return a patched copy instead of editing
the caller's object.
"""

from __future__ import annotations

from dataclasses import dataclass

from spiceworld.domain.exceptions import ValidationError
from spiceworld.domain.model.value_objects import Money


@dataclass(frozen=True)
class VariantCreate:
    price: Money
    attribute_value_ids: tuple[str, ...] = ()
    stock: int = 0
    sku: str | None = None

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError("Variant stock cannot be negative")
        object.__setattr__(self, "attribute_value_ids", tuple(self.attribute_value_ids))


@dataclass(frozen=True)
class VariantUpdate:
    """Partial update; ``None`` leaves the field unchanged."""

    id: str
    price: Money | None = None
    attribute_value_ids: tuple[str, ...] | None = None
    stock: int | None = None
    sku: str | None = None

    def __post_init__(self) -> None:
        if self.stock is not None and self.stock < 0:
            raise ValidationError("Variant stock cannot be negative")
        if self.attribute_value_ids is not None:
            object.__setattr__(self, "attribute_value_ids", tuple(self.attribute_value_ids))


@dataclass(frozen=True)
class VariantOperations:
    create: tuple[VariantCreate, ...] = ()
    update: tuple[VariantUpdate, ...] = ()
    delete: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "create", tuple(self.create))
        object.__setattr__(self, "update", tuple(self.update))
        object.__setattr__(self, "delete", tuple(self.delete))

    @property
    def is_empty(self) -> bool:
        return not (self.create or self.update or self.delete)


@dataclass(frozen=True)
class ImageCreate:
    """A new image; ``file_index`` points into the request's uploaded files."""

    file_index: int
    alt_text: str | None = None
    is_thumbnail: bool | None = None


@dataclass(frozen=True)
class ImageUpdate:
    id: str
    file_index: int | None = None
    alt_text: str | None = None
    is_thumbnail: bool | None = None


@dataclass(frozen=True)
class ImageOperations:
    create: tuple[ImageCreate, ...] = ()
    update: tuple[ImageUpdate, ...] = ()
    delete: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "create", tuple(self.create))
        object.__setattr__(self, "update", tuple(self.update))
        object.__setattr__(self, "delete", tuple(self.delete))

    @property
    def is_empty(self) -> bool:
        return not (self.create or self.update or self.delete)


@dataclass(frozen=True)
class UploadFile:
    """Raw bytes of a file submitted with a request."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
