"""Row <-> domain mapping for images, shared by products and categories."""

from __future__ import annotations

from spiceworld.domain.model.product import Image, StoredFile, StoredImage
from spiceworld.infrastructure.persistence.tables import ImageRow


def image_to_domain(row: ImageRow) -> Image:
    return Image(
        id=row.id,
        files=StoredImage(
            thumb=StoredFile(key=row.key_thumb, url=row.url_thumb),
            medium=StoredFile(key=row.key_medium, url=row.url_medium),
            large=StoredFile(key=row.key_large, url=row.url_large),
        ),
        alt_text=row.alt_text,
        is_thumbnail=row.is_thumbnail,
    )


def write_image(row: ImageRow, image: Image, position: int) -> None:
    row.key_thumb = image.files.thumb.key
    row.key_medium = image.files.medium.key
    row.key_large = image.files.large.key
    row.url_thumb = image.files.thumb.url
    row.url_medium = image.files.medium.url
    row.url_large = image.files.large.url
    row.alt_text = image.alt_text
    row.is_thumbnail = image.is_thumbnail
    row.position = position


def new_image_row(image: Image, position: int) -> ImageRow:
    row = ImageRow(id=image.id)
    write_image(row, image, position)
    return row
