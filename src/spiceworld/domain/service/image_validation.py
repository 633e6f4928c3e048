"""Image operation rules.

Error codes:
- VIO1: duplicate file index in create operations
- VIO2: duplicate file index in update operations
- VIO3: same file index used by a create and an update
- VIO4: more than one image explicitly flagged as thumbnail
- VIO5: file index out of bounds
- IMAGE_NOT_FOUND: update/delete of an image the owner does not have
- IMG_EMPTY: no image would remain
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from spiceworld.domain.model.operations import ImageOperations
from spiceworld.domain.model.product import Image
from spiceworld.domain.model.validation import ValidationIssue


def validate_image_operations(
    ops: ImageOperations,
    file_count: int,
    current_images: Sequence[Image] = (),
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    create_indices = [op.file_index for op in ops.create]
    update_indices = [op.file_index for op in ops.update if op.file_index is not None]

    duplicates = _duplicates(create_indices)
    if duplicates:
        issues.append(
            ValidationIssue(
                code="VIO1",
                message=f"Duplicate fileIndex in create: {_join(duplicates)}",
                field="images.create",
                details={"conflicts": {"overlapping": duplicates}},
            )
        )

    duplicates = _duplicates(update_indices)
    if duplicates:
        issues.append(
            ValidationIssue(
                code="VIO2",
                message=f"Duplicate fileIndex in update: {_join(duplicates)}",
                field="images.update",
                details={"conflicts": {"overlapping": duplicates}},
            )
        )

    overlap = sorted(set(create_indices) & set(update_indices))
    if overlap:
        issues.append(
            ValidationIssue(
                code="VIO3",
                message=f"fileIndex {_join(overlap)} used in both create and update",
                field="images",
                details={"conflicts": {"overlapping": overlap}},
            )
        )

    explicit = sum(1 for op in ops.create if op.is_thumbnail) + sum(
        1 for op in ops.update if op.is_thumbnail
    )
    if explicit > 1:
        issues.append(
            ValidationIssue(
                code="VIO4",
                message=f"Multiple thumbnails in final state ({explicit} found)",
                field="images.isThumbnail",
            )
        )

    out_of_bounds = [
        idx for idx in create_indices + update_indices if idx < 0 or idx >= file_count
    ]
    if out_of_bounds:
        issues.append(
            ValidationIssue(
                code="VIO5",
                message=(
                    f"Invalid fileIndex {_join(out_of_bounds)}. "
                    f"Only {file_count} files provided."
                ),
                field="images",
                details={"constraints": {"current": file_count}},
            )
        )

    known_ids = {img.id for img in current_images}
    for op_id in [op.id for op in ops.update] + list(ops.delete):
        if op_id not in known_ids:
            issues.append(
                ValidationIssue(
                    code="IMAGE_NOT_FOUND",
                    message=f"Image {op_id} does not belong to this product",
                    field="images",
                    details={"invalidValue": op_id},
                )
            )

    deleted = set(ops.delete)
    remaining = sum(1 for img in current_images if img.id not in deleted)
    if remaining + len(ops.create) == 0:
        issues.append(
            ValidationIssue(
                code="IMG_EMPTY",
                message="Product must have at least 1 image",
                field="images",
            )
        )

    return issues


def _duplicates(indices: list[int]) -> list[int]:
    return sorted(idx for idx, count in Counter(indices).items() if count > 1)


def _join(values: list[int]) -> str:
    return ", ".join(str(v) for v in values)
