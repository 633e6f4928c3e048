"""Thumbnail reconciliation.

Given pending image operations and the owner's current images, return a
patched copy of the operations in which exactly one resulting image is
flagged as thumbnail.

Election order (first match wins):
1. first create flagged as thumbnail
2. first update flagged as thumbnail
3. the current thumbnail, unless it is deleted or explicitly unset
4. first create
5. first surviving update that replaces the file
6. first surviving current image not explicitly unset, then any survivor

Every other explicit flag is cleared.  A current thumbnail that loses gets
an ``update(is_thumbnail=False)``; an existing image that wins gets an
``update(is_thumbnail=True)``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from spiceworld.domain.model.operations import ImageOperations, ImageUpdate
from spiceworld.domain.model.product import Image


def reconcile_thumbnail(
    ops: ImageOperations,
    current_images: Sequence[Image] = (),
) -> ImageOperations:
    deleted = set(ops.delete)
    current_thumbnail = next(
        (img for img in current_images if img.is_thumbnail and img.id not in deleted),
        None,
    )

    winner = _elect(ops, current_images, deleted, current_thumbnail)
    if winner is None:
        # Nothing left to flag; image validation reports the empty set.
        return ops
    source, key = winner

    creates = tuple(
        replace(op, is_thumbnail=(source == "create" and index == key))
        for index, op in enumerate(ops.create)
    )

    updates: list[ImageUpdate] = []
    for op in ops.update:
        if source == "existing" and op.id == key:
            updates.append(replace(op, is_thumbnail=True))
        elif op.is_thumbnail:
            updates.append(replace(op, is_thumbnail=False))
        else:
            updates.append(op)

    if current_thumbnail is not None and not (
        source == "existing" and key == current_thumbnail.id
    ):
        _upsert(updates, current_thumbnail.id, False)

    already_flagged = current_thumbnail is not None and key == current_thumbnail.id
    if source == "existing" and not already_flagged:
        _upsert(updates, key, True)

    return replace(ops, create=creates, update=tuple(updates))


def _elect(
    ops: ImageOperations,
    current_images: Sequence[Image],
    deleted: set[str],
    current_thumbnail: Image | None,
) -> tuple[str, int | str] | None:
    for index, op in enumerate(ops.create):
        if op.is_thumbnail:
            return "create", index

    for op in ops.update:
        if op.is_thumbnail and op.id not in deleted:
            return "existing", op.id

    unset = {op.id for op in ops.update if op.is_thumbnail is False}
    if current_thumbnail is not None and current_thumbnail.id not in unset:
        return "existing", current_thumbnail.id

    if ops.create:
        return "create", 0

    known = {img.id for img in current_images}
    for op in ops.update:
        if op.file_index is not None and op.id not in deleted | unset and op.id in known:
            return "existing", op.id

    survivors = [img for img in current_images if img.id not in deleted]
    for img in survivors:
        if img.id not in unset:
            return "existing", img.id
    if survivors:
        # Every survivor was explicitly unset; one of them still has to win.
        return "existing", survivors[0].id

    return None


def _upsert(updates: list[ImageUpdate], image_id: str, is_thumbnail: bool) -> None:
    for index, op in enumerate(updates):
        if op.id == image_id:
            updates[index] = replace(op, is_thumbnail=is_thumbnail)
            return
    updates.append(ImageUpdate(id=image_id, is_thumbnail=is_thumbnail))
