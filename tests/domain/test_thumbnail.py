"""Unit tests for thumbnail reconciliation."""

from spiceworld.domain.model.operations import ImageCreate, ImageOperations, ImageUpdate
from spiceworld.domain.service.thumbnail import reconcile_thumbnail
from tests.builders import make_image


def _final_thumbnails(ops, current=()):
    """Identify every image flagged as thumbnail after applying ``ops``."""
    flags = {img.id: img.is_thumbnail for img in current if img.id not in set(ops.delete)}
    for op in ops.update:
        if op.is_thumbnail is not None and op.id in flags:
            flags[op.id] = op.is_thumbnail
    result = [image_id for image_id, flagged in flags.items() if flagged]
    result += [f"create[{i}]" for i, op in enumerate(ops.create) if op.is_thumbnail]
    return result


class TestElection:

    def test_first_create_becomes_thumbnail_by_default(self):
        ops = reconcile_thumbnail(ImageOperations(create=[ImageCreate(0), ImageCreate(1)]))
        assert _final_thumbnails(ops) == ["create[0]"]

    def test_explicit_create_flag_wins_over_current_thumbnail(self):
        current = [make_image("a", is_thumbnail=True)]
        ops = reconcile_thumbnail(
            ImageOperations(create=[ImageCreate(0), ImageCreate(1, is_thumbnail=True)]), current
        )
        assert _final_thumbnails(ops, current) == ["create[1]"]

    def test_create_flag_beats_update_flag(self):
        current = [make_image("a", is_thumbnail=True), make_image("b")]
        ops = reconcile_thumbnail(
            ImageOperations(
                create=[ImageCreate(0, is_thumbnail=True)],
                update=[ImageUpdate("b", is_thumbnail=True)],
            ),
            current,
        )

        assert _final_thumbnails(ops, current) == ["create[0]"]
        (update_b,) = [op for op in ops.update if op.id == "b"]
        assert update_b.is_thumbnail is False

    def test_several_flagged_creates_keep_only_the_first(self):
        ops = reconcile_thumbnail(
            ImageOperations(
                create=[
                    ImageCreate(0, is_thumbnail=True),
                    ImageCreate(1, is_thumbnail=True),
                    ImageCreate(2, is_thumbnail=True),
                ]
            )
        )
        assert _final_thumbnails(ops) == ["create[0]"]

    def test_current_thumbnail_kept_when_nothing_requested(self):
        current = [make_image("a", is_thumbnail=True), make_image("b")]
        ops = reconcile_thumbnail(ImageOperations(create=[ImageCreate(0)]), current)
        assert _final_thumbnails(ops, current) == ["a"]

    def test_flagged_update_replaces_current_thumbnail(self):
        current = [make_image("a", is_thumbnail=True), make_image("b")]
        ops = reconcile_thumbnail(
            ImageOperations(update=[ImageUpdate("b", is_thumbnail=True)]), current
        )
        assert _final_thumbnails(ops, current) == ["b"]


class TestLosingTheCurrentThumbnail:

    def test_deleted_thumbnail_passes_to_next_image(self):
        current = [make_image("a", is_thumbnail=True), make_image("b")]
        ops = reconcile_thumbnail(ImageOperations(delete=["a"]), current)
        assert _final_thumbnails(ops, current) == ["b"]

    def test_replaced_file_beats_untouched_survivor(self):
        current = [make_image("a", is_thumbnail=True), make_image("b"), make_image("c")]
        ops = reconcile_thumbnail(
            ImageOperations(update=[ImageUpdate("c", file_index=0)], delete=["a"]), current
        )
        assert _final_thumbnails(ops, current) == ["c"]

    def test_explicit_unset_moves_flag(self):
        current = [make_image("a", is_thumbnail=True), make_image("b")]
        ops = reconcile_thumbnail(
            ImageOperations(update=[ImageUpdate("a", is_thumbnail=False)]), current
        )
        assert _final_thumbnails(ops, current) == ["b"]


class TestOperationsObject:

    def test_input_operations_are_not_modified(self):
        original = ImageOperations(
            create=[ImageCreate(0, is_thumbnail=True), ImageCreate(1, is_thumbnail=True)]
        )

        result = reconcile_thumbnail(original)

        assert [op.is_thumbnail for op in original.create] == [True, True]
        assert [op.is_thumbnail for op in result.create] == [True, False]

    def test_nothing_to_flag_returns_operations_unchanged(self):
        ops = ImageOperations()
        assert reconcile_thumbnail(ops) is ops
