"""Unit tests for the image operation rules."""

from spiceworld.domain.model.operations import ImageCreate, ImageOperations, ImageUpdate
from spiceworld.domain.service.image_validation import validate_image_operations
from tests.builders import make_image


def _codes(ops, file_count=0, current=()):
    return [issue.code for issue in validate_image_operations(ops, file_count, current)]


class TestFileIndexes:

    def test_valid_create(self):
        ops = ImageOperations(create=[ImageCreate(0), ImageCreate(1, is_thumbnail=True)])
        assert _codes(ops, file_count=2) == []

    def test_duplicate_create_index(self):
        ops = ImageOperations(create=[ImageCreate(0), ImageCreate(0)])
        assert _codes(ops, file_count=1) == ["VIO1"]

    def test_duplicate_update_index(self):
        current = [make_image("a"), make_image("b")]
        ops = ImageOperations(
            update=[ImageUpdate("a", file_index=0), ImageUpdate("b", file_index=0)]
        )
        assert _codes(ops, file_count=1, current=current) == ["VIO2"]

    def test_index_shared_by_create_and_update(self):
        current = [make_image("a")]
        ops = ImageOperations(create=[ImageCreate(0)], update=[ImageUpdate("a", file_index=0)])
        assert _codes(ops, file_count=1, current=current) == ["VIO3"]

    def test_index_out_of_bounds(self):
        issues = validate_image_operations(ImageOperations(create=[ImageCreate(3)]), 1)
        assert [i.code for i in issues] == ["VIO5"]
        assert "Only 1 files provided" in issues[0].message


class TestThumbnailFlags:

    def test_two_explicit_thumbnails(self):
        ops = ImageOperations(
            create=[ImageCreate(0, is_thumbnail=True), ImageCreate(1, is_thumbnail=True)]
        )
        assert _codes(ops, file_count=2) == ["VIO4"]


class TestImageSet:

    def test_unknown_image_in_update_or_delete(self):
        ops = ImageOperations(update=[ImageUpdate("x", alt_text="hi")], delete=["y"])
        assert _codes(ops, current=[make_image("a")]) == ["IMAGE_NOT_FOUND", "IMAGE_NOT_FOUND"]

    def test_deleting_every_image_rejected(self):
        ops = ImageOperations(delete=["a"])
        assert _codes(ops, current=[make_image("a")]) == ["IMG_EMPTY"]

    def test_product_needs_at_least_one_image(self):
        assert _codes(ImageOperations()) == ["IMG_EMPTY"]
