import pytest

from spiceworld.domain.exceptions import StorageError
from spiceworld.domain.model.operations import UploadFile
from spiceworld.infrastructure.storage.local_file_storage import LocalFileStorage


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path, "http://files.test/")


class TestUpload:

    def test_writes_every_size(self, storage, tmp_path):
        (image,) = storage.upload("Smoked Paprika", [UploadFile("tin.JPG", b"jpeg-bytes")])

        for stored in (image.thumb, image.medium, image.large):
            assert (tmp_path / stored.key).read_bytes() == b"jpeg-bytes"
            assert stored.url == f"http://files.test/{stored.key}"
        assert image.thumb.key.startswith("thumb/smoked-paprika-")
        assert image.thumb.key.endswith(".jpg")

    def test_keys_are_unique_per_upload(self, storage):
        first, second = storage.upload("cumin", [UploadFile("a.png", b"1"), UploadFile("a.png", b"2")])
        assert first.medium.key != second.medium.key

    def test_rejects_unknown_type_and_cleans_up(self, storage, tmp_path):
        with pytest.raises(StorageError, match="Unsupported image type"):
            storage.upload("cumin", [UploadFile("ok.png", b"1"), UploadFile("notes.txt", b"2")])
        assert not any(p.is_file() for p in tmp_path.rglob("*"))

    def test_rejects_empty_file(self, storage):
        with pytest.raises(StorageError, match="Empty file"):
            storage.upload("cumin", [UploadFile("empty.webp", b"")])


class TestDelete:

    def test_removes_files_and_ignores_missing(self, storage, tmp_path):
        (image,) = storage.upload("cumin", [UploadFile("a.gif", b"gif")])

        storage.delete(image.keys + ["thumb/never-existed.gif"])

        assert not (tmp_path / image.large.key).exists()
