"""Unit tests for the storage adapters and the shared path helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from blog_archiver.interfaces.storage_adapter import IStorageAdapter
from blog_archiver.providers.storage.local_storage import LocalStorageAdapter
from blog_archiver.providers.storage.s3_storage import S3StorageAdapter
from blog_archiver.utils.errors import StorageUnavailableError

_REL = "images/田村保乃_sakurazaka46/post_1001_a1b2c3d4.jpg"


class TestPathHelpers:
    def test_relative_path_uses_forward_slashes(self, tmp_path: Path) -> None:
        absolute = tmp_path / "images" / "m" / "x.jpg"
        assert IStorageAdapter.to_relative_path(absolute, tmp_path) == "images/m/x.jpg"

    def test_path_outside_base_is_returned_unchanged(self, tmp_path: Path) -> None:
        other = Path("/elsewhere/x.jpg")
        assert IStorageAdapter.to_relative_path(other, tmp_path) == "/elsewhere/x.jpg"

    def test_absolute_path_ignores_leading_slash(self, tmp_path: Path) -> None:
        assert IStorageAdapter.to_absolute_path("/images/x.jpg", tmp_path) == tmp_path / "images" / "x.jpg"


class TestLocalStorageAdapter:
    @pytest.mark.asyncio
    async def test_save_creates_parents_and_exists(self, storage: LocalStorageAdapter, tmp_path: Path) -> None:
        stored = await storage.save(_REL, b"jpeg-bytes")

        assert stored == _REL
        assert (tmp_path / _REL).read_bytes() == b"jpeg-bytes"
        assert await storage.exists(_REL)

    @pytest.mark.asyncio
    async def test_save_leaves_no_temp_files(self, storage: LocalStorageAdapter, tmp_path: Path) -> None:
        await storage.save(_REL, b"one")
        await storage.save(_REL, b"two")

        folder = (tmp_path / _REL).parent
        assert [p.name for p in folder.iterdir()] == [Path(_REL).name]
        assert (tmp_path / _REL).read_bytes() == b"two"

    @pytest.mark.asyncio
    async def test_exists_false_for_directory_or_missing(self, storage: LocalStorageAdapter) -> None:
        await storage.save(_REL, b"x")
        assert not await storage.exists("images")
        assert not await storage.exists("images/none.jpg")

    @pytest.mark.asyncio
    async def test_delete(self, storage: LocalStorageAdapter, tmp_path: Path) -> None:
        await storage.save(_REL, b"x")

        assert await storage.delete(_REL) is True
        assert not (tmp_path / _REL).exists()
        assert await storage.delete(_REL) is False

    def test_get_url_is_root_relative(self, storage: LocalStorageAdapter) -> None:
        assert storage.get_url("images/a.jpg") == "/images/a.jpg"
        assert storage.get_url("/images/a.jpg") == "/images/a.jpg"
        assert storage.get_provider_name() == "local"


class TestS3StorageAdapter:
    def test_default_url(self) -> None:
        adapter = S3StorageAdapter(bucket="blog-images")
        assert adapter.get_url("images/a.jpg") == (
            "https://blog-images.s3.ap-northeast-1.amazonaws.com/images/a.jpg"
        )

    def test_custom_base_url(self) -> None:
        adapter = S3StorageAdapter(bucket="b", base_url="https://cdn.example.com/")
        assert adapter.get_url("/images/a.jpg") == "https://cdn.example.com/images/a.jpg"

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a.JPG", "image/jpeg"),
            ("a.png", "image/png"),
            ("a.webp", "image/webp"),
            ("a.bin", "application/octet-stream"),
        ],
    )
    def test_content_type(self, path: str, expected: str) -> None:
        assert S3StorageAdapter.get_content_type(path) == expected

    @pytest.mark.asyncio
    async def test_byte_operations_are_unavailable(self) -> None:
        adapter = S3StorageAdapter(bucket="b")
        with pytest.raises(StorageUnavailableError):
            await adapter.save("a.jpg", b"x")
        with pytest.raises(StorageUnavailableError):
            await adapter.exists("a.jpg")
        with pytest.raises(StorageUnavailableError):
            await adapter.delete("a.jpg")
