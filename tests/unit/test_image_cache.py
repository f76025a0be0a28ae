"""Unit tests for JsonImageCache persistence."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from blog_archiver.models.images import ImageCacheEntry
from blog_archiver.providers.cache.json_image_cache import JsonImageCache


def _entry(path: str = "images/a_sakurazaka46/post_1_abcd1234.jpg") -> ImageCacheEntry:
    return ImageCacheEntry(
        url="https://sakurazaka46.com/files/a.jpg",
        local_path=path,
        member_id=46,
        post_id="1",
        downloaded_at="2024-01-15T11:00:00+00:00",
        size=2048,
    )


@pytest.mark.asyncio
async def test_missing_file_loads_empty(image_cache: JsonImageCache) -> None:
    await image_cache.load()
    assert len(image_cache) == 0


@pytest.mark.asyncio
async def test_put_persists_and_reloads(image_cache: JsonImageCache) -> None:
    await image_cache.put("k1", _entry())

    raw = json.loads(image_cache.cache_file.read_text(encoding="utf-8"))
    assert raw["k1"]["size"] == 2048

    reloaded = JsonImageCache(image_cache.cache_file)
    await reloaded.load()
    assert reloaded.get("k1") == _entry()


@pytest.mark.asyncio
async def test_corrupt_file_loads_empty(image_cache: JsonImageCache) -> None:
    image_cache.cache_file.parent.mkdir(parents=True)
    image_cache.cache_file.write_text("{not json", encoding="utf-8")

    await image_cache.load()

    assert image_cache.entries() == []


@pytest.mark.asyncio
async def test_remove(image_cache: JsonImageCache) -> None:
    await image_cache.put("k1", _entry())
    await image_cache.remove("k1")
    await image_cache.remove("missing")

    assert image_cache.get("k1") is None
    assert json.loads(image_cache.cache_file.read_text(encoding="utf-8")) == {}


@pytest.mark.asyncio
async def test_cleanup_drops_entries_without_files(image_cache: JsonImageCache) -> None:
    await image_cache.put("keep", _entry("images/keep.jpg"))
    await image_cache.put("gone", _entry("images/gone.jpg"))
    exists = AsyncMock(side_effect=lambda path: path == "images/keep.jpg")

    removed = await image_cache.cleanup(exists)

    assert removed == 1
    assert image_cache.get("gone") is None
    assert image_cache.get("keep") is not None


@pytest.mark.asyncio
async def test_no_temp_files_left_behind(image_cache: JsonImageCache) -> None:
    await image_cache.put("k1", _entry())
    await image_cache.put("k2", _entry())

    leftovers = [p.name for p in image_cache.cache_file.parent.iterdir()]
    assert leftovers == [image_cache.cache_file.name]
