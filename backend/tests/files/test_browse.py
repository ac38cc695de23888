"""
Tests for folder listings, folder image lists and bucket statistics.
"""

from unittest.mock import patch

import pytest

from image_browser.config import settings
from image_browser.errors import InvalidPath
from image_browser.files.browse import bucket_stats, list_folder, list_images


class TestListFolder:
    @pytest.mark.asyncio
    async def test_depth_one(self, store, seed):
        await seed(
            {
                "top.png": 1,
                "notes.txt": 1,
                "b/1.png": 1,
                "a/.folder-placeholder": 0,
                ".thumb/x.png": 1,
            }
        )

        listing = await list_folder(store, "", depth=1, include_files=True)

        assert [f.name for f in listing.folders] == ["a", "b"]
        assert [f.name for f in listing.files] == ["top.png"]
        assert listing.pagination.has_more is False

    @pytest.mark.asyncio
    async def test_files_omitted_unless_requested(self, store, seed):
        await seed({"top.png": 1})

        listing = await list_folder(store, "")

        assert listing.files is None

    @pytest.mark.asyncio
    async def test_depth_one_cursor_pagination(self, store, seed):
        await seed({f"f{i}/1.png": 1 for i in range(5)})

        first = await list_folder(store, "", limit=2)
        second = await list_folder(store, "", limit=2, cursor=first.pagination.cursor)

        assert [f.name for f in first.folders] == ["f0", "f1"]
        assert first.pagination.has_more is True
        assert [f.name for f in second.folders] == ["f2", "f3"]

    @pytest.mark.asyncio
    async def test_deeper_listing_counts_and_offsets(self, store, seed):
        await seed(
            {
                "a/1.png": 10,
                "a/x/2.png": 20,
                "b/3.png": 30,
                "c/4.png": 40,
            }
        )

        listing = await list_folder(store, "", depth=2, limit=2, offset=1)

        assert [f.name for f in listing.folders] == ["b", "c"]
        assert listing.pagination.total == 3
        assert listing.pagination.offset == 1
        assert listing.pagination.has_more is False

        full = await list_folder(store, "", depth=2)
        a = full.folders[0]
        assert (a.file_count, a.total_size) == (2, 30)
        assert [c.path for c in a.children] == ["a/x"]

    @pytest.mark.asyncio
    async def test_depth_is_clamped(self, store, seed):
        await seed({"a/1.png": 1})

        listing = await list_folder(store, "", depth=99)

        assert listing.depth == settings.limits.max_depth

    @pytest.mark.asyncio
    async def test_previews(self, store, seed):
        await seed({f"a/{name}.png": 1 for name in "edcba"} | {"b/.folder-placeholder": 0})

        listing = await list_folder(store, "", include_previews=True, preview_count=3)

        a, b = listing.folders
        assert [p.name for p in a.previews] == ["a.png", "b.png", "c.png"]
        assert b.previews == []

    @pytest.mark.asyncio
    async def test_preview_failure_is_contained(self, store, seed, caplog):
        await seed({"a/1.png": 1, "b/2.png": 1})
        store.fail_list_prefixes.add("a/")

        listing = await list_folder(store, "", include_previews=True)

        a, b = listing.folders
        assert a.previews is None
        assert [p.path for p in b.previews] == ["b/2.png"]
        assert "Failed to load previews for 'a'" in caplog.text

    @pytest.mark.asyncio
    async def test_truncated_deep_listing_is_flagged(self, store, seed):
        await seed({f"a/{i}.png": 1 for i in range(5)})

        with patch.object(settings.limits, "max_descendants", 3):
            listing = await list_folder(store, "", depth=2)

        assert listing.pagination.truncated is True

    @pytest.mark.asyncio
    async def test_invalid_path(self, store):
        with pytest.raises(InvalidPath):
            await list_folder(store, "a//b")


class TestListImages:
    @pytest.mark.asyncio
    async def test_images_in_folder(self, store, seed):
        await seed({"a/z.png": 3, "a/b.gif": 2, "a/n.txt": 1, "a/sub/c.png": 1})

        images = await list_images(store, "/a/")

        assert [i.name for i in images] == ["b.gif", "z.png"]
        assert images[0].key == "a/b.gif"
        assert images[0].size == 2
        assert images[0].url == "https://images.example.com/a/b.gif"

    @pytest.mark.asyncio
    async def test_no_folder_lists_nothing(self, store, seed):
        await seed({"top.png": 1})

        assert await list_images(store, None) == []
        assert await list_images(store, "") == []

    @pytest.mark.asyncio
    async def test_url_is_percent_encoded(self, store, seed):
        await seed({"my album/photo 1.png": 1})

        images = await list_images(store, "my album")

        assert images[0].url == "https://images.example.com/my%20album/photo%201.png"


class TestBucketStats:
    @pytest.mark.asyncio
    async def test_totals(self, store, seed):
        await seed(
            {
                "a/1.png": 1024 * 1024,
                "a/2.jpg": 1024 * 1024,
                "a/b/3.png": 512 * 1024,
                "a/.folder-placeholder": 0,
                "a/readme.txt": 100,
                "a/.thumb/1.png": 10,
            }
        )

        stats = await bucket_stats(store)

        assert stats.total_files == 4
        assert stats.total_size == 2.5 * 1024 * 1024 + 10
        assert stats.total_size_mb == 2.5
        assert stats.file_types == {"png": 3, "jpg": 1}
        assert stats.folder_count == 3

    @pytest.mark.asyncio
    async def test_hidden_folders_can_be_excluded(self, store, seed):
        await seed({"a/1.png": 1, "a/.thumb/1.png": 1})

        with patch.object(settings, "stats_include_hidden", False):
            stats = await bucket_stats(store)

        assert stats.total_files == 1
        assert stats.folder_count == 1

    @pytest.mark.asyncio
    async def test_serializes_megabytes_alias(self, store, seed):
        await seed({"a/1.png": 1})

        stats = await bucket_stats(store)
        dumped = stats.model_dump(by_alias=True)

        assert "totalSizeMB" in dumped
        assert dumped["fileTypes"] == {"png": 1}
