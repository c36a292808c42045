"""Tests for metadata sources and the per-run cache."""

import json

import pytest

from src.series_export.metadata import (
    DictMetadataSource,
    ItemAttributes,
    JsonMetadataSource,
    MetadataCache,
    MetadataLookupError,
    MetadataNotFoundError,
)

META_ENTRIES = [
    {
        "id": 1942,
        "name": "The Witcher 3: Wild Hunt",
        "cover": {"url": "//images.igdb.com/igdb/image/upload/t_thumb/co1wyy.jpg"},
        "first_release_date": 1431993600,
    },
    {"id": "bonus-points-game", "name": "Homebrew Jam Entry"},
    {"id": 7346, "cover": {"url": "//example.invalid/no-name.jpg"}},
]


@pytest.fixture
def meta_file(tmp_path):
    path = tmp_path / "meta.json"
    path.write_text(json.dumps(META_ENTRIES))
    return path


class TestDictMetadataSource:
    def test_lookup(self):
        attrs = ItemAttributes("Celeste", catalog_ref="26226")
        source = DictMetadataSource({"26226": attrs})
        assert source.lookup("26226") is attrs

    def test_missing_item(self):
        with pytest.raises(MetadataNotFoundError):
            DictMetadataSource({}).lookup("26226")

    def test_not_found_is_a_lookup_error(self):
        assert issubclass(MetadataNotFoundError, MetadataLookupError)


class TestJsonMetadataSource:
    def test_catalog_entry(self, meta_file):
        attrs = JsonMetadataSource(meta_file).lookup("1942")
        assert attrs == ItemAttributes(
            display_name="The Witcher 3: Wild Hunt",
            catalog_ref="1942",
            cover_image_ref="//images.igdb.com/igdb/image/upload/t_thumb/co1wyy.jpg",
        )

    def test_non_catalog_entry_has_no_ref(self, meta_file):
        attrs = JsonMetadataSource(meta_file).lookup("bonus-points-game")
        assert attrs.display_name == "Homebrew Jam Entry"
        assert attrs.catalog_ref is None
        assert attrs.cover_image_ref is None

    def test_entry_without_name_skipped(self, meta_file):
        with pytest.raises(MetadataNotFoundError, match="7346"):
            JsonMetadataSource(meta_file).lookup("7346")

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "meta.json"
        path.write_text("[{")
        with pytest.raises(MetadataLookupError, match="Cannot read metadata file"):
            JsonMetadataSource(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MetadataLookupError):
            JsonMetadataSource(tmp_path / "meta.json")

    def test_non_object_entries_skipped(self, tmp_path):
        path = tmp_path / "meta.json"
        path.write_text(json.dumps([1942, "stray", {"id": 26226, "name": "Celeste"}]))
        source = JsonMetadataSource(path)
        assert source.lookup("26226").display_name == "Celeste"
        with pytest.raises(MetadataNotFoundError):
            source.lookup("1942")

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "meta.json"
        path.write_text(json.dumps({"1942": {"name": "x"}}))
        with pytest.raises(MetadataLookupError, match="list of entries"):
            JsonMetadataSource(path)


class TestMetadataCache:
    def test_store_and_get(self):
        cache = MetadataCache()
        attrs = ItemAttributes("Hades")
        cache.store("113112", attrs)
        assert cache.get("113112") is attrs
        assert "113112" in cache
        assert len(cache) == 1

    def test_failures_remembered(self):
        cache = MetadataCache()
        cache.store_failure("x", "catalog down")
        assert cache.has_failed("x")
        assert cache.get("x") is None
        assert "x" in cache

    def test_success_clears_failure(self):
        cache = MetadataCache()
        cache.store_failure("x", "catalog down")
        cache.store("x", ItemAttributes("X"))
        assert not cache.has_failed("x")
        assert len(cache) == 1

    def test_starts_empty(self):
        cache = MetadataCache()
        assert len(cache) == 0
        assert "x" not in cache
