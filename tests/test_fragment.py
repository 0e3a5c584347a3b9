"""Tests for the Fragment entity."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from fragments.exceptions import (
    ConversionUnsupportedError,
    FragmentNotFoundError,
    FragmentValidationError,
    StorageFailureError,
    TypeMismatchError,
    UnsupportedContentTypeError,
)
from fragments.formats import IMAGE_TYPES, SUPPORTED_TYPES
from fragments.model.fragment import Fragment
from fragments.storage.interfaces import StorageBackends
from fragments.storage.memory import InMemoryBlobStore


class TestConstruction:
    """Test Fragment construction and validation."""

    def test_defaults(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        assert fragment.id
        assert fragment.owner_id == "owner"
        assert fragment.type == "text/plain"
        assert fragment.size == 0
        assert fragment.created == fragment.updated

    def test_generated_ids_are_unique(self, backends):
        first = Fragment(backends, owner_id="owner", type="text/plain")
        second = Fragment(backends, owner_id="owner", type="text/plain")
        assert first.id != second.id

    def test_explicit_fields_are_kept(self, backends):
        fragment = Fragment(
            backends,
            id="abc",
            owner_id="owner",
            type="text/plain; charset=utf-8",
            size=5,
            created="2024-01-01T00:00:00.000Z",
            updated="2024-01-02T00:00:00.000Z",
        )
        assert fragment.id == "abc"
        assert fragment.type == "text/plain; charset=utf-8"
        assert fragment.size == 5
        assert fragment.created == "2024-01-01T00:00:00.000Z"
        assert fragment.updated == "2024-01-02T00:00:00.000Z"

    def test_owner_is_required(self, backends):
        with pytest.raises(FragmentValidationError):
            Fragment(backends, owner_id="", type="text/plain")

    def test_type_is_required(self, backends):
        with pytest.raises(UnsupportedContentTypeError):
            Fragment(backends, owner_id="owner", type="")

    @pytest.mark.parametrize("type", ["application/msword", "audio/mpeg", "not a type"])
    def test_unsupported_type(self, backends, type):
        with pytest.raises(UnsupportedContentTypeError):
            Fragment(backends, owner_id="owner", type=type)

    @pytest.mark.parametrize("size", [-1, "1", None, True, float("nan"), float("inf"), 2.5])
    def test_invalid_size(self, backends, size):
        with pytest.raises(FragmentValidationError):
            Fragment(backends, owner_id="owner", type="text/plain", size=size)

    def test_whole_float_size_is_stored_as_int(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain", size=2.0)
        assert fragment.size == 2
        assert isinstance(fragment.size, int)
        assert isinstance(fragment.to_dict()["size"], int)

    @pytest.mark.parametrize("type", sorted(SUPPORTED_TYPES) + ["text/plain; charset=utf-8"])
    def test_constructed_type_is_supported(self, backends, type):
        fragment = Fragment(backends, owner_id="owner", type=type)
        assert Fragment.is_supported_type(fragment.type)

    def test_to_dict(self, backends):
        fragment = Fragment(backends, id="abc", owner_id="owner", type="text/plain", size=3)
        assert fragment.to_dict() == {
            "id": "abc",
            "ownerId": "owner",
            "type": "text/plain",
            "size": 3,
            "created": fragment.created,
            "updated": fragment.updated,
        }


class TestTypeHelpers:
    """Test mime helpers, supported types and formats."""

    def test_mime_type_strips_parameters(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain; charset=utf-8")
        assert fragment.mime_type == "text/plain"

    def test_is_text(self, backends):
        assert Fragment(backends, owner_id="owner", type="text/markdown").is_text
        assert not Fragment(backends, owner_id="owner", type="application/json").is_text

    @pytest.mark.parametrize("value", [None, "", "text", "text/plain;", 42, "application/xml"])
    def test_is_supported_type_never_raises(self, value):
        assert Fragment.is_supported_type(value) is False

    def test_is_supported_type_with_parameters(self):
        assert Fragment.is_supported_type("text/html; charset=iso-8859-1")

    @pytest.mark.parametrize("type", sorted(SUPPORTED_TYPES))
    def test_formats_contains_own_type(self, backends, type):
        fragment = Fragment(backends, owner_id="owner", type=type)
        assert fragment.mime_type in fragment.formats

    @pytest.mark.parametrize("type", IMAGE_TYPES)
    def test_images_can_convert_to_png(self, backends, type):
        assert Fragment(backends, owner_id="owner", type=type).can_convert_to(".png")

    @pytest.mark.parametrize("type", sorted(SUPPORTED_TYPES - set(IMAGE_TYPES)))
    def test_text_cannot_convert_to_png(self, backends, type):
        assert not Fragment(backends, owner_id="owner", type=type).can_convert_to(".png")

    def test_can_convert_to_unknown_extension(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/markdown")
        assert not fragment.can_convert_to(".exe")
        assert not fragment.can_convert_to("")

    def test_markdown_conversions(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/markdown")
        assert fragment.can_convert_to(".md")
        assert fragment.can_convert_to(".html")
        assert fragment.can_convert_to(".txt")
        assert not fragment.can_convert_to(".json")


class TestPersistence:
    """Test loading, saving and deleting fragments."""

    @pytest.mark.asyncio
    async def test_save_and_by_id(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.save()

        loaded = await Fragment.by_id(backends, "owner", fragment.id)
        assert loaded.to_dict() == fragment.to_dict()

    @pytest.mark.asyncio
    async def test_save_refreshes_updated(self, backends):
        fragment = Fragment(
            backends,
            owner_id="owner",
            type="text/plain",
            updated="2000-01-01T00:00:00.000Z",
        )
        await fragment.save()
        assert fragment.updated > "2000-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_by_id_missing(self, backends):
        with pytest.raises(FragmentNotFoundError) as exc_info:
            await Fragment.by_id(backends, "owner", "missing")
        assert exc_info.value.fragment_id == "missing"

    @pytest.mark.asyncio
    async def test_by_id_is_scoped_to_owner(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.save()
        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backends, "someone-else", fragment.id)

    @pytest.mark.asyncio
    async def test_by_user_ids(self, backends):
        created = []
        for _ in range(3):
            fragment = Fragment(backends, owner_id="owner", type="text/plain")
            await fragment.set_data(b"x")
            created.append(fragment.id)

        assert sorted(await Fragment.by_user(backends, "owner")) == sorted(created)
        assert await Fragment.by_user(backends, "other") == []

    @pytest.mark.asyncio
    async def test_by_user_expanded(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/markdown")
        await fragment.set_data(b"# hi")

        results = await Fragment.by_user(backends, "owner", expand=True)
        assert len(results) == 1
        assert isinstance(results[0], Fragment)
        assert results[0].to_dict() == fragment.to_dict()

    @pytest.mark.asyncio
    async def test_by_user_unknown_owner(self, backends):
        assert await Fragment.by_user(backends, "nobody", expand=True) == []

    @pytest.mark.asyncio
    async def test_delete(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"hello")

        await Fragment.delete(backends, "owner", fragment.id)

        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backends, "owner", fragment.id)
        assert await backends.blobs.get("owner", fragment.id) is None

    @pytest.mark.asyncio
    async def test_delete_twice_does_not_resurrect(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"hello")

        await Fragment.delete(backends, "owner", fragment.id)
        await Fragment.delete(backends, "owner", fragment.id)

        with pytest.raises(FragmentNotFoundError):
            await Fragment.by_id(backends, "owner", fragment.id)
        assert await Fragment.by_user(backends, "owner") == []

    @pytest.mark.asyncio
    async def test_delete_surfaces_blob_failure(self, backends):
        blobs = AsyncMock()
        blobs.delete.side_effect = StorageFailureError("unable to delete fragment data")
        failing = StorageBackends(metadata=backends.metadata, blobs=blobs, kind="memory")

        fragment = Fragment(failing, owner_id="owner", type="text/plain")
        await fragment.save()

        with pytest.raises(StorageFailureError):
            await Fragment.delete(failing, "owner", fragment.id)
        # metadata is gone, no compensation
        assert await backends.metadata.get("owner", fragment.id) is None


class TestData:
    """Test reading and writing fragment data."""

    @pytest.mark.asyncio
    async def test_round_trip(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"hello world")
        assert await fragment.get_data() == b"hello world"

    @pytest.mark.asyncio
    async def test_size_follows_data(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain", size=999)
        await fragment.set_data(b"four")
        assert fragment.size == 4

        stored = await Fragment.by_id(backends, "owner", fragment.id)
        assert stored.size == 4

    @pytest.mark.asyncio
    async def test_size_counts_bytes_not_characters(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain; charset=utf-8")
        await fragment.set_data("héllo".encode("utf-8"))
        assert fragment.size == 6

    @pytest.mark.asyncio
    async def test_set_data_accepts_bytearray(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(bytearray(b"abc"))
        assert await fragment.get_data() == b"abc"

    @pytest.mark.asyncio
    async def test_set_data_requires_bytes(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        with pytest.raises(FragmentValidationError):
            await fragment.set_data("not bytes")

    @pytest.mark.asyncio
    async def test_set_data_updates_timestamp(self, backends):
        fragment = Fragment(
            backends,
            owner_id="owner",
            type="text/plain",
            created="2000-01-01T00:00:00.000Z",
            updated="2000-01-01T00:00:00.000Z",
        )
        await fragment.set_data(b"x")
        assert fragment.created == "2000-01-01T00:00:00.000Z"
        assert fragment.updated > fragment.created

    @pytest.mark.asyncio
    async def test_blob_written_before_metadata(self, backends):
        calls = []
        blobs = AsyncMock()
        metadata = AsyncMock()
        blobs.put.side_effect = lambda *args: calls.append("blob")
        metadata.put.side_effect = lambda *args: calls.append("metadata")

        fragment = Fragment(StorageBackends(metadata, blobs, "memory"), owner_id="owner", type="text/plain")
        await fragment.set_data(b"x")

        assert calls == ["blob", "metadata"]

    @pytest.mark.asyncio
    async def test_metadata_failure_leaves_blob(self, backends):
        metadata = AsyncMock()
        metadata.put.side_effect = StorageFailureError("unable to write fragment metadata")
        failing = StorageBackends(metadata=metadata, blobs=backends.blobs, kind="memory")

        fragment = Fragment(failing, owner_id="owner", type="text/plain")
        with pytest.raises(StorageFailureError):
            await fragment.set_data(b"orphan")

        assert await backends.blobs.get("owner", fragment.id) == b"orphan"

    @pytest.mark.asyncio
    async def test_get_data_with_missing_blob(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.save()
        with pytest.raises(StorageFailureError):
            await fragment.get_data()

    @pytest.mark.asyncio
    async def test_same_id_different_owners(self, backends):
        first = Fragment(backends, id="shared-id", owner_id="owner-a", type="text/plain")
        second = Fragment(backends, id="shared-id", owner_id="owner-b", type="text/markdown")
        await first.set_data(b"from a")
        await second.set_data(b"# from b")

        loaded_a = await Fragment.by_id(backends, "owner-a", "shared-id")
        loaded_b = await Fragment.by_id(backends, "owner-b", "shared-id")

        assert loaded_a.type == "text/plain"
        assert loaded_b.type == "text/markdown"
        assert await loaded_a.get_data() == b"from a"
        assert await loaded_b.get_data() == b"# from b"

        await Fragment.delete(backends, "owner-a", "shared-id")
        assert await (await Fragment.by_id(backends, "owner-b", "shared-id")).get_data() == b"# from b"

    @pytest.mark.asyncio
    async def test_concurrent_writes_last_writer_wins(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"initial")

        first = await Fragment.by_id(backends, "owner", fragment.id)
        second = await Fragment.by_id(backends, "owner", fragment.id)
        await asyncio.gather(first.set_data(b"one"), second.set_data(b"three"))

        stored = await Fragment.by_id(backends, "owner", fragment.id)
        data = await stored.get_data()
        assert data in (b"one", b"three")
        assert stored.size in (3, 5)


class TestReplaceData:
    """Test replacing data of an existing fragment."""

    @pytest.mark.asyncio
    async def test_same_base_type(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain; charset=utf-8")
        await fragment.set_data(b"old")
        await fragment.replace_data(b"newer", "text/plain")

        assert fragment.type == "text/plain; charset=utf-8"
        assert fragment.size == 5
        assert await fragment.get_data() == b"newer"

    @pytest.mark.asyncio
    async def test_type_mismatch_is_rejected(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"old")

        with pytest.raises(TypeMismatchError):
            await fragment.replace_data(b"{}", "application/json")

        assert await fragment.get_data() == b"old"
        assert fragment.type == "text/plain"

    @pytest.mark.asyncio
    async def test_unparseable_type(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        with pytest.raises(UnsupportedContentTypeError):
            await fragment.replace_data(b"x", "garbage")


class TestConvertData:
    """Test conversions driven through the Fragment."""

    @pytest.mark.asyncio
    async def test_markdown_to_html(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/markdown")
        await fragment.set_data(b"# Title")

        result = await fragment.convert_data(".html")

        assert b"<h1>Title</h1>" in result.data
        assert result.content_type == "text/html"

    @pytest.mark.asyncio
    async def test_json_to_text_keeps_bytes(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="application/json")
        await fragment.set_data(b'{"a":1}')

        result = await fragment.convert_data(".txt")

        assert result.data == b'{"a":1}'
        assert result.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_identity_keeps_full_type(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/markdown; charset=utf-8")
        await fragment.set_data(b"# Title")

        result = await fragment.convert_data(".md")

        assert result.data == b"# Title"
        assert result.content_type == "text/markdown; charset=utf-8"

    @pytest.mark.asyncio
    async def test_json_to_yaml_is_retagged_identity(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="application/json")
        await fragment.set_data(b'{"a":1}')

        result = await fragment.convert_data(".yaml")

        assert result.data == b'{"a":1}'
        assert result.content_type == "application/json"

    @pytest.mark.asyncio
    async def test_png_to_jpeg(self, backends, png_bytes):
        fragment = Fragment(backends, owner_id="owner", type="image/png")
        await fragment.set_data(png_bytes)

        result = await fragment.convert_data(".jpg")

        assert result.content_type == "image/jpeg"
        assert result.data.startswith(b"\xff\xd8")

    @pytest.mark.asyncio
    async def test_unsupported_conversion(self, backends):
        fragment = Fragment(backends, owner_id="owner", type="text/plain")
        await fragment.set_data(b"hello")

        with pytest.raises(ConversionUnsupportedError):
            await fragment.convert_data(".html")

    @pytest.mark.asyncio
    async def test_unsupported_conversion_does_not_read_data(self):
        blobs = AsyncMock(spec=InMemoryBlobStore)
        fragment = Fragment(
            StorageBackends(metadata=AsyncMock(), blobs=blobs, kind="memory"),
            owner_id="owner",
            type="text/plain",
        )
        with pytest.raises(ConversionUnsupportedError):
            await fragment.convert_data(".png")
        blobs.get.assert_not_called()
