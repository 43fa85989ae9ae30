"""Tests for SourceLoader."""

import json

import pytest

from content_generator.domain.errors import SourceUnavailableError
from content_generator.domain.models import LoadedUnit, UnitSkipped
from content_generator.infra.config import PipelineConfig
from content_generator.usecase.load_source import DirectorySource, SourceLoader, SubmittedSource
from content_generator.usecase.validate_unit import ContentUnitValidator
from tests.fakes.documents import make_document, make_post


def _padded(size: int) -> bytes:
    """A valid document serialized to exactly ``size`` bytes."""
    raw = json.dumps(make_document()).encode()
    assert len(raw) <= size
    # Trailing whitespace is valid JSON.
    return raw + b" " * (size - len(raw))


async def _collect(loader, source):
    return [item async for item in loader.load(source)]


def _loader(**overrides) -> SourceLoader:
    config = PipelineConfig(**overrides)
    return SourceLoader(config, ContentUnitValidator(config))


class TestDirectorySource:
    @pytest.mark.asyncio
    async def test_file_exactly_at_max_size_is_accepted(self, tmp_path):
        (tmp_path / "edge.json").write_bytes(_padded(2048))

        items = await _collect(_loader(max_file_size=2048), DirectorySource(tmp_path))

        assert len(items) == 1
        assert isinstance(items[0], LoadedUnit)
        assert items[0].size_bytes == 2048

    @pytest.mark.asyncio
    async def test_one_byte_over_is_skipped_without_aborting(self, tmp_path):
        (tmp_path / "a-over.json").write_bytes(_padded(2049))
        (tmp_path / "b-ok.json").write_bytes(_padded(1024))

        items = await _collect(_loader(max_file_size=2048), DirectorySource(tmp_path))

        assert isinstance(items[0], UnitSkipped)
        assert items[0].unit_name == "a-over.json"
        assert "exceeds limit of 2048 bytes" in items[0].reason
        assert items[0].security_relevant
        assert isinstance(items[1], LoadedUnit)

    @pytest.mark.asyncio
    async def test_disallowed_extension_is_skipped(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hello")

        items = await _collect(_loader(), DirectorySource(tmp_path))

        assert items == [UnitSkipped("notes.txt", "extension '.txt' is not allowed")]

    @pytest.mark.asyncio
    async def test_malformed_json_is_skipped(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")

        items = await _collect(_loader(), DirectorySource(tmp_path))

        assert len(items) == 1
        assert isinstance(items[0], UnitSkipped)
        assert "invalid JSON" in items[0].reason

    @pytest.mark.asyncio
    async def test_failed_validation_carries_suspicious_flag(self, tmp_path):
        document = make_document(posts=[make_post("x", content="<script>alert(1)</script>")])
        (tmp_path / "xss.json").write_text(json.dumps(document))

        items = await _collect(_loader(), DirectorySource(tmp_path))

        assert items[0].reason.startswith("validation failed: ")
        assert items[0].security_relevant

    @pytest.mark.asyncio
    async def test_entries_are_sorted_and_subdirectories_ignored(self, tmp_path):
        (tmp_path / "nested").mkdir()
        for name in ("c.json", "a.json", "b.json"):
            (tmp_path / name).write_text(json.dumps(make_document()))

        items = await _collect(_loader(), DirectorySource(tmp_path))

        assert [item.name for item in items] == ["a.json", "b.json", "c.json"]

    @pytest.mark.asyncio
    async def test_missing_directory_is_created(self, tmp_path):
        target = tmp_path / "content" / "incoming"

        items = await _collect(_loader(), DirectorySource(target))

        assert items == []
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_unusable_directory_aborts(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(SourceUnavailableError):
            await _collect(_loader(), DirectorySource(blocker / "content"))

    @pytest.mark.asyncio
    async def test_run_cap_skips_remaining_candidates(self, tmp_path):
        for index in range(3):
            (tmp_path / f"{index}.json").write_text(json.dumps(make_document()))

        items = await _collect(_loader(max_units_per_run=2), DirectorySource(tmp_path))

        assert [type(item) for item in items] == [LoadedUnit, LoadedUnit, UnitSkipped]
        assert items[2].reason == "run limit of 2 candidates reached"


class TestSubmittedSource:
    @pytest.mark.asyncio
    async def test_documents_are_named_by_position(self):
        source = SubmittedSource([make_document(), {"category": "x"}], label="batch.json")

        items = await _collect(_loader(), source)

        assert isinstance(items[0], LoadedUnit)
        assert items[0].name == "batch.json[0]"
        assert isinstance(items[1], UnitSkipped)
        assert items[1].unit_name == "batch.json[1]"

    @pytest.mark.asyncio
    async def test_raw_strings_are_parsed(self):
        items = await _collect(_loader(), SubmittedSource([json.dumps(make_document()), "{oops"]))

        assert isinstance(items[0], LoadedUnit)
        assert isinstance(items[1], UnitSkipped)
        assert "invalid JSON" in items[1].reason

    @pytest.mark.asyncio
    async def test_oversized_document_is_skipped(self):
        big = make_document(posts=[make_post("big", content="x" * 4000)])

        items = await _collect(_loader(max_file_size=1024), SubmittedSource([big]))

        assert isinstance(items[0], UnitSkipped)
        assert items[0].security_relevant

    @pytest.mark.asyncio
    async def test_empty_submission_yields_nothing(self):
        assert await _collect(_loader(), SubmittedSource([])) == []
