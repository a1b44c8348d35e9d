"""Tests for PackageProcessor (async)."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from lessonprobe.core.caching import NullPackageStore
from lessonprobe.core.config import DetectionConfig
from lessonprobe.core.io import FakeDescriptorSource, FakeFileLister
from lessonprobe.core.models import (
    FileEntry,
    PackageRef,
    PackageStatus,
    TemplateId,
)
from lessonprobe.core.processing import (
    TITLE_SIGNAL_CONFIDENCE,
    PackageNotFoundError,
    PackageProcessor,
    PackageProcessorSync,
)


class SlowFileLister(FakeFileLister):
    """Lister that yields to the event loop before answering."""

    async def list_files(self, source_path: str) -> list[FileEntry]:
        await asyncio.sleep(0.01)
        return await super().list_files(source_path)


class BlockingFileLister(FakeFileLister):
    """Lister that holds every listing until released."""

    def __init__(self, packages: dict[str, dict[str, str]]) -> None:
        super().__init__(packages)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def list_files(self, source_path: str) -> list[FileEntry]:
        self.started.set()
        await self.release.wait()
        return await super().list_files(source_path)


class ExplodingFileLister(FakeFileLister):
    """Lister with a bug for one path."""

    async def list_files(self, source_path: str) -> list[FileEntry]:
        if source_path == "uploads/explodes.zip":
            raise RuntimeError("lister bug")
        return await super().list_files(source_path)


class TestScormPackages:
    """Tests for archives detected as scorm."""

    async def test_manifest_is_parsed_and_mapped(self, processor: PackageProcessor):
        package = await processor.process("uploads/safety-course.zip")

        assert package.family == "scorm"
        assert package.template_type == TemplateId.MCQ
        assert package.confidence == 90
        assert package.status == PackageStatus.PROCESSED
        assert package.name == "Workplace Safety"
        assert package.descriptor.id == "com.example.safety"
        assert package.descriptor.synthetic is False
        assert len(package.id) == 32

    async def test_configuration_uses_descriptor_values(self, processor: PackageProcessor):
        package = await processor.process("uploads/safety-course.zip")

        assert package.configuration.version == "1.0"
        assert package.configuration.mastery_score == 80
        assert package.configuration.show_feedback is True

    async def test_unparsable_manifest_falls_back(self, processor: PackageProcessor):
        package = await processor.process("uploads/broken-manifest.zip")

        assert package.status == PackageStatus.FALLBACK
        assert package.family == "scorm"
        assert package.descriptor.synthetic is True
        assert package.descriptor.valid is True
        assert package.name == "broken-manifest"
        assert package.template_type == TemplateId.CONTENTREVEAL
        assert package.confidence == 60

    async def test_explicit_files_use_sampled_content(self, scorm12_manifest: str):
        """Members the lister cannot read come from the listing's content."""
        processor = PackageProcessor(lister=FakeFileLister(), source=FakeDescriptorSource())
        ref = PackageRef(
            source_path="memory://course",
            name="Uploaded course",
            files=[FileEntry.from_path("imsmanifest.xml", scorm12_manifest)],
        )

        package = await processor.process(ref)

        assert package.status == PackageStatus.PROCESSED
        assert package.template_type == TemplateId.MCQ
        assert package.name == "Uploaded course"


class TestOtherFamilies:
    """Tests for storyline and generic families."""

    async def test_storyline_maps_interactions(self, processor: PackageProcessor):
        package = await processor.process("uploads/sorting-game.story")

        assert package.family == "storyline"
        assert package.template_type == TemplateId.DRAGDROP
        assert package.confidence == 85
        assert package.status == PackageStatus.PROCESSED
        assert package.descriptor.synthetic is True
        assert package.descriptor.title == "Sorting Game"
        assert package.configuration.mastery_score == 70

    async def test_storyline_without_story_document_falls_back(self):
        lister = FakeFileLister({"pkg.story": {"story.html": "", "story_content/story.js": ""}})
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        package = await processor.process("pkg.story")

        assert package.family == "storyline"
        assert package.status == PackageStatus.FALLBACK

    async def test_generic_family_carries_detection_confidence(self, processor: PackageProcessor):
        package = await processor.process("uploads/capitals.zip")

        assert package.family == "flashcard"
        assert package.template_type == TemplateId.FLIPCARDS
        assert package.confidence == 70
        assert package.configuration.mastery_score is None

    async def test_empty_listing_is_default_template(self, processor: PackageProcessor):
        package = await processor.process("uploads/empty.zip")

        assert package.family is None
        assert package.template_type == TemplateId.CONTENTREVEAL
        assert package.confidence == 60
        assert package.status == PackageStatus.PROCESSED

    async def test_explicit_empty_listing_skips_lister(self, processor: PackageProcessor):
        package = await processor.process(PackageRef(source_path="uploads/new", files=[]))

        assert package.template_type == TemplateId.CONTENTREVEAL
        assert processor.lister.calls == []


class TestDescriptorAndSyntheticRoutes:
    """Tests for .xml descriptors and unhandled extensions."""

    async def test_xml_descriptor_is_parsed_directly(self, processor: PackageProcessor):
        package = await processor.process("manifests/golf/imsmanifest.xml")

        assert package.family == "scorm"
        assert package.template_type == TemplateId.INTERACTIVEVIDEO
        assert package.confidence == 85
        assert package.name == "Golf Explained"
        assert package.configuration.completion_threshold == pytest.approx(0.8)
        assert processor.source.fetched == ["manifests/golf/imsmanifest.xml"]

    async def test_non_manifest_xml_falls_back(self, processor: PackageProcessor):
        package = await processor.process("manifests/not-a-manifest.xml")

        assert package.status == PackageStatus.FALLBACK
        assert package.descriptor.synthetic is True
        assert package.name == "not-a-manifest"

    async def test_missing_descriptor_falls_back(self, processor: PackageProcessor):
        package = await processor.process("manifests/missing.xml")

        assert package.status == PackageStatus.FALLBACK

    async def test_unhandled_extension_uses_title_signal(self, processor: PackageProcessor):
        package = await processor.process("courses/intro-quiz.pdf")

        assert package.family is None
        assert package.status == PackageStatus.PROCESSED
        assert package.template_type == TemplateId.MCQ
        assert package.confidence == TITLE_SIGNAL_CONFIDENCE
        assert package.configuration.mastery_score == 70

    async def test_generic_launcher_named_after_directory(self, processor: PackageProcessor):
        package = await processor.process("courses/fire-drill/index.html")

        assert package.name == "fire-drill"

    async def test_lister_failure_falls_back(self, processor: PackageProcessor):
        package = await processor.process("uploads/does-not-exist.zip")

        assert package.status == PackageStatus.FALLBACK
        assert package.family is None


class TestCaching:
    """Tests for the processed-package cache."""

    async def test_second_call_returns_cached_record(self, processor: PackageProcessor):
        first = await processor.process("uploads/safety-course.zip")
        calls = list(processor.lister.calls)

        second = await processor.process("uploads/safety-course.zip")

        assert second is first
        assert processor.lister.calls == calls

    async def test_concurrent_calls_share_one_computation(self, scorm12_manifest: str):
        lister = SlowFileLister({"course.zip": {"imsmanifest.xml": scorm12_manifest}})
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        results = await asyncio.gather(*(processor.process("course.zip") for _ in range(5)))

        assert len({p.id for p in results}) == 1
        assert lister.calls.count(("list_files", "course.zip")) == 1

    async def test_cancelled_call_does_not_cancel_joined_callers(self, scorm12_manifest: str):
        lister = BlockingFileLister({"course.zip": {"imsmanifest.xml": scorm12_manifest}})
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        first = asyncio.create_task(processor.process("course.zip"))
        await lister.started.wait()
        second = asyncio.create_task(processor.process("course.zip"))
        await asyncio.sleep(0.01)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        lister.release.set()
        package = await second

        assert package.template_type == TemplateId.MCQ
        assert await processor.get_package(package.id) is package

    async def test_cancelled_joined_caller_leaves_computation_running(self, scorm12_manifest: str):
        lister = BlockingFileLister({"course.zip": {"imsmanifest.xml": scorm12_manifest}})
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        first = asyncio.create_task(processor.process("course.zip"))
        await lister.started.wait()
        second = asyncio.create_task(processor.process("course.zip"))
        await asyncio.sleep(0.01)

        second.cancel()
        with pytest.raises(asyncio.CancelledError):
            await second
        lister.release.set()
        package = await first

        assert package.status == PackageStatus.PROCESSED

    async def test_null_store_recomputes(self, lister: FakeFileLister):
        processor = PackageProcessor(lister=lister, store=NullPackageStore())

        first = await processor.process("uploads/capitals.zip")
        second = await processor.process("uploads/capitals.zip")

        assert first.id != second.id
        assert await processor.list_packages() == []

    async def test_clear_cache_and_stats(self, processor: PackageProcessor):
        await processor.process("uploads/safety-course.zip")
        await processor.process("uploads/capitals.zip")

        assert await processor.stats() == {"cached_packages": 2, "detection_rule_count": 17}

        await processor.clear_cache()

        assert (await processor.stats())["cached_packages"] == 0


class TestBatch:
    """Tests for process_many."""

    async def test_batch_continues_past_failures(self, scorm12_manifest: str):
        lister = ExplodingFileLister({"uploads/ok.zip": {"imsmanifest.xml": scorm12_manifest}})
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        report = await processor.process_many(
            ["uploads/explodes.zip", PackageRef(source_path="uploads/ok.zip")]
        )

        assert [r.success for r in report.results] == [False, True]
        assert report.failed[0].source_path == "uploads/explodes.zip"
        assert report.failed[0].error == "lister bug"
        assert [p.source_path for p in report.succeeded] == ["uploads/ok.zip"]

    async def test_failed_computation_is_not_cached(self, scorm12_manifest: str):
        lister = ExplodingFileLister()
        processor = PackageProcessor(lister=lister, source=FakeDescriptorSource())

        with pytest.raises(RuntimeError):
            await processor.process("uploads/explodes.zip")

        assert await processor.list_packages() == []
        assert processor._in_flight == {}


class TestQueries:
    """Tests for lookups, recommendations and configuration updates."""

    async def test_get_package_by_id(self, processor: PackageProcessor):
        package = await processor.process("uploads/capitals.zip")

        assert await processor.get_package(package.id) is package

    async def test_get_package_not_found(self, processor: PackageProcessor):
        with pytest.raises(PackageNotFoundError) as exc_info:
            await processor.get_package("nope")

        assert isinstance(exc_info.value, KeyError)
        assert str(exc_info.value) == "Package with ID nope not found"

    async def test_packages_by_template(self, processor: PackageProcessor):
        await processor.process("uploads/safety-course.zip")
        await processor.process("uploads/capitals.zip")
        await processor.process("uploads/empty.zip")

        flipcards = await processor.packages_by_template("flipcards")

        assert [p.source_path for p in flipcards] == ["uploads/capitals.zip"]
        assert len(await processor.list_packages()) == 3

    async def test_recommended_template_gate(self, processor: PackageProcessor):
        package = await processor.process("uploads/capitals.zip")

        assert processor.get_recommended_template(package) == TemplateId.FLIPCARDS
        assert processor.get_recommended_template(package, min_confidence=75) == (
            TemplateId.CONTENTREVEAL
        )

    async def test_recommended_template_gate_from_config(self, lister: FakeFileLister):
        processor = PackageProcessor(lister=lister, config=DetectionConfig(min_confidence=80))
        package = await processor.process("uploads/capitals.zip")

        assert processor.get_recommended_template(package) == TemplateId.CONTENTREVEAL

    async def test_update_configuration(self, processor: PackageProcessor):
        package = await processor.process("uploads/safety-course.zip")

        updated = await processor.update_configuration(package.id, mastery_score=95, show_feedback=False)

        assert updated.id == package.id
        assert updated.configuration.mastery_score == 95
        assert updated.configuration.show_feedback is False
        assert updated.configuration.version == "1.0"
        assert updated.processed_at >= package.processed_at
        assert await processor.get_package(package.id) == updated

    async def test_update_configuration_rejects_unknown_fields(self, processor: PackageProcessor):
        package = await processor.process("uploads/capitals.zip")

        with pytest.raises(ValueError, match="colour"):
            await processor.update_configuration(package.id, colour="red")

    async def test_update_configuration_not_found(self, processor: PackageProcessor):
        with pytest.raises(PackageNotFoundError):
            await processor.update_configuration("nope", mastery_score=50)


class TestSyncWrapper:
    """Tests for PackageProcessorSync."""

    def test_process_and_query(self, processor: PackageProcessor):
        sync = PackageProcessorSync(processor)

        package = sync.process("uploads/capitals.zip")

        assert sync.get_package(package.id) == package
        assert sync.packages_by_template(TemplateId.FLIPCARDS) == [package]
        assert sync.stats()["cached_packages"] == 1

    def test_batch(self, processor: PackageProcessor):
        report = PackageProcessorSync(processor).process_many(["uploads/empty.zip"])

        assert len(report.succeeded) == 1


class TestCorruptArchives:
    """Tests for damaged uploads read from disk."""

    async def test_corrupt_archive_falls_back(self, corrupt_zip: Path):
        package = await PackageProcessor().process(str(corrupt_zip))

        assert package.status == PackageStatus.FALLBACK
        assert package.descriptor.synthetic is True
        assert package.name == "corrupt"

    async def test_corrupt_manifest_member_falls_back(self, corrupt_zip: Path):
        ref = PackageRef(
            source_path=str(corrupt_zip), files=[FileEntry.from_path("imsmanifest.xml")]
        )

        package = await PackageProcessor().process(ref)

        assert package.status == PackageStatus.FALLBACK
        assert package.family == "scorm"
        assert package.template_type == TemplateId.CONTENTREVEAL
