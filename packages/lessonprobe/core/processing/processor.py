"""Package processor - orchestrates detection, parsing and template mapping.

One ``process`` call turns a package reference into a ``ProcessedPackage``:

1. Archives (or explicit file listings) go through the RuleEngine to find a
   package family.
2. scorm packages have their manifest parsed; storyline packages have their
   story document parsed into an interaction model; other families map
   straight to a template.
3. Anything that cannot be read or parsed degrades to a synthetic
   descriptor built from the package path (status ``fallback``).

Records are cached per source path in an injected PackageStore.

Example:
    >>> processor = PackageProcessor()
    >>> package = await processor.process("uploads/safety-quiz.zip")
    >>> processor.get_recommended_template(package)
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import Any
from uuid import uuid4

from lessonprobe.core.caching import InMemoryPackageStore, PackageStore
from lessonprobe.core.config.models import DetectionConfig
from lessonprobe.core.detection import DetectionResult, RuleEngine
from lessonprobe.core.io import (
    DescriptorSource,
    FileLister,
    LocalFileLister,
    RoutingDescriptorSource,
    SourceError,
)
from lessonprobe.core.mapping import TemplateMapper, default_configuration
from lessonprobe.core.mapping.mapper import DESCRIPTOR_DEFAULT
from lessonprobe.core.models import (
    BatchReport,
    Descriptor,
    FileEntry,
    PackageFamily,
    PackageRef,
    PackageResult,
    PackageStatus,
    ProcessedPackage,
    TemplateConfiguration,
    TemplateId,
    TemplateRecommendation,
)
from lessonprobe.core.parsers import DescriptorParser, StoryParser, find_story_document
from lessonprobe.core.processing.errors import PackageNotFoundError
from lessonprobe.core.processing.synthetic import package_name, synthetic_descriptor
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)

MANIFEST_NAME = "imsmanifest.xml"

# Confidence given to a template inferred only from title keywords.
TITLE_SIGNAL_CONFIDENCE = 70


def _suffix(source_path: str) -> str:
    return PurePosixPath(source_path.replace("\\", "/").split("?", 1)[0]).suffix.lower()


def _now() -> datetime:
    return datetime.now(UTC)


class PackageProcessor:
    """Classifies packages and keeps the processed records.

    All collaborators are injectable; defaults read from the local
    filesystem (and HTTP for descriptor URLs) and cache in memory.

    Args:
        engine: Family detection over file listings
        parser: Manifest parser
        story_parser: Authoring-tool story document parser
        mapper: Template recommendation
        lister: Lists and reads package members
        source: Fetches descriptor text for ``.xml`` references
        store: Processed-package cache keyed by source path
        config: Detection settings (extensions, confidence gate)
    """

    def __init__(
        self,
        engine: RuleEngine | None = None,
        parser: DescriptorParser | None = None,
        story_parser: StoryParser | None = None,
        mapper: TemplateMapper | None = None,
        lister: FileLister | None = None,
        source: DescriptorSource | None = None,
        store: PackageStore | None = None,
        config: DetectionConfig | None = None,
    ) -> None:
        self.config = config or DetectionConfig()
        self.engine = engine or RuleEngine()
        self.parser = parser or DescriptorParser(max_depth=self.config.max_descriptor_depth)
        self.story_parser = story_parser or StoryParser()
        self.mapper = mapper or TemplateMapper()
        self.lister = lister or LocalFileLister(sample_bytes=self.config.content_sample_bytes)
        self.source = source or RoutingDescriptorSource()
        self.store = store if store is not None else InMemoryPackageStore()
        self._in_flight: dict[str, asyncio.Future[ProcessedPackage]] = {}

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process(self, ref: PackageRef | str) -> ProcessedPackage:
        """Classify a package, returning the cached record when one exists.

        Concurrent calls for the same uncached path share one computation.
        Read and parse failures degrade to a ``fallback`` record instead of
        raising.
        """
        if isinstance(ref, str):
            ref = PackageRef(source_path=ref)
        path = ref.source_path

        cached = await self.store.get(path)
        if cached is not None:
            logger.debug(f"Cache hit for {path}")
            return cached

        pending = self._in_flight.get(path)
        if pending is not None:
            logger.debug(f"Joining in-flight processing of {path}")
            try:
                # Shielded so a cancelled waiter leaves the shared future alone
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled() or asyncio.current_task().cancelling():
                    raise
                logger.debug(f"In-flight processing of {path} was cancelled, retrying")
                return await self.process(ref)

        future: asyncio.Future[ProcessedPackage] = asyncio.get_running_loop().create_future()
        self._in_flight[path] = future
        try:
            package = await self._classify(ref)
            await self.store.put(package)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Waiters re-raise it; mark retrieved for the no-waiter case
            future.exception()
            raise
        else:
            future.set_result(package)
            logger.info(
                f"Processed {path}: {package.template_type.value} "
                f"({package.confidence:.0f}, {package.status.value})"
            )
            return package
        finally:
            del self._in_flight[path]

    async def process_many(self, refs: Iterable[PackageRef | str]) -> BatchReport:
        """Process packages one after another; failures are captured per item."""
        results: list[PackageResult] = []
        for ref in refs:
            source_path = ref if isinstance(ref, str) else ref.source_path
            try:
                package = await self.process(ref)
            except Exception as e:
                logger.error(f"Failed to process package {source_path}: {e}")
                results.append(PackageResult(source_path=source_path, success=False, error=str(e)))
            else:
                results.append(PackageResult(source_path=source_path, success=True, package=package))

        failed = sum(1 for r in results if not r.success)
        logger.info(f"Batch complete: {len(results) - failed} processed, {failed} failed")
        return BatchReport(results=results)

    async def _classify(self, ref: PackageRef) -> ProcessedPackage:
        suffix = _suffix(ref.source_path)
        if ref.files is not None or suffix in self.config.archive_extensions:
            return await self._classify_archive(ref)
        if suffix in self.config.descriptor_extensions:
            descriptor = await self.parser.parse_from(self.source, ref.source_path)
            return self._from_descriptor(ref, descriptor)

        logger.debug(f"No handler for {suffix or 'extensionless'} path {ref.source_path}")
        return self._from_synthetic(ref)

    async def _classify_archive(self, ref: PackageRef) -> ProcessedPackage:
        files = ref.files
        if files is None:
            try:
                files = await self.lister.list_files(ref.source_path)
            except (SourceError, OSError) as e:
                logger.warning(f"Could not list {ref.source_path}, using fallback: {e}")
                return self._from_synthetic(ref, status=PackageStatus.FALLBACK)

        detection = self.engine.detect(files)
        if detection is None:
            return self._from_synthetic(ref)

        if detection.family == PackageFamily.SCORM.value:
            return await self._classify_scorm(ref, files)
        if detection.family == PackageFamily.STORYLINE.value:
            return await self._classify_storyline(ref, files, detection)

        recommendation = self.mapper.map_family_to_template(detection.family, detection.confidence)
        return self._build(
            ref,
            family=detection.family,
            descriptor=synthetic_descriptor(ref.source_path),
            recommendation=recommendation,
        )

    async def _classify_scorm(self, ref: PackageRef, files: list[FileEntry]) -> ProcessedPackage:
        manifests = [f for f in files if f.name == MANIFEST_NAME]
        if not manifests:
            logger.warning(f"No {MANIFEST_NAME} in {ref.source_path}, using fallback")
            return self._from_synthetic(
                ref, family=PackageFamily.SCORM.value, status=PackageStatus.FALLBACK
            )

        # Root manifest wins over nested copies
        entry = min(manifests, key=lambda f: f.path.replace("\\", "/").count("/"))
        text = await self._read_member(ref, entry)
        if text is None:
            return self._from_synthetic(
                ref, family=PackageFamily.SCORM.value, status=PackageStatus.FALLBACK
            )

        return self._from_descriptor(ref, self.parser.parse(text))

    async def _classify_storyline(
        self, ref: PackageRef, files: list[FileEntry], detection: DetectionResult
    ) -> ProcessedPackage:
        family = PackageFamily.STORYLINE.value
        by_path = {f.path or f.name: f for f in files}
        document = find_story_document(list(by_path))
        if document is None:
            logger.warning(f"No story document in {ref.source_path}, using fallback")
            return self._from_synthetic(ref, family=family, status=PackageStatus.FALLBACK)

        text = await self._read_member(ref, by_path[document])
        if text is None:
            return self._from_synthetic(ref, family=family, status=PackageStatus.FALLBACK)

        try:
            model = self.story_parser.parse(text)
        except ValueError as e:
            logger.warning(f"Could not parse {document} in {ref.source_path}, using fallback: {e}")
            return self._from_synthetic(ref, family=family, status=PackageStatus.FALLBACK)

        return self._build(
            ref,
            family=family,
            descriptor=synthetic_descriptor(ref.source_path, title=model.title or None),
            recommendation=self.mapper.map_interactions_to_template(model),
        )

    async def _read_member(self, ref: PackageRef, entry: FileEntry) -> str | None:
        """Member text through the lister, else the entry's sampled content."""
        try:
            return await self.lister.read_member(ref.source_path, entry.path or entry.name)
        except (SourceError, OSError) as e:
            if entry.content is not None:
                logger.debug(f"Using sampled content of {entry.name}: {e}")
                return entry.content
            logger.warning(f"Could not read {entry.name} from {ref.source_path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Record building
    # ------------------------------------------------------------------

    def _from_descriptor(self, ref: PackageRef, descriptor: Descriptor) -> ProcessedPackage:
        family = PackageFamily.SCORM.value
        if not descriptor.valid:
            logger.warning(
                f"Invalid manifest for {ref.source_path}, using fallback: {descriptor.error}"
            )
            return self._from_synthetic(ref, family=family, status=PackageStatus.FALLBACK)

        return self._build(
            ref,
            family=family,
            descriptor=descriptor,
            recommendation=self.recommend_for_descriptor(descriptor),
        )

    def _from_synthetic(
        self,
        ref: PackageRef,
        family: str | None = None,
        status: PackageStatus = PackageStatus.PROCESSED,
    ) -> ProcessedPackage:
        descriptor = synthetic_descriptor(ref.source_path)
        return self._build(
            ref,
            family=family,
            descriptor=descriptor,
            recommendation=self.recommend_for_descriptor(descriptor),
            status=status,
        )

    def recommend_for_descriptor(self, descriptor: Descriptor) -> TemplateRecommendation:
        """Structural mapping, refined by title keywords when it has no signal."""
        recommendation = self.mapper.map_descriptor_to_template(descriptor)
        if recommendation != DESCRIPTOR_DEFAULT:
            return recommendation

        titled = self.parser.detect_template_type(descriptor)
        if titled is TemplateId.SCORMVIEWER:
            return recommendation
        return TemplateRecommendation(template=titled, confidence=TITLE_SIGNAL_CONFIDENCE)

    def _configuration(self, descriptor: Descriptor, template: TemplateId) -> TemplateConfiguration:
        if descriptor.synthetic:
            return default_configuration(template)
        return self.parser.extract_configuration(descriptor, template)

    def _build(
        self,
        ref: PackageRef,
        family: str | None,
        descriptor: Descriptor,
        recommendation: TemplateRecommendation,
        status: PackageStatus = PackageStatus.PROCESSED,
    ) -> ProcessedPackage:
        name = ref.name
        if not name:
            name = package_name(ref.source_path) if descriptor.synthetic else descriptor.title
        return ProcessedPackage(
            id=uuid4().hex,
            name=name or package_name(ref.source_path),
            source_path=ref.source_path,
            family=family,
            template_type=recommendation.template,
            confidence=recommendation.confidence,
            descriptor=descriptor,
            configuration=self._configuration(descriptor, recommendation.template),
            status=status,
            processed_at=_now(),
        )

    # ------------------------------------------------------------------
    # Queries and updates
    # ------------------------------------------------------------------

    def get_recommended_template(
        self, package: ProcessedPackage, min_confidence: float | None = None
    ) -> TemplateId:
        """Package template when confident enough, contentreveal otherwise."""
        threshold = self.config.min_confidence if min_confidence is None else min_confidence
        if package.confidence >= threshold:
            return package.template_type
        return TemplateId.CONTENTREVEAL

    async def get_package(self, package_id: str) -> ProcessedPackage:
        """Processed package by id.

        Raises:
            PackageNotFoundError: If no cached package has this id
        """
        package = await self.store.find_by_id(package_id)
        if package is None:
            raise PackageNotFoundError(package_id)
        return package

    async def list_packages(self) -> list[ProcessedPackage]:
        return await self.store.values()

    async def packages_by_template(self, template: TemplateId | str) -> list[ProcessedPackage]:
        return await self.store.values(TemplateId(template))

    async def update_configuration(self, package_id: str, **changes: Any) -> ProcessedPackage:
        """Merge configuration fields into a stored package.

        Raises:
            PackageNotFoundError: If no cached package has this id
            ValueError: If a change names an unknown configuration field
        """
        package = await self.get_package(package_id)

        unknown = set(changes) - set(TemplateConfiguration.model_fields)
        if unknown:
            raise ValueError(f"Unknown configuration fields: {sorted(unknown)}")

        configuration = TemplateConfiguration.model_validate(
            {**package.configuration.model_dump(), **changes}
        )
        updated = package.model_copy(
            update={"configuration": configuration, "processed_at": _now()}
        )
        await self.store.put(updated)
        logger.debug(f"Updated configuration of {package_id}: {sorted(changes)}")
        return updated

    async def clear_cache(self) -> None:
        await self.store.clear()
        logger.debug("Package cache cleared")

    async def stats(self) -> dict[str, int]:
        return {
            "cached_packages": await self.store.count(),
            "detection_rule_count": self.engine.table.rule_count,
        }


class PackageProcessorSync:
    """
    Synchronous wrapper around PackageProcessor.

    Uses asyncio.run() for every call, so it must not be used from inside a
    running event loop.
    """

    def __init__(self, processor: PackageProcessor | None = None, **kwargs: Any) -> None:
        self._async_processor = processor or PackageProcessor(**kwargs)

    @property
    def processor(self) -> PackageProcessor:
        """Access underlying async processor."""
        return self._async_processor

    def process(self, ref: PackageRef | str) -> ProcessedPackage:
        """Classify a package (blocking)."""
        return asyncio.run(self._async_processor.process(ref))

    def process_many(self, refs: Iterable[PackageRef | str]) -> BatchReport:
        """Process packages in order (blocking)."""
        return asyncio.run(self._async_processor.process_many(refs))

    def get_recommended_template(
        self, package: ProcessedPackage, min_confidence: float | None = None
    ) -> TemplateId:
        return self._async_processor.get_recommended_template(package, min_confidence)

    def get_package(self, package_id: str) -> ProcessedPackage:
        return asyncio.run(self._async_processor.get_package(package_id))

    def list_packages(self) -> list[ProcessedPackage]:
        return asyncio.run(self._async_processor.list_packages())

    def packages_by_template(self, template: TemplateId | str) -> list[ProcessedPackage]:
        return asyncio.run(self._async_processor.packages_by_template(template))

    def update_configuration(self, package_id: str, **changes: Any) -> ProcessedPackage:
        return asyncio.run(self._async_processor.update_configuration(package_id, **changes))

    def clear_cache(self) -> None:
        asyncio.run(self._async_processor.clear_cache())

    def stats(self) -> dict[str, int]:
        return asyncio.run(self._async_processor.stats())
