"""Manifest parser - imsmanifest-style XML into a Descriptor.

Handles SCORM 1.2 and 2004 manifests (IMS CP with ADL CP / IMS SS / LOM
extensions). Lookups use local names so namespace prefixes do not matter.

``parse`` never raises: markup that cannot be parsed, or a document whose
root is not ``manifest``, comes back as ``Descriptor(valid=False, error=...)``
and callers branch on ``valid``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

from lessonprobe.core.io.errors import SourceError
from lessonprobe.core.io.protocols import DescriptorSource
from lessonprobe.core.mapping.defaults import default_configuration
from lessonprobe.core.models.descriptor import (
    Descriptor,
    OrganizationItem,
    OrganizationNode,
    Resource,
)
from lessonprobe.core.models.enums import TemplateId
from lessonprobe.core.models.package import TemplateConfiguration
from lessonprobe.core.parsers.xml import (
    XMLParser,
    attr,
    children,
    first_child,
    first_descendant,
    local_name,
    text_of,
)
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 64

_OBJECTIVE_TAGS = frozenset({"objective", "primaryobjective"})

# Metadata-title keywords, checked in order by detect_template_type.
TITLE_KEYWORDS: tuple[tuple[tuple[str, ...], TemplateId], ...] = (
    (("quiz", "question", "assessment"), TemplateId.MCQ),
    (("flash", "card"), TemplateId.FLIPCARDS),
    (("match", "drag", "pair"), TemplateId.DRAGDROP),
    (("crossword", "puzzle"), TemplateId.CROSSWORD),
    (("survey", "poll"), TemplateId.SURVEY),
    (("timeline", "chronology"), TemplateId.TIMELINE),
    (("reveal", "panel", "content"), TemplateId.CONTENTREVEAL),
    (("label", "diagram"), TemplateId.LABELDIAGRAM),
    (("pick", "many"), TemplateId.PICKMANY),
    (("game", "arena", "challenge"), TemplateId.GAMEARENA),
)


def _to_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


class DescriptorParser:
    """Parser for imsmanifest-style descriptors.

    Example:
        >>> parser = DescriptorParser()
        >>> descriptor = parser.parse(open("imsmanifest.xml").read())
        >>> if descriptor.valid:
        ...     print(descriptor.title, len(descriptor.resources))
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize parser.

        Args:
            max_depth: Deepest organization item level kept; deeper items are dropped
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self.max_depth = max_depth
        self._xml_parser = XMLParser()

    def parse(self, raw_text: str) -> Descriptor:
        """Parse manifest text into a Descriptor (never raises).

        Args:
            raw_text: Manifest XML

        Returns:
            Descriptor, ``valid=False`` with ``error`` set on failure
        """
        try:
            root = self._xml_parser.parse_string(raw_text)
        except ValueError as e:
            logger.warning(f"Could not parse manifest: {e}")
            return Descriptor.invalid(str(e))

        if local_name(root.tag).lower() != "manifest":
            logger.warning(f"Root element is <{local_name(root.tag)}>, not <manifest>")
            return Descriptor.invalid("No manifest element found")

        try:
            organizations_elem = first_child(root, "organizations")
            descriptor = Descriptor(
                id=attr(root, "identifier"),
                version=attr(root, "version") or "1.2",
                metadata=self._extract_metadata(root),
                default_organization=(
                    attr(organizations_elem, "default") if organizations_elem is not None else None
                ),
                organizations=self._extract_organizations(organizations_elem),
                resources=self._extract_resources(root),
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            logger.warning(f"Manifest structure could not be extracted: {e}")
            return Descriptor.invalid(f"Invalid manifest structure: {e}")

        logger.debug(
            f"Parsed manifest {descriptor.id!r}: {len(descriptor.organizations)} organizations, "
            f"{descriptor.item_count} items, {len(descriptor.resources)} resources"
        )
        return descriptor

    async def parse_from(self, source: DescriptorSource, location: str) -> Descriptor:
        """Fetch manifest text through ``source`` and parse it.

        Fetch failures are logged and returned as an invalid Descriptor.
        """
        try:
            raw_text = await source.fetch(location)
        except (SourceError, OSError) as e:
            logger.warning(f"Could not fetch manifest from {location}: {e}")
            return Descriptor.invalid(str(e))
        return self.parse(raw_text)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _extract_metadata(self, root: ET.Element) -> dict[str, str]:
        metadata: dict[str, str] = {}
        metadata_elem = first_descendant(root, "metadata")

        if metadata_elem is not None:
            for key in ("schema", "schemaversion"):
                value = text_of(first_descendant(metadata_elem, key))
                if value:
                    metadata[key] = value

        # Title/description are taken from the whole document, first occurrence
        for key in ("title", "description"):
            value = text_of(first_descendant(root, key))
            if value:
                metadata[key] = value

        if metadata_elem is not None:
            for node in metadata_elem.iter():
                if node is metadata_elem or not isinstance(node.tag, str) or len(node):
                    continue
                value = (node.text or "").strip()
                if value:
                    metadata.setdefault(local_name(node.tag), value)

        return metadata

    def _extract_organizations(self, organizations_elem: ET.Element | None) -> list[OrganizationNode]:
        if organizations_elem is None:
            return []

        organizations = []
        for org_elem in children(organizations_elem, "organization"):
            title = attr(org_elem, "title") or text_of(first_child(org_elem, "title"))
            organizations.append(
                OrganizationNode(
                    id=attr(org_elem, "identifier"),
                    title=title,
                    structure_kind=attr(org_elem, "structure") or "hierarchical",
                    items=self._extract_items(org_elem),
                )
            )
        return organizations

    def _extract_items(self, parent: ET.Element) -> list[OrganizationItem]:
        """Walk the item tree with an explicit stack, dropping items past max_depth."""
        roots: list[dict[str, Any]] = []
        stack: list[tuple[ET.Element, list[dict[str, Any]], int]] = [
            (elem, roots, 1) for elem in reversed(list(children(parent, "item")))
        ]
        truncated = 0

        while stack:
            elem, siblings, depth = stack.pop()
            if depth > self.max_depth:
                truncated += sum(1 for e in elem.iter() if local_name(e.tag) == "item")
                continue

            node = self._item_fields(elem)
            siblings.append(node)
            for child in reversed(list(children(elem, "item"))):
                stack.append((child, node["children"], depth + 1))

        if truncated:
            logger.warning(
                f"Organization item nesting exceeds {self.max_depth} levels; "
                f"dropped {truncated} item(s)"
            )

        return [OrganizationItem.model_validate(node) for node in roots]

    def _item_fields(self, elem: ET.Element) -> dict[str, Any]:
        prerequisites_elem = first_child(elem, "prerequisites")
        return {
            "id": attr(elem, "identifier"),
            "resource_ref": attr(elem, "identifierref"),
            "title": attr(elem, "title") or text_of(first_child(elem, "title")),
            "visible": (attr(elem, "isvisible") or "true").lower() != "false",
            "parameters": attr(elem, "parameters") or "",
            "prerequisites": text_of(prerequisites_elem) if prerequisites_elem is not None else None,
            "mastery_score": _to_float(text_of(first_child(elem, "masteryscore"))),
            "objectives": self._extract_objectives(elem),
            "children": [],
        }

    def _extract_objectives(self, item_elem: ET.Element) -> list[dict[str, Any]]:
        """Objectives declared in the item's own sequencing, not in nested items."""
        objectives = []
        for child in item_elem:
            if not isinstance(child.tag, str) or local_name(child.tag).lower() == "item":
                continue
            for node in child.iter():
                if not isinstance(node.tag, str):
                    continue
                if local_name(node.tag).lower() not in _OBJECTIVE_TAGS:
                    continue
                measure = attr(node, "minNormalizedMeasure")
                if measure is None:
                    measure = text_of(first_child(node, "minNormalizedMeasure")) or None
                objectives.append(
                    {
                        "id": attr(node, "objectiveID"),
                        "satisfied_by_measure": (attr(node, "satisfiedByMeasure") or "").lower()
                        == "true",
                        "min_normalized_measure": _to_float(measure),
                    }
                )
        return objectives

    def _extract_resources(self, root: ET.Element) -> list[Resource]:
        resources_elem = first_child(root, "resources")
        if resources_elem is None:
            return []

        resources = []
        for res_elem in children(resources_elem, "resource"):
            resources.append(
                Resource.model_validate(
                    {
                        "id": attr(res_elem, "identifier"),
                        "type": attr(res_elem, "type"),
                        "scorm_type": attr(res_elem, "scormtype"),
                        "href": attr(res_elem, "href"),
                        "files": [
                            {"href": href}
                            for f in children(res_elem, "file")
                            if (href := attr(f, "href"))
                        ],
                        "dependencies": [
                            {"identifier_ref": ref}
                            for d in children(res_elem, "dependency")
                            if (ref := attr(d, "identifierref"))
                        ],
                    }
                )
            )
        return resources

    # ------------------------------------------------------------------
    # Descriptor-level views
    # ------------------------------------------------------------------

    def detect_template_type(self, descriptor: Descriptor) -> TemplateId:
        """Template suggested by titles and resource names; scormviewer when nothing fits."""
        if not descriptor.valid:
            return TemplateId.SCORMVIEWER

        title = (descriptor.metadata or {}).get("title", "").lower()
        if title:
            for keywords, template in TITLE_KEYWORDS:
                if any(keyword in title for keyword in keywords):
                    return template

        for resource in descriptor.resources:
            if "webcontent" not in (resource.type or "").lower():
                continue
            href = (resource.href or "").lower()
            if "quiz" in href:
                return TemplateId.MCQ
            if "game" in href:
                return TemplateId.GAMEARENA

        for org in descriptor.organizations:
            org_title = (org.title or "").lower()
            if "quiz" in org_title:
                return TemplateId.MCQ
            if "game" in org_title:
                return TemplateId.GAMEARENA

        return TemplateId.SCORMVIEWER

    def extract_configuration(
        self, descriptor: Descriptor, template: TemplateId | str | None = None
    ) -> TemplateConfiguration:
        """Template defaults overridden by values the descriptor declares.

        Args:
            descriptor: Parsed descriptor
            template: Template whose defaults to start from (scormviewer when None)

        Returns:
            TemplateConfiguration
        """
        if not descriptor.valid:
            return default_configuration(TemplateId.SCORMVIEWER)

        base = default_configuration(template or TemplateId.SCORMVIEWER)
        updates: dict[str, Any] = {}
        if descriptor.version:
            updates["version"] = descriptor.version

        lowered = {key.lower(): value for key, value in (descriptor.metadata or {}).items()}
        mastery = _to_float(lowered.get("masteryscore"))
        if mastery is None:
            mastery = self._first_item_mastery(descriptor)
        if mastery is not None:
            updates["mastery_score"] = mastery

        threshold = _to_float(lowered.get("completionthreshold"))
        if threshold is not None:
            updates["completion_threshold"] = threshold

        return base.model_copy(update=updates)

    @staticmethod
    def _first_item_mastery(descriptor: Descriptor) -> float | None:
        stack = [item for org in reversed(descriptor.organizations) for item in reversed(org.items)]
        while stack:
            item = stack.pop()
            if item.mastery_score is not None:
                return item.mastery_score
            stack.extend(reversed(item.children))
        return None

