"""Canonical parsed manifest tree.

A Descriptor is what DescriptorParser produces from an imsmanifest-style
document: metadata, an organization hierarchy and a flat resource list.
Invalid documents still produce a Descriptor with ``valid=False``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Objective(BaseModel):
    """Learning objective attached to an organization item."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    satisfied_by_measure: bool = False
    min_normalized_measure: float | None = None


class OrganizationItem(BaseModel):
    """Node of the organization tree (a learning object or a grouping)."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    resource_ref: str | None = Field(default=None, description="identifierref of the launched resource")
    title: str = ""
    visible: bool = True
    parameters: str = ""
    prerequisites: str | None = None
    mastery_score: float | None = None
    objectives: list[Objective] = Field(default_factory=list)
    children: list[OrganizationItem] = Field(default_factory=list)


class OrganizationNode(BaseModel):
    """One <organization> and its item tree."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str = ""
    structure_kind: str = "hierarchical"
    items: list[OrganizationItem] = Field(default_factory=list)


class FileRef(BaseModel):
    """File listed under a resource."""

    model_config = ConfigDict(frozen=True)

    href: str


class ResourceRef(BaseModel):
    """Dependency on another resource, by identifier only."""

    model_config = ConfigDict(frozen=True)

    identifier_ref: str


class Resource(BaseModel):
    """One <resource> entry."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    type: str | None = None
    scorm_type: str | None = None
    href: str | None = None
    files: list[FileRef] = Field(default_factory=list)
    dependencies: list[ResourceRef] = Field(default_factory=list)


class Descriptor(BaseModel):
    """Parsed manifest.

    Attributes:
        id: Manifest identifier
        version: Manifest version attribute ("1.2" when absent)
        metadata: Flat metadata mapping, None for invalid documents
        default_organization: Identifier named by <organizations default=...>
        organizations: Organization trees in document order
        resources: Resources in document order
        valid: False when the document could not be parsed
        error: Parse or fetch error message for invalid documents
        synthetic: True when built from file naming instead of a real manifest
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    version: str | None = "1.2"
    metadata: dict[str, str] | None = Field(default_factory=dict)
    default_organization: str | None = None
    organizations: list[OrganizationNode] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    valid: bool = True
    error: str | None = None
    synthetic: bool = False

    @classmethod
    def invalid(cls, error: str) -> Descriptor:
        """Descriptor for a document that failed to parse or fetch."""
        return cls(
            id=None,
            version=None,
            metadata=None,
            organizations=[],
            resources=[],
            valid=False,
            error=error,
        )

    @property
    def title(self) -> str:
        """Metadata title, falling back to the first organization title."""
        if self.metadata and self.metadata.get("title"):
            return self.metadata["title"]
        if self.organizations:
            return self.organizations[0].title
        return ""

    @property
    def item_count(self) -> int:
        """Total number of organization items across all trees."""
        count = 0
        stack = [item for org in self.organizations for item in org.items]
        while stack:
            item = stack.pop()
            count += 1
            stack.extend(item.children)
        return count

    @property
    def max_depth(self) -> int:
        """Deepest item nesting level (top-level items are depth 1)."""
        deepest = 0
        stack = [(item, 1) for org in self.organizations for item in org.items]
        while stack:
            item, depth = stack.pop()
            deepest = max(deepest, depth)
            stack.extend((child, depth + 1) for child in item.children)
        return deepest
