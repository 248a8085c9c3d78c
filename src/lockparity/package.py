from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class DependencyRef:
    """A declared dependency of a package, resolved later against its lockfile."""

    name: str
    version: Optional[str] = None
    source: Optional[str] = None
    content_hash: Optional[str] = None

    def __str__(self) -> str:
        text = self.name
        if self.version:
            text += f" {self.version}"
        if self.source:
            text += f" ({self.source})"
        if self.content_hash:
            text += f" #{self.content_hash}"
        return text


@dataclass(frozen=True)
class PackageRecord:
    """A unified internal data structure to represent one pinned package."""

    name: str
    version: str
    content_hash: Optional[str] = None
    source: Optional[str] = None
    dependencies: Tuple[DependencyRef, ...] = field(default_factory=tuple)

    @property
    def source_revision(self) -> Optional[str]:
        """Precise revision of a git source (the part after '#'), if any."""
        if self.source and "#" in self.source:
            return self.source.rsplit("#", 1)[1]
        return None

    @property
    def full_name(self) -> str:
        return f"{self.name}@{self.version}"

    def __str__(self) -> str:
        return self.full_name


# A PackageSet is the full list of records loaded from one lockfile.
PackageSet = Tuple[PackageRecord, ...]
