"""
Error taxonomy for lockparity.

Graph and selector errors are raised by the comparison core and carry the
offending identifiers so callers can report them. A version mismatch is
never an error; it is a normal comparison outcome.
"""

from typing import Iterable, List, Optional


class LockParityError(Exception):
    """Base class for every error raised by lockparity."""


class GraphError(LockParityError):
    """A dependency reference cannot be turned into a sound edge."""

    def __init__(self, message: str, package: str, reference: str):
        self.package = package
        self.reference = reference
        super().__init__(message)


class UnresolvedDependency(GraphError):
    """No package in the set matches a dependency reference."""

    def __init__(self, package: str, reference: str):
        super().__init__(
            f"Dependency '{reference}' of {package} does not match any package in the lockfile",
            package,
            reference,
        )


class AmbiguousDependency(GraphError):
    """More than one package matches a dependency reference."""

    def __init__(self, package: str, reference: str, candidates: Iterable[str]):
        self.candidates: List[str] = sorted(candidates)
        super().__init__(
            f"Dependency '{reference}' of {package} is ambiguous: "
            f"matches {', '.join(self.candidates)}",
            package,
            reference,
        )


class SelectorError(LockParityError):
    """A root selector does not identify a unique starting package."""

    def __init__(self, message: str, identifier: str):
        self.identifier = identifier
        super().__init__(message)


class HashNotFound(SelectorError):
    def __init__(self, content_hash: str):
        super().__init__(f"No package with hash {content_hash} found", content_hash)


class NameNotFound(SelectorError):
    def __init__(self, name: str):
        super().__init__(f"No package named {name} found", name)


class AmbiguousName(SelectorError):
    def __init__(self, name: str, versions: Iterable[str]):
        self.versions: List[str] = sorted(versions)
        super().__init__(
            f"Package name {name} is ambiguous: found versions {', '.join(self.versions)}; "
            "select the root by hash instead",
            name,
        )


class AmbiguousHash(SelectorError):
    def __init__(self, content_hash: str, candidates: Iterable[str]):
        self.candidates: List[str] = sorted(candidates)
        super().__init__(
            f"Hash {content_hash} matches several packages: {', '.join(self.candidates)}",
            content_hash,
        )


class SourceError(LockParityError):
    """A lockfile could not be fetched from its path or URL."""

    def __init__(self, message: str, src: Optional[str] = None):
        self.src = src
        super().__init__(message)


class LockfileParseError(LockParityError, ValueError):
    """Lockfile content is not a structurally valid package set."""

    def __init__(self, message: str, origin: Optional[str] = None):
        self.origin = origin
        super().__init__(message)


class ConfigurationError(LockParityError):
    """Invalid combination of options or configuration values."""
