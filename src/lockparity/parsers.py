import json
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import toml

from .error_handling import log_parsing_error
from .exceptions import LockfileParseError
from .package import DependencyRef, PackageRecord, PackageSet

CARGO_LOCK = "cargo_lock"
PACKAGE_LIST_JSON = "package_list_json"


def get_supported_formats() -> List[str]:
    """Return a list of supported lockfile formats."""
    return [CARGO_LOCK, PACKAGE_LIST_JSON]


def detect_lockfile_format(src: str) -> str:
    """
    Detect the lockfile format from a path or URL.

    Args:
        src: Path or URL of the lockfile

    Returns:
        str: Format identifier
    """
    path = urlparse(src).path if "://" in src else src
    name = PurePosixPath(path.replace("\\", "/")).name.lower()
    if name.endswith(".json"):
        return PACKAGE_LIST_JSON
    return CARGO_LOCK


def _decode(content: bytes, origin: str) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        log_parsing_error(
            "Lockfile contains invalid UTF-8", "parsers", "_decode", origin=origin, exception=e
        )
        raise LockfileParseError(f"Lockfile {origin} contains invalid UTF-8", origin)


def parse_dependency_string(spec: str) -> DependencyRef:
    """
    Parse a Cargo.lock dependency entry.

    Entries look like `name`, `name version` or `name version (source)`;
    version and source are only written when needed to disambiguate.
    """
    spec = spec.strip()
    source = None
    if spec.endswith(")") and "(" in spec:
        spec, source = spec[:-1].split("(", 1)
        spec = spec.strip()
        source = source.strip()

    parts = spec.split()
    if not parts or len(parts) > 2:
        raise LockfileParseError(f"Malformed dependency entry: {spec!r}")
    name = parts[0]
    version = parts[1] if len(parts) == 2 else None
    return DependencyRef(name=name, version=version, source=source or None)


def _legacy_checksums(data: Dict[str, Any]) -> Dict[Tuple[str, str, Optional[str]], str]:
    """Checksums stored under [metadata] by version 1 lockfiles."""
    checksums = {}
    metadata = data.get("metadata", {})
    if not isinstance(metadata, dict):
        return checksums
    for key, value in metadata.items():
        if not key.startswith("checksum ") or value == "<none>":
            continue
        ref = parse_dependency_string(key[len("checksum "):])
        if ref.version:
            checksums[(ref.name, ref.version, ref.source)] = value
    return checksums


def _check_unique_hashes(records: List[PackageRecord], origin: str) -> None:
    seen: Dict[str, str] = {}
    for record in records:
        if not record.content_hash:
            continue
        other = seen.get(record.content_hash)
        if other is not None:
            raise LockfileParseError(
                f"Packages {other} and {record.full_name} in {origin} share hash "
                f"{record.content_hash}",
                origin,
            )
        seen[record.content_hash] = record.full_name


def _optional_string(
    package: Dict[str, Any], key: str, where: str, origin: str
) -> Optional[str]:
    value = package.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise LockfileParseError(f"'{key}' of {where} in {origin} must be a string", origin)
    return value


def _dependency_list(package: Dict[str, Any], where: str, origin: str) -> List[Any]:
    dependencies = package.get("dependencies", [])
    if not isinstance(dependencies, list):
        raise LockfileParseError(
            f"'dependencies' of {where} in {origin} must be a list", origin
        )
    return dependencies


def parse_cargo_lock(text: str, origin: str = "Cargo.lock") -> PackageSet:
    """
    Parses Cargo.lock content into a package set.

    Cargo.lock files use TOML format and contain the exact resolved
    dependency graph under repeated [[package]] tables.

    Args:
        text: Lockfile content
        origin: Path or URL the content came from, for error messages

    Returns:
        PackageSet: One record per [[package]] entry

    Raises:
        LockfileParseError: If content is not valid TOML or a package is malformed
    """
    try:
        data = toml.loads(text)
    except toml.TomlDecodeError as e:
        log_parsing_error(
            f"Invalid TOML format in lockfile: {e}",
            "parsers",
            "parse_cargo_lock",
            origin=origin,
            exception=e,
        )
        raise LockfileParseError(f"Invalid TOML format in {origin}: {e}", origin)

    packages = data.get("package", [])
    if not isinstance(packages, list):
        raise LockfileParseError(f"'package' in {origin} must be an array of tables", origin)

    checksums = _legacy_checksums(data)
    records = []
    for index, package in enumerate(packages):
        if not isinstance(package, dict):
            raise LockfileParseError(f"Package entry {index} in {origin} is not a table", origin)

        name = str(package.get("name", "")).strip()
        version = str(package.get("version", "")).strip()
        if not name or not version:
            raise LockfileParseError(
                f"Package entry {index} in {origin} is missing name or version", origin
            )

        where = f"package {name} {version}"
        source = _optional_string(package, "source", where, origin)
        checksum = _optional_string(package, "checksum", where, origin) or checksums.get(
            (name, version, source)
        )
        entries = _dependency_list(package, where, origin)
        if not all(isinstance(dep, str) for dep in entries):
            raise LockfileParseError(
                f"Dependencies of {where} in {origin} must be strings", origin
            )
        try:
            dependencies = tuple(parse_dependency_string(dep) for dep in entries)
        except LockfileParseError as e:
            raise LockfileParseError(f"{e} (package {name} {version} in {origin})", origin)

        records.append(
            PackageRecord(
                name=name,
                version=version,
                content_hash=checksum,
                source=source,
                dependencies=dependencies,
            )
        )

    _check_unique_hashes(records, origin)
    return tuple(records)


def _json_dependency(entry: Any, origin: str) -> DependencyRef:
    if isinstance(entry, str):
        return parse_dependency_string(entry)
    if isinstance(entry, dict) and entry.get("name"):
        where = f"dependency {entry['name']}"
        return DependencyRef(
            name=str(entry["name"]),
            version=_optional_string(entry, "version", where, origin),
            source=_optional_string(entry, "source", where, origin),
            content_hash=_optional_string(entry, "hash", where, origin),
        )
    raise LockfileParseError(f"Malformed dependency entry in {origin}: {entry!r}", origin)


def parse_package_list_json(text: str, origin: str = "packages.json") -> PackageSet:
    """
    Parses a JSON package list: {"packages": [{"name", "version", "hash",
    "source", "dependencies"}]}. Dependencies are Cargo-style strings or
    objects with name/version/source/hash keys.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        log_parsing_error(
            f"Invalid JSON in package list: {e}",
            "parsers",
            "parse_package_list_json",
            origin=origin,
            exception=e,
        )
        raise LockfileParseError(f"Invalid JSON in {origin}: {e}", origin)

    packages = data.get("packages") if isinstance(data, dict) else data
    if not isinstance(packages, list):
        raise LockfileParseError(f"{origin} must contain a 'packages' array", origin)

    records = []
    for index, package in enumerate(packages):
        if not isinstance(package, dict):
            raise LockfileParseError(f"Package entry {index} in {origin} is not an object", origin)
        name = str(package.get("name") or "").strip()
        version = str(package.get("version") or "").strip()
        if not name or not version:
            raise LockfileParseError(
                f"Package entry {index} in {origin} is missing name or version", origin
            )
        where = f"package {name} {version}"
        records.append(
            PackageRecord(
                name=name,
                version=version,
                content_hash=_optional_string(package, "hash", where, origin),
                source=_optional_string(package, "source", where, origin),
                dependencies=tuple(
                    _json_dependency(dep, origin)
                    for dep in _dependency_list(package, where, origin)
                ),
            )
        )

    _check_unique_hashes(records, origin)
    return tuple(records)


def parse_lockfile(content: bytes, src: str, lockfile_format: Optional[str] = None) -> PackageSet:
    """
    Parse lockfile bytes in any supported format.

    Raises:
        LockfileParseError: If the format is unknown or parsing fails
    """
    lockfile_format = lockfile_format or detect_lockfile_format(src)
    parser_map = {
        CARGO_LOCK: parse_cargo_lock,
        PACKAGE_LIST_JSON: parse_package_list_json,
    }

    parser = parser_map.get(lockfile_format)
    if not parser:
        raise LockfileParseError(f"No parser available for format: {lockfile_format}", src)

    return parser(_decode(content, src), src)
