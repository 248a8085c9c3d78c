"""Shared fixtures for lockparity tests."""

import json
import os
import shutil
import tempfile
from pathlib import Path

import pytest

from lockparity.cli_config import reset_config
from lockparity.error_handling import setup_error_handling

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"

CARGO_LOCK_A = f"""# This file is automatically @generated by Cargo.
# It is not intended for manual editing.
version = 3

[[package]]
name = "bar"
version = "2.0.0"
source = "{REGISTRY}"
checksum = "b200000000000000000000000000000000000000000000000000000000000000"

[[package]]
name = "foo"
version = "1.0.0"
source = "{REGISTRY}"
checksum = "f100000000000000000000000000000000000000000000000000000000000000"
dependencies = [
 "bar",
]
"""

CARGO_LOCK_B = f"""# This file is automatically @generated by Cargo.
# It is not intended for manual editing.
version = 3

[[package]]
name = "bar"
version = "2.1.0"
source = "{REGISTRY}"
checksum = "b210000000000000000000000000000000000000000000000000000000000000"

[[package]]
name = "foo"
version = "1.0.0"
source = "{REGISTRY}"
checksum = "f100000000000000000000000000000000000000000000000000000000000000"
dependencies = [
 "bar",
]
"""

# A workspace with two members and a crate pulled from git
CARGO_LOCK_WORKSPACE = f"""version = 3

[[package]]
name = "app"
version = "0.1.0"
dependencies = [
 "log 0.4.20",
 "serde",
 "util",
]

[[package]]
name = "tool"
version = "0.1.0"
dependencies = [
 "log 0.3.9",
]

[[package]]
name = "util"
version = "0.1.0"
source = "git+https://github.com/example/util?branch=main#0123abcd"
dependencies = [
 "serde",
]

[[package]]
name = "log"
version = "0.4.20"
source = "{REGISTRY}"
checksum = "1040000000000000000000000000000000000000000000000000000000000000"

[[package]]
name = "log"
version = "0.3.9"
source = "{REGISTRY}"
checksum = "1030000000000000000000000000000000000000000000000000000000000000"

[[package]]
name = "serde"
version = "1.0.190"
source = "{REGISTRY}"
checksum = "5e00000000000000000000000000000000000000000000000000000000000000"
"""

# Version 1 lockfiles keep checksums in [metadata]
LEGACY_REGISTRY = "registry+https://example/index"

CARGO_LOCK_V1 = f"""[[package]]
name = "foo"
version = "1.0.0"
source = "{LEGACY_REGISTRY}"
dependencies = [
 "bar 2.0.0 ({LEGACY_REGISTRY})",
]

[[package]]
name = "bar"
version = "2.0.0"
source = "{LEGACY_REGISTRY}"

[metadata]
"checksum foo 1.0.0 ({LEGACY_REGISTRY})" = "f100000000000000000000000000000000000000000000000000000000000000"
"checksum bar 2.0.0 ({LEGACY_REGISTRY})" = "b200000000000000000000000000000000000000000000000000000000000000"
"""

PACKAGE_LIST_A = {
    "packages": [
        {"name": "foo", "version": "1.0", "dependencies": ["bar"]},
        {"name": "bar", "version": "2.0"},
        {"name": "extra", "version": "1.0"},
    ]
}

PACKAGE_LIST_B = {
    "packages": [
        {"name": "foo", "version": "1.0", "dependencies": [{"name": "bar"}]},
        {"name": "bar", "version": "2.0"},
    ]
}


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Start every test with no cached config, no LOCKPARITY_* env and a fresh error handler."""
    for key in list(os.environ):
        if key.startswith("LOCKPARITY_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def cargo_lock_a(temp_dir):
    """Cargo.lock where foo 1.0.0 depends on bar 2.0.0."""
    path = temp_dir / "a" / "Cargo.lock"
    path.parent.mkdir()
    path.write_text(CARGO_LOCK_A)
    return path


@pytest.fixture
def cargo_lock_b(temp_dir):
    """Cargo.lock where foo 1.0.0 depends on bar 2.1.0."""
    path = temp_dir / "b" / "Cargo.lock"
    path.parent.mkdir()
    path.write_text(CARGO_LOCK_B)
    return path


@pytest.fixture
def cargo_lock_workspace(temp_dir):
    path = temp_dir / "workspace" / "Cargo.lock"
    path.parent.mkdir()
    path.write_text(CARGO_LOCK_WORKSPACE)
    return path


@pytest.fixture
def package_list_a(temp_dir):
    path = temp_dir / "packages-a.json"
    path.write_text(json.dumps(PACKAGE_LIST_A))
    return path


@pytest.fixture
def package_list_b(temp_dir):
    path = temp_dir / "packages-b.json"
    path.write_text(json.dumps(PACKAGE_LIST_B))
    return path
