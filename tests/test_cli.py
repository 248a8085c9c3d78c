"""
CLI interface tests for lockparity.
Tests the command-line interface and main entry points.
"""

import json

import pytest
from click.testing import CliRunner

from lockparity.main import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "lockparity" in result.output.lower()
        assert "compare" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_info_command(self, runner):
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "lockparity" in result.output.lower()
        assert "Cargo.lock" in result.output


class TestCompareCommand:
    """Test the compare command and its exit codes."""

    def test_identical_lockfiles_match(self, runner, cargo_lock_a):
        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(cargo_lock_a)])

        assert result.exit_code == 0
        assert "MATCH" in result.output
        assert "MISMATCH" not in result.output

    def test_differing_lockfiles_mismatch(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(cargo_lock_b)])

        assert result.exit_code == 1
        assert "MISMATCH" in result.output
        assert "bar" in result.output

    def test_exclusion_on_both_sides(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(
            cli,
            [
                "compare",
                str(cargo_lock_a),
                str(cargo_lock_b),
                "--exclude-pkg-a",
                "bar",
                "--exclude-pkg-b",
                "bar",
            ],
        )

        assert result.exit_code == 0

    def test_exclusion_on_one_side_only(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(
            cli,
            ["compare", str(cargo_lock_a), str(cargo_lock_b), "--exclude-pkg-a", "bar"],
        )

        # bar is then only in B, which is not a version mismatch
        assert result.exit_code == 0

    def test_root_by_name(self, runner, package_list_a, package_list_b):
        result = runner.invoke(
            cli,
            [
                "compare",
                str(package_list_a),
                str(package_list_b),
                "--pkg-name-a",
                "foo",
                "--output-format",
                "json",
            ],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [e["name"] for e in data["entries"]] == ["bar", "foo"]

    def test_json_output(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(
            cli,
            ["compare", str(cargo_lock_a), str(cargo_lock_b), "--output-format", "json"],
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["all_common_versions_match"] is False
        assert data["summary"]["different"] == 1
        bar = data["entries"][0]
        assert bar["versions_a"] == ["2.0.0"]
        assert bar["versions_b"] == ["2.1.0"]
        assert bar["path_a"] == ["bar@2.0.0"]

    def test_json_output_file(self, runner, cargo_lock_a, cargo_lock_b, temp_dir):
        output_file = temp_dir / "report.json"

        result = runner.invoke(
            cli,
            [
                "compare",
                str(cargo_lock_a),
                str(cargo_lock_b),
                "--output-format",
                "json",
                "-o",
                str(output_file),
            ],
        )

        assert result.exit_code == 1
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data["lockfile_b"] == str(cargo_lock_b)

    def test_output_file_requires_json(self, runner, cargo_lock_a, temp_dir):
        result = runner.invoke(
            cli,
            ["compare", str(cargo_lock_a), str(cargo_lock_a), "-o", str(temp_dir / "x.json")],
        )

        assert result.exit_code == 2

    def test_strict_versions(self, runner, cargo_lock_workspace):
        lockfile = str(cargo_lock_workspace)

        lenient = runner.invoke(cli, ["compare", lockfile, lockfile])
        strict = runner.invoke(cli, ["compare", lockfile, lockfile, "--strict-versions"])

        assert lenient.exit_code == 0
        assert strict.exit_code == 1

    def test_narrow_to_common(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(
            cli,
            [
                "compare",
                str(cargo_lock_a),
                str(cargo_lock_b),
                "--narrow-to-common",
                "--output-format",
                "json",
            ],
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["summary"]["narrowed_a"] == 0

    def test_quiet_mismatch(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(cargo_lock_b), "-q"])

        assert result.exit_code == 1
        assert "MISMATCH" in result.output
        assert "Summary" not in result.output

    def test_verbose_output(self, runner, cargo_lock_a, cargo_lock_b):
        result = runner.invoke(
            cli, ["compare", str(cargo_lock_a), str(cargo_lock_b), "--verbose"]
        )

        assert result.exit_code == 1
        assert "Lockfile A" in result.output


class TestErrorHandling:
    """Test error exit codes."""

    def test_hash_and_name_are_exclusive(self, runner, cargo_lock_a):
        result = runner.invoke(
            cli,
            [
                "compare",
                str(cargo_lock_a),
                str(cargo_lock_a),
                "--pkg-hash-a",
                "abc",
                "--pkg-name-a",
                "foo",
            ],
        )

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_missing_lockfile(self, runner, cargo_lock_a, temp_dir):
        result = runner.invoke(
            cli, ["compare", str(cargo_lock_a), str(temp_dir / "missing.lock")]
        )

        assert result.exit_code == 2
        assert "Error" in result.output

    def test_unknown_root_name(self, runner, cargo_lock_a):
        result = runner.invoke(
            cli, ["compare", str(cargo_lock_a), str(cargo_lock_a), "--pkg-name-a", "nope"]
        )

        assert result.exit_code == 2
        assert "nope" in result.output

    def test_unknown_root_hash(self, runner, cargo_lock_a):
        result = runner.invoke(
            cli, ["compare", str(cargo_lock_a), str(cargo_lock_a), "--pkg-hash-b", "deadbeef"]
        )

        assert result.exit_code == 2

    def test_malformed_lockfile(self, runner, cargo_lock_a, temp_dir):
        broken = temp_dir / "Cargo.lock"
        broken.write_text("[[package]\nname = ")

        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(broken)])

        assert result.exit_code == 2

    def test_missing_argument(self, runner, cargo_lock_a):
        result = runner.invoke(cli, ["compare", str(cargo_lock_a)])

        assert result.exit_code != 0

    def test_invalid_output_format(self, runner, cargo_lock_a):
        result = runner.invoke(
            cli,
            ["compare", str(cargo_lock_a), str(cargo_lock_a), "--output-format", "xml"],
        )

        assert result.exit_code == 2

    def test_malformed_package_list_fields(self, runner, temp_dir):
        broken = temp_dir / "broken.json"
        broken.write_text(
            json.dumps({"packages": [{"name": "foo", "version": "1.0", "dependencies": None}]})
        )

        result = runner.invoke(cli, ["compare", str(broken), str(broken)])

        assert result.exit_code == 2
        assert "dependencies" in result.output

    def test_unwritable_output_file(self, runner, cargo_lock_a, temp_dir):
        result = runner.invoke(
            cli,
            [
                "compare",
                str(cargo_lock_a),
                str(cargo_lock_a),
                "--output-format",
                "json",
                "-o",
                str(temp_dir / "missing" / "out.json"),
            ],
        )

        assert result.exit_code == 2
        assert "I/O error" in result.output

    def test_unexpected_failure_is_an_error(self, runner, cargo_lock_a, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("lockparity.main.run_comparison", explode)

        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(cargo_lock_a)])

        assert result.exit_code == 2
        assert "boom" in result.output

    def test_non_object_config_file_does_not_break_compare(
        self, runner, cargo_lock_a, temp_dir, monkeypatch
    ):
        (temp_dir / ".lockparity.json").write_text("[1, 2]")
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(cli, ["compare", str(cargo_lock_a), str(cargo_lock_a)])

        assert result.exit_code == 0

class TestConfigCommands:
    """Test configuration management commands."""

    def test_config_init(self, runner, temp_dir):
        config_file = temp_dir / "lockparity.json"

        result = runner.invoke(cli, ["config", "init", "--path", str(config_file)])

        assert result.exit_code == 0
        config_data = json.loads(config_file.read_text())
        assert "compare" in config_data

    def test_config_init_keeps_existing_file(self, runner, temp_dir):
        config_file = temp_dir / "lockparity.json"
        config_file.write_text("{}")

        result = runner.invoke(cli, ["config", "init", "--path", str(config_file)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert config_file.read_text() == "{}"

    def test_config_show(self, runner):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "Strict Versions" in result.output

    def test_config_validate_valid_file(self, runner, temp_dir):
        config_file = temp_dir / "valid-config.json"
        config_file.write_text(json.dumps({"compare": {"strict_versions": True}}))

        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0
        assert "valid" in result.output.lower()

    def test_config_validate_bad_values(self, runner, temp_dir):
        config_file = temp_dir / "bad-config.json"
        config_file.write_text(json.dumps({"network": {"connect_timeout": -1}}))

        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 2
        assert "connect_timeout" in result.output

    def test_config_validate_invalid_json(self, runner, temp_dir):
        config_file = temp_dir / "invalid-config.json"
        config_file.write_text("invalid json content")

        result = runner.invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 2
