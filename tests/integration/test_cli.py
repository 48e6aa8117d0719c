"""Integration tests for the license-scout command line."""

import csv
import json
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from license_scout.cli import app

runner = CliRunner()

APACHE_LICENSE = b"Apache License\nVersion 2.0, January 2004\n"
GPL_LICENSE = b"GNU GENERAL PUBLIC LICENSE\nVersion 3, 29 June 2007\n"


def _make_jar(path: Path, entries: dict[str, bytes]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        for name, content in entries.items():
            jar.writestr(name, content)


def _write_config(
    directory: Path,
    config_dir: Path,
    archive_type: str = "java",
    fail_on_error: bool = False,
    clean_output: bool = False,
) -> Path:
    config = directory / "licensescout.toml"
    config.write_text(
        f"""
[license-scout]
archive_type = "{archive_type}"
scan_directory = "lib"

[license-scout.files]
licenses = "{(config_dir / 'licenses.toml').as_posix()}"
providers = "{(config_dir / 'providers.toml').as_posix()}"
notices = "{(config_dir / 'notices.toml').as_posix()}"
checked_archives = "{(config_dir / 'checkedarchives.csv').as_posix()}"
name_mappings = "{(config_dir / 'namemappings.csv').as_posix()}"

[license-scout.clean-output]
active = {str(clean_output).lower()}
legal_states = ["unknown"]

[license-scout.fail-on-error]
active = {str(fail_on_error).lower()}
legal_states = ["forbidden"]
"""
    )
    return config


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a scan directory with three jars."""
    lib = tmp_path / "lib"
    _make_jar(lib / "commons-io-2.11.0.jar", {"META-INF/LICENSE.txt": APACHE_LICENSE})
    _make_jar(lib / "gpl-lib-1.0.jar", {"COPYING": GPL_LICENSE})
    _make_jar(lib / "mystery-1.0.jar", {"README": b"no license here"})
    return tmp_path


@pytest.fixture
def config_dir(fixtures_dir: Path) -> Path:
    """Return the fixture configuration directory."""
    return fixtures_dir / "config"


def test_scan_passes(workspace: Path, config_dir: Path) -> None:
    """Test a scan without fail-on-error writing a report."""
    config = _write_config(workspace, config_dir)
    report = workspace / "licenses.md"

    result = runner.invoke(app, ["scan", "--config", str(config), "--output", str(report)])

    assert result.exit_code == 0, result.output
    assert "Legal status summary" in result.output
    assert "Generated markdown report" in result.output
    content = report.read_text()
    assert "| commons-io | 2.11.0 | [Apache-2.0]" in content
    assert "manually-overridden | approved |" in content
    assert "| gpl-lib | 1.0 | GPL-3.0-only | detected-by-pattern | forbidden |" in content
    assert "| mystery | 1.0 | - | not-detected | unknown |" in content


def test_scan_clean_output(workspace: Path, config_dir: Path) -> None:
    """Test that clean output drops unknown archives from the report."""
    config = _write_config(workspace, config_dir, clean_output=True)
    report = workspace / "licenses.md"

    result = runner.invoke(app, ["scan", "-c", str(config), "-o", str(report)])

    assert result.exit_code == 0, result.output
    content = report.read_text()
    assert "gpl-lib" in content
    assert "mystery" not in content


def test_scan_fail_on_error(workspace: Path, config_dir: Path) -> None:
    """Test that an error legal status fails the run after the full scan."""
    config = _write_config(workspace, config_dir, fail_on_error=True)
    skeleton = workspace / "skeleton.csv"

    result = runner.invoke(
        app, ["scan", "--config", str(config), "--skeleton", str(skeleton)]
    )

    assert result.exit_code == 1
    assert "Fail on error condition" in result.output
    assert "gpl-lib" in result.output
    with open(skeleton, newline="") as f:
        rows = list(csv.DictReader(f))
    assert [row["file_name"] for row in rows] == ["commons-io", "gpl-lib", "mystery"]


def test_scan_fail_on_error_flag_overrides_config(
    workspace: Path, config_dir: Path
) -> None:
    """Test that --no-fail-on-error disables the configured policy."""
    config = _write_config(workspace, config_dir, fail_on_error=True)
    result = runner.invoke(app, ["scan", "--config", str(config), "--no-fail-on-error"])
    assert result.exit_code == 0, result.output


def test_scan_npm(tmp_path: Path, config_dir: Path) -> None:
    """Test scanning node packages with declared licenses."""
    package = tmp_path / "modules" / "node_modules" / "left-pad"
    package.mkdir(parents=True)
    (package / "package.json").write_text(
        json.dumps({"name": "left-pad", "version": "1.3.0", "license": "MIT"})
    )
    config = _write_config(tmp_path, config_dir)
    report = tmp_path / "licenses.md"

    result = runner.invoke(
        app,
        [
            "scan",
            "--config",
            str(config),
            "--type",
            "npm",
            "--scan-dir",
            str(tmp_path / "modules"),
            "--output",
            str(report),
        ],
    )

    assert result.exit_code == 0, result.output
    # left-pad is a checked archive listing MIT and Apache-2.0
    assert "| left-pad | 1.3.0 |" in report.read_text()


def test_scan_missing_config(tmp_path: Path) -> None:
    """Test that a missing configuration file exits with 2."""
    result = runner.invoke(app, ["scan", "--config", str(tmp_path / "missing.toml")])
    assert result.exit_code == 2
    assert "Error:" in result.output


def test_scan_missing_scan_directory(tmp_path: Path, config_dir: Path) -> None:
    """Test that a missing scan directory exits with 2."""
    config = _write_config(tmp_path, config_dir)
    result = runner.invoke(app, ["scan", "--config", str(config)])
    assert result.exit_code == 2
    assert "Scan directory not found" in result.output


def test_scan_invalid_workers(workspace: Path, config_dir: Path) -> None:
    """Test that the worker count is validated."""
    config = _write_config(workspace, config_dir)
    result = runner.invoke(app, ["scan", "--config", str(config), "--workers", "0"])
    assert result.exit_code == 2


def test_check_config(config_dir: Path) -> None:
    """Test validating the fixture configuration."""
    result = runner.invoke(
        app, ["check-config", "--config", str(config_dir / "licensescout.toml")]
    )
    assert result.exit_code == 0, result.output
    assert "Configuration is valid" in result.output


def test_check_config_invalid(tmp_path: Path) -> None:
    """Test that configuration errors exit with 2."""
    config = tmp_path / "licensescout.toml"
    config.write_text('[license-scout]\n[license-scout.files]\nlicenses = "missing.toml"\n')
    result = runner.invoke(app, ["check-config", "--config", str(config)])
    assert result.exit_code == 2
    assert "not found" in result.output


def test_scan_output_gets_default_extension(workspace: Path, config_dir: Path) -> None:
    """Test that the report extension is added to a bare output path."""
    config = _write_config(workspace, config_dir)
    result = runner.invoke(
        app, ["scan", "--config", str(config), "--output", str(workspace / "licenses")]
    )
    assert result.exit_code == 0, result.output
    assert (workspace / "licenses.md").is_file()


def test_scan_malformed_config_section(tmp_path: Path) -> None:
    """Test that a malformed configuration section exits with 2."""
    config = tmp_path / "licensescout.toml"
    config.write_text('[license-scout]\n"clean-output" = true\n')
    result = runner.invoke(app, ["scan", "--config", str(config)])
    assert result.exit_code == 2
    assert "Error:" in result.output
