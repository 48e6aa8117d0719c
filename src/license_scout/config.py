"""Run configuration for license_scout.

A scan is configured with a TOML file, ``licensescout.toml`` by default::

    [license-scout]
    archive_type = "java"
    scan_directory = "target/lib"
    workers = 4
    filtered_vendor_names = ["Example Corp"]
    omit_vendor_filtered = true

    [license-scout.files]
    licenses = "config/licenses.toml"
    providers = "config/providers.toml"
    notices = "config/notices.toml"
    checked_archives = "config/checkedarchives.csv"
    name_mappings = "config/namemappings.csv"
    url_mappings = "config/urlmappings.csv"
    global_filters = "config/globalFilters.csv"
    filtered_vendor_names = "config/vendors.txt"

    [license-scout.clean-output]
    active = true
    legal_states = ["unknown"]
    spdx_ids = ["Apache-2.0"]

    [license-scout.fail-on-error]
    active = true
    legal_states = ["forbidden", "conflicting"]

Relative paths are resolved against the directory of the configuration file.
Only the license catalog is required.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.licenses import load_toml
from license_scout.models import ArchiveType, LegalStatus

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "licensescout.toml"
ROOT_TABLE = "license-scout"
DEFAULT_WORKERS = 4


@dataclass
class ConfigFiles:
    """Locations of the configuration sources.

    Attributes:
        licenses: License catalog (required).
        providers: Provider list.
        notices: Notices and license texts.
        checked_archives: Checked archives table.
        name_mappings: License name mapping table.
        url_mappings: License URL mapping table.
        global_filters: Global filter table.
        filtered_vendor_names: File listing vendors to filter out.
        filtered_vendor_names_list: Vendors to filter out, merged with the
            file's entries.
    """

    licenses: Optional[Path] = None
    providers: Optional[Path] = None
    notices: Optional[Path] = None
    checked_archives: Optional[Path] = None
    name_mappings: Optional[Path] = None
    url_mappings: Optional[Path] = None
    global_filters: Optional[Path] = None
    filtered_vendor_names: Optional[Path] = None
    filtered_vendor_names_list: list[str] = field(default_factory=list)


@dataclass
class ExecutionParameters:
    """Everything a scan needs besides the catalogs themselves.

    Attributes:
        archive_type: Kind of artifacts to scan.
        scan_directory: Directory to discover archives in.
        config_files: Locations of the configuration sources.
        workers: Size of the per-archive worker pool.
        clean_output_active: Whether to drop archives from the report.
        clean_output_legal_states: Legal statuses dropped from the report.
        clean_output_spdx_ids: SPDX identifiers dropped from the report.
        omit_vendor_filtered: Whether archives of filtered vendors are left
            out of the report.
        fail_on_error: Whether error legal statuses fail the run.
        error_legal_states: Legal statuses that fail the run.
    """

    archive_type: ArchiveType = ArchiveType.JAVA
    scan_directory: Optional[Path] = None
    config_files: ConfigFiles = field(default_factory=ConfigFiles)
    workers: int = DEFAULT_WORKERS
    clean_output_active: bool = False
    clean_output_legal_states: frozenset[str] = frozenset()
    clean_output_spdx_ids: frozenset[str] = frozenset()
    omit_vendor_filtered: bool = True
    fail_on_error: bool = False
    error_legal_states: frozenset[str] = frozenset()


def _table(root: dict[str, Any], key: str, source: Path) -> dict[str, Any]:
    """Return an optional sub-table of the root table."""
    value = root.get(key, {})
    if not isinstance(value, dict):
        raise ConfigurationError(
            f"'{key}' in {source} must be a [{ROOT_TABLE}.{key}] table", source=source
        )
    return value


def _boolean(value: Any, key: str, source: Path) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{key}' in {source} must be true or false", source=source)
    return value


def _string_list(value: Any, key: str, source: Path) -> list[str]:
    """Validate that a configuration value is a list of strings."""
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' in {source} must be a list of strings", source=source)
    return value


def _legal_states(value: Any, key: str, source: Path) -> frozenset[str]:
    return frozenset(LegalStatus.normalize(v) for v in _string_list(value, key, source))


def load_parameters(config_path: Path) -> ExecutionParameters:
    """Read execution parameters from a TOML configuration file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Parsed parameters with all paths resolved.

    Raises:
        ConfigurationError: If the file is missing or a value is invalid.
    """
    if not config_path.is_file():
        raise ConfigurationError(f"Configuration file not found: {config_path}", source=config_path)

    data = load_toml(config_path, "configuration")
    root = data.get(ROOT_TABLE)
    if not isinstance(root, dict):
        raise ConfigurationError(
            f"Missing [{ROOT_TABLE}] table in {config_path}", source=config_path
        )
    base_dir = config_path.parent
    params = ExecutionParameters()

    if "archive_type" in root:
        try:
            params.archive_type = ArchiveType(str(root["archive_type"]).lower())
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown archive_type '{root['archive_type']}' in {config_path}",
                source=config_path,
            ) from e

    if "scan_directory" in root:
        if not isinstance(root["scan_directory"], str):
            raise ConfigurationError(
                f"'scan_directory' in {config_path} must be a path string",
                source=config_path,
            )
        params.scan_directory = base_dir / root["scan_directory"]

    workers = root.get("workers", DEFAULT_WORKERS)
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        raise ConfigurationError(
            f"'workers' in {config_path} must be a positive integer", source=config_path
        )
    params.workers = workers

    files = _table(root, "files", config_path)
    path_fields = [f.name for f in fields(ConfigFiles) if f.name != "filtered_vendor_names_list"]
    for key, value in files.items():
        if key not in path_fields:
            raise ConfigurationError(
                f"Unknown entry '{key}' in [{ROOT_TABLE}.files] of {config_path}",
                source=config_path,
            )
        if not isinstance(value, str):
            raise ConfigurationError(
                f"'files.{key}' in {config_path} must be a path string", source=config_path
            )
        setattr(params.config_files, key, base_dir / value)
    params.config_files.filtered_vendor_names_list = _string_list(
        root.get("filtered_vendor_names", []), "filtered_vendor_names", config_path
    )
    params.omit_vendor_filtered = _boolean(
        root.get("omit_vendor_filtered", True), "omit_vendor_filtered", config_path
    )

    clean_output = _table(root, "clean-output", config_path)
    params.clean_output_active = _boolean(
        clean_output.get("active", False), "clean-output.active", config_path
    )
    params.clean_output_legal_states = _legal_states(
        clean_output.get("legal_states", []), "clean-output.legal_states", config_path
    )
    params.clean_output_spdx_ids = frozenset(
        _string_list(clean_output.get("spdx_ids", []), "clean-output.spdx_ids", config_path)
    )

    fail_on_error = _table(root, "fail-on-error", config_path)
    params.fail_on_error = _boolean(
        fail_on_error.get("active", False), "fail-on-error.active", config_path
    )
    params.error_legal_states = _legal_states(
        fail_on_error.get("legal_states", []), "fail-on-error.legal_states", config_path
    )

    logger.debug("Loaded execution parameters from %s", config_path)
    return params
