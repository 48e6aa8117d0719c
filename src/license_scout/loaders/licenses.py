"""Loader for the license catalog.

The catalog is a TOML file with one ``[[license]]`` table per known license::

    [[license]]
    id = "apache-2.0"
    spdx_id = "Apache-2.0"
    name = "Apache License 2.0"
    url = "https://www.apache.org/licenses/LICENSE-2.0"
    legal_status = "approved"
    checksums = ["sha256:cfc7749b96f63bd31c3c42b5c471bf756814053e847c10f3eb003417bc523d30"]
    patterns = [
        "apache license, version 2.0",
        ["licensed under the apache license", "version 2.0"],
    ]
    file_names = ["LICENSE-APACHE", "apache-2.0.txt"]

A pattern given as a string is a single-phrase signature; a list of strings
is a signature whose phrases must all be present.
"""

import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from license_scout.exceptions import ConfigurationError
from license_scout.loaders.base import BaseLoader
from license_scout.models import License, LegalStatus

logger = logging.getLogger(__name__)

SHA256_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def load_toml(path: Path, source_name: str) -> dict[str, Any]:
    """Read a TOML configuration file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}", source=path) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read {source_name} file {path}: {e}", source=path
        ) from e


def parse_checksum(value: str) -> str:
    """Normalize a checksum entry to bare lowercase SHA-256 hex.

    Args:
        value: Checksum such as "sha256:ABCD..." or "abcd...".

    Returns:
        The lowercase hex digest.

    Raises:
        ValueError: If the algorithm is not SHA-256 or the digest is malformed.
    """
    algorithm, sep, digest = value.strip().rpartition(":")
    if sep and algorithm.lower() != "sha256":
        raise ValueError(f"Unsupported checksum algorithm '{algorithm}'")
    digest = digest.lower()
    if not SHA256_PATTERN.match(digest):
        raise ValueError(f"Malformed SHA-256 checksum '{value}'")
    return digest


class LicensesLoader(BaseLoader):
    """Loader for the TOML license catalog."""

    TABLE = "license"

    @property
    def source_name(self) -> str:
        """Return "licenses"."""
        return "licenses"

    def load(self) -> list[License]:
        """Load all licenses from the catalog.

        Returns:
            Licenses in file order.

        Raises:
            ConfigurationError: If the file is missing or an entry is invalid.
        """
        source = self._require_source()
        data = load_toml(source, self.source_name)

        licenses: list[License] = []
        seen: set[str] = set()
        for index, entry in enumerate(data.get(self.TABLE, []), start=1):
            license = self._parse_entry(entry, index)
            if license.id in seen:
                raise ConfigurationError(
                    f"Duplicate license id '{license.id}' in {source}", source=source
                )
            seen.add(license.id)
            licenses.append(license)

        logger.debug("Loaded %d licenses from %s", len(licenses), source)
        return licenses

    def _parse_entry(self, entry: Any, index: int) -> License:
        """Convert one ``[[license]]`` table into a License."""
        source = self.source_path
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ConfigurationError(
                f"License entry #{index} in {source} has no 'id'", source=source
            )
        license_id = str(entry["id"]).strip()

        try:
            checksums = frozenset(
                parse_checksum(str(value)) for value in entry.get("checksums", [])
            )
        except ValueError as e:
            raise ConfigurationError(
                f"License '{license_id}' in {source}: {e}", source=source
            ) from e

        patterns = []
        for pattern in entry.get("patterns", []):
            phrases = (pattern,) if isinstance(pattern, str) else tuple(pattern)
            if not phrases or not all(
                isinstance(phrase, str) and phrase.strip() for phrase in phrases
            ):
                raise ConfigurationError(
                    f"License '{license_id}' in {source} has an empty pattern",
                    source=source,
                )
            patterns.append(phrases)

        return License(
            id=license_id,
            spdx_id=entry.get("spdx_id") or None,
            name=entry.get("name", license_id),
            url=entry.get("url") or None,
            legal_status=LegalStatus.normalize(
                entry.get("legal_status", LegalStatus.UNKNOWN)
            ),
            checksums=checksums,
            patterns=tuple(patterns),
            file_names=frozenset(
                name.strip().lower() for name in entry.get("file_names", [])
            ),
        )
