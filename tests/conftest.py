"""Pytest configuration and fixtures."""

import hashlib
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import pytest

from license_scout.catalog import ReferenceCatalog
from license_scout.models import Archive, ArchiveType, CandidateFile, License

FIXTURES_DIR = Path(__file__).parent / "fixtures"

APACHE_TEXT = b"""
                                 Apache License
                           Version 2.0, January 2004
                        http://www.apache.org/licenses/
"""

MIT_TEXT = b"""MIT License

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction.
"""

GPL_TEXT = b"""GNU GENERAL PUBLIC LICENSE
Version 3, 29 June 2007
"""

BSD_TEXT = b"""Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met.
Neither the name of the copyright holder nor the names of its contributors
may be used to endorse or promote products derived from this software.
"""


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path of the test data directory."""
    return FIXTURES_DIR


@pytest.fixture
def texts() -> dict[str, bytes]:
    """Return sample license file contents keyed by SPDX id."""
    return {
        "Apache-2.0": APACHE_TEXT,
        "MIT": MIT_TEXT,
        "GPL-3.0-only": GPL_TEXT,
        "BSD-3-Clause": BSD_TEXT,
    }


@pytest.fixture
def mit() -> License:
    """Return the MIT license (approved)."""
    return License(
        id="mit",
        spdx_id="MIT",
        name="MIT License",
        url="https://opensource.org/licenses/MIT",
        legal_status="approved",
        patterns=(("permission is hereby granted, free of charge",),),
        file_names=frozenset({"mit-license.txt"}),
    )


@pytest.fixture
def apache() -> License:
    """Return the Apache 2.0 license (approved), matched by checksum."""
    return License(
        id="apache-2.0",
        spdx_id="Apache-2.0",
        name="Apache License 2.0",
        url="https://www.apache.org/licenses/LICENSE-2.0",
        legal_status="approved",
        checksums=frozenset({hashlib.sha256(APACHE_TEXT).hexdigest()}),
        file_names=frozenset({"license-apache"}),
    )


@pytest.fixture
def gpl() -> License:
    """Return the GPL 3.0 license (forbidden)."""
    return License(
        id="gpl-3.0",
        spdx_id="GPL-3.0-only",
        name="GNU General Public License v3.0",
        legal_status="forbidden",
        patterns=(("gnu general public license", "version 3"),),
    )


@pytest.fixture
def bsd() -> License:
    """Return the BSD 3-Clause license (approved)."""
    return License(
        id="bsd-3-clause",
        spdx_id="BSD-3-Clause",
        name="BSD 3-Clause License",
        legal_status="approved",
        patterns=(
            (
                "redistribution and use in source and binary forms",
                "neither the name of the copyright holder",
            ),
        ),
    )


@pytest.fixture
def catalog(
    mit: License, apache: License, gpl: License, bsd: License
) -> ReferenceCatalog:
    """Return a catalog with MIT, Apache-2.0, GPL-3.0 and BSD-3-Clause."""
    return ReferenceCatalog(
        licenses={lic.id: lic for lic in (mit, apache, gpl, bsd)},
        name_mappings={"the mit license": "mit"},
        url_mappings={"apache.org/licenses/license-2.0": "apache-2.0"},
    )


@pytest.fixture
def make_archive() -> Callable[..., Archive]:
    """Return a factory for Java archives with in-memory candidate files."""

    def factory(
        file_name: str,
        files: Optional[dict[str, bytes]] = None,
        version: str = "1.0.0",
        digest: Optional[bytes] = None,
        vendor: Optional[str] = None,
        archive_type: ArchiveType = ArchiveType.JAVA,
    ) -> Archive:
        return Archive(
            archive_type=archive_type,
            file_name=file_name,
            version=version,
            path=f"lib/{file_name}-{version}.jar",
            message_digest=digest
            if digest is not None
            else hashlib.sha256(file_name.encode()).digest(),
            candidate_files=[
                CandidateFile.from_bytes(path, content)
                for path, content in (files or {}).items()
            ],
            vendor=vendor,
        )

    return factory
