"""Unit tests for checked archive lookup and the skeleton writer."""

import csv
from pathlib import Path

from license_scout.models import ArchiveType, License
from license_scout.overrides import (
    COLUMNS,
    WILDCARD,
    CheckedArchive,
    OverrideStore,
    write_skeleton,
)


class TestOverrideStore:
    """Test suite for OverrideStore.lookup."""

    def test_empty_store(self, make_archive) -> None:
        """Test that an empty store finds nothing."""
        assert OverrideStore().lookup(make_archive("lib")) is None

    def test_digest_match_ignores_name(self, make_archive) -> None:
        """Test that the digest identifies the archive regardless of name."""
        archive = make_archive("renamed-lib")
        entry = CheckedArchive(
            file_name="lib", message_digest=archive.message_digest_string.upper()
        )
        assert OverrideStore([entry]).lookup(archive) is entry

    def test_digest_entry_never_matches_by_name(self, make_archive) -> None:
        """Test that an entry with another digest is not used for the name."""
        entry = CheckedArchive(file_name="lib", version="1.0.0", message_digest="ab" * 32)
        assert OverrideStore([entry]).lookup(make_archive("lib")) is None

    def test_digest_before_name(self, make_archive) -> None:
        """Test that a digest entry wins over a name entry."""
        archive = make_archive("lib")
        by_name = CheckedArchive(file_name="lib", version="1.0.0")
        by_digest = CheckedArchive(
            file_name="lib", message_digest=archive.message_digest_string
        )
        assert OverrideStore([by_name, by_digest]).lookup(archive) is by_digest

    def test_name_ignores_case(self, make_archive) -> None:
        """Test that names are compared ignoring case."""
        entry = CheckedArchive(file_name="Commons-IO")
        assert OverrideStore([entry]).lookup(make_archive("commons-io")) is entry

    def test_exact_version_before_wildcard(self, make_archive) -> None:
        """Test that an exact version entry beats a wildcard one."""
        wildcard = CheckedArchive(file_name="lib", version=WILDCARD)
        exact = CheckedArchive(file_name="lib", version="2.0")
        store = OverrideStore([wildcard, exact])

        assert store.lookup(make_archive("lib", version="2.0")) is exact
        assert store.lookup(make_archive("lib", version="3.0")) is wildcard

    def test_version_mismatch(self, make_archive) -> None:
        """Test that a different version does not match."""
        entry = CheckedArchive(file_name="lib", version="2.0")
        assert OverrideStore([entry]).lookup(make_archive("lib", version="1.0")) is None

    def test_archive_type_restriction(self, make_archive) -> None:
        """Test that typed entries only apply to their archive type."""
        entry = CheckedArchive(file_name="lib", archive_type=ArchiveType.NPM)
        store = OverrideStore([entry])

        assert store.lookup(make_archive("lib")) is None
        assert store.lookup(make_archive("lib", archive_type=ArchiveType.NPM)) is entry

    def test_len_and_iter(self) -> None:
        """Test the container protocol."""
        entries = [CheckedArchive(file_name="a"), CheckedArchive(file_name="b")]
        store = OverrideStore(entries)
        assert len(store) == 2
        assert list(store) == entries


def test_write_skeleton(tmp_path: Path, make_archive, mit: License) -> None:
    """Test that the skeleton lists every archive with its result."""
    first = make_archive("lib")
    first.replace_resulting_licenses({mit: ["LICENSE"]})
    first.legal_status = "approved"
    second = make_archive("tool", vendor="Acme")
    output = tmp_path / "checkedarchives.csv"

    assert write_skeleton([first, second], output) == 2

    with open(output, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert list(rows[0]) == COLUMNS
    assert rows[0]["type"] == "java"
    assert rows[0]["digest"] == first.message_digest_string
    assert rows[0]["licenses"] == "mit"
    assert rows[0]["legal_status"] == "approved"
    assert rows[1]["licenses"] == ""
    assert rows[1]["vendor"] == "Acme"
