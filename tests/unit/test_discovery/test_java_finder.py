"""Tests for the Java archive finder."""

import hashlib
import zipfile
from pathlib import Path

import pytest

from license_scout.catalog import ReferenceCatalog
from license_scout.discovery import JavaArchiveFinder, get_finder
from license_scout.discovery.base import is_license_file
from license_scout.discovery.java import parse_manifest, split_jar_name
from license_scout.exceptions import DiscoveryError
from license_scout.models import ArchiveType, DetectionStatus, LegalStatus
from license_scout.pipeline import Executor

MANIFEST = (
    "Manifest-Version: 1.0\r\n"
    "Bundle-Vendor: The Apache Software Foundation\r\n"
    "Bundle-License: https://www.apache.org/licenses/LICENSE-2.0.txt, \r\n"
    " MIT\r\n"
    "\r\n"
    "Name: org/example/\r\n"
    "Implementation-Vendor: ignored\r\n"
)


def _make_jar(path: Path, entries: dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        for name, content in entries.items():
            jar.writestr(name, content)
    return path


@pytest.mark.parametrize(
    "file_name,expected",
    [
        ("commons-io-2.11.0.jar", ("commons-io", "2.11.0")),
        ("guava-31.1-jre.jar", ("guava", "31.1-jre")),
        ("jakarta.inject-api-2.0.1.MR.jar", ("jakarta.inject-api", "2.0.1.MR")),
        ("tools.jar", ("tools", "")),
    ],
)
def test_split_jar_name(file_name: str, expected: tuple[str, str]) -> None:
    """Test splitting jar file names into name and version."""
    assert split_jar_name(file_name) == expected


def test_parse_manifest_main_section() -> None:
    """Test that continuation lines are joined and sections ignored."""
    headers = parse_manifest(MANIFEST)
    assert headers["Bundle-Vendor"] == "The Apache Software Foundation"
    assert headers["Bundle-License"] == (
        "https://www.apache.org/licenses/LICENSE-2.0.txt, MIT"
    )
    assert "Implementation-Vendor" not in headers


@pytest.mark.parametrize(
    "name,expected",
    [
        ("LICENSE", True),
        ("LICENSE.txt", True),
        ("licence-mit.md", True),
        ("COPYING.LESSER", True),
        ("UNLICENSE", True),
        ("MIT-LICENSE.txt", True),
        ("NOTICE", False),
        ("Licensing.java", False),
        ("README.md", False),
    ],
)
def test_is_license_file(name: str, expected: bool) -> None:
    """Test license file name recognition."""
    assert is_license_file(name) is expected


class TestJavaArchiveFinder:
    """Test suite for JavaArchiveFinder."""

    def test_get_finder(self, tmp_path: Path) -> None:
        """Test that the registry returns the Java finder."""
        finder = get_finder(ArchiveType.JAVA, tmp_path)
        assert isinstance(finder, JavaArchiveFinder)
        assert finder.archive_type is ArchiveType.JAVA

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Test that a missing scan directory is a discovery error."""
        with pytest.raises(DiscoveryError, match="Scan directory not found"):
            JavaArchiveFinder(tmp_path / "missing").find()

    def test_find(self, tmp_path: Path) -> None:
        """Test discovery of jars with manifest and license entries."""
        jar_path = _make_jar(
            tmp_path / "lib" / "commons-io-2.11.0.jar",
            {
                "META-INF/MANIFEST.MF": MANIFEST.encode(),
                "META-INF/LICENSE.txt": b"Apache License",
                "META-INF/NOTICE.txt": b"Notice",
                "org/apache/commons/io/IOUtils.class": b"\xca\xfe",
            },
        )
        _make_jar(tmp_path / "other" / "a-lib-1.0.jar", {"LICENSE": b"MIT"})

        archives = JavaArchiveFinder(tmp_path).find()

        assert [a.file_name for a in archives] == ["commons-io", "a-lib"]
        archive = archives[0]
        assert archive.archive_type is ArchiveType.JAVA
        assert archive.version == "2.11.0"
        assert archive.path == "lib/commons-io-2.11.0.jar"
        assert archive.message_digest == hashlib.sha256(jar_path.read_bytes()).digest()
        assert archive.vendor == "The Apache Software Foundation"

        paths = [c.path for c in archive.candidate_files]
        assert paths == ["META-INF/MANIFEST.MF", "META-INF/LICENSE.txt"]
        manifest = archive.candidate_files[0]
        assert manifest.declared == (
            "https://www.apache.org/licenses/LICENSE-2.0.txt",
            "MIT",
        )
        assert archive.candidate_files[1].read() == b"Apache License"

    def test_implementation_vendor_fallback(self, tmp_path: Path) -> None:
        """Test that Implementation-Vendor is used without Bundle-Vendor."""
        _make_jar(
            tmp_path / "lib-1.0.jar",
            {"META-INF/MANIFEST.MF": b"Implementation-Vendor: Acme\n"},
        )
        (archive,) = JavaArchiveFinder(tmp_path).find()
        assert archive.vendor == "Acme"
        assert archive.candidate_files == []

    def test_corrupt_jar_is_kept(self, tmp_path: Path, caplog) -> None:
        """Test that an unreadable jar is reported without candidates."""
        (tmp_path / "broken-1.0.jar").write_bytes(b"not a zip file")

        (archive,) = JavaArchiveFinder(tmp_path).find()

        assert archive.file_name == "broken"
        assert archive.candidate_files == []
        assert "Cannot open" in caplog.text


def _corrupt_entry(jar_path: Path, entry_name: str) -> None:
    """Overwrite the first byte of a deflated entry with an invalid block type."""
    with zipfile.ZipFile(jar_path) as jar:
        info = jar.getinfo(entry_name)
    data = bytearray(jar_path.read_bytes())
    name_length = int.from_bytes(data[info.header_offset + 26 : info.header_offset + 28], "little")
    extra_length = int.from_bytes(data[info.header_offset + 28 : info.header_offset + 30], "little")
    data[info.header_offset + 30 + name_length + extra_length] = 0xFF
    jar_path.write_bytes(bytes(data))


@pytest.mark.asyncio
async def test_damaged_entry_does_not_abort_scan(
    tmp_path: Path, catalog: ReferenceCatalog, texts: dict[str, bytes], caplog
) -> None:
    """Test that a jar entry failing to decompress is skipped."""
    damaged = tmp_path / "damaged-1.0.jar"
    with zipfile.ZipFile(damaged, "w", compression=zipfile.ZIP_DEFLATED) as jar:
        jar.writestr("META-INF/LICENSE", texts["MIT"])
    _corrupt_entry(damaged, "META-INF/LICENSE")
    _make_jar(tmp_path / "good-1.0.jar", {"LICENSE": texts["MIT"]})

    result = await Executor(catalog).execute(JavaArchiveFinder(tmp_path))

    by_name = {a.file_name: a for a in result.archives}
    assert by_name["damaged"].detection_status is DetectionStatus.NOT_DETECTED
    assert by_name["damaged"].legal_status == LegalStatus.UNKNOWN
    assert by_name["good"].legal_status == "approved"
    assert "Cannot read META-INF/LICENSE in damaged" in caplog.text
