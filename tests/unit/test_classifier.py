"""Unit tests for legal status classification."""

from license_scout.classifier import LegalStatusClassifier, classify_legal_status
from license_scout.models import DetectionStatus, LegalStatus, License


def test_no_licenses_is_unknown() -> None:
    """Test that an archive without licenses is unknown."""
    assert classify_legal_status([], DetectionStatus.NOT_DETECTED) == LegalStatus.UNKNOWN


def test_single_category(mit: License, bsd: License) -> None:
    """Test that licenses sharing a category yield that category."""
    assert classify_legal_status([mit], DetectionStatus.DETECTED_BY_PATTERN) == "approved"
    assert (
        classify_legal_status([mit, bsd], DetectionStatus.CONFLICTING_MATCHES)
        == "approved"
    )


def test_differing_categories_conflict(mit: License, gpl: License) -> None:
    """Test that differing categories are conflicting."""
    assert (
        classify_legal_status([mit, gpl], DetectionStatus.CONFLICTING_MATCHES)
        == LegalStatus.CONFLICTING
    )


def test_explicit_status_wins_for_overrides(mit: License, gpl: License) -> None:
    """Test that an override's explicit status is used as is."""
    assert (
        classify_legal_status(
            [mit, gpl], DetectionStatus.MANUALLY_OVERRIDDEN, "Needs_Review"
        )
        == "needs-review"
    )


def test_explicit_status_ignored_without_override(gpl: License) -> None:
    """Test that an explicit status only applies to overridden archives."""
    assert (
        classify_legal_status([gpl], DetectionStatus.DETECTED_BY_PATTERN, "approved")
        == "forbidden"
    )


def test_override_without_status_uses_licenses(bsd: License) -> None:
    """Test that an override without a status is classified from its licenses."""
    assert classify_legal_status([bsd], DetectionStatus.MANUALLY_OVERRIDDEN) == "approved"


def test_classifier_is_idempotent(make_archive, mit: License, gpl: License) -> None:
    """Test that classifying twice gives the same result."""
    archive = make_archive("mixed")
    archive.replace_resulting_licenses({mit: ["LICENSE"], gpl: ["COPYING"]})
    archive.detection_status = DetectionStatus.CONFLICTING_MATCHES

    classifier = LegalStatusClassifier()
    first = classifier.classify(archive)
    second = classifier.classify(archive)

    assert first == second == LegalStatus.CONFLICTING
    assert archive.legal_status == LegalStatus.CONFLICTING
