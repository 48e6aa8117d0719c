"""Legal status classification of archives."""

import logging
from collections.abc import Iterable
from typing import Optional

from license_scout.models import Archive, DetectionStatus, LegalStatus, License

logger = logging.getLogger(__name__)


def classify_legal_status(
    licenses: Iterable[License],
    detection_status: Optional[DetectionStatus],
    explicit_legal_status: Optional[str] = None,
) -> str:
    """Compute the legal status for a set of resulting licenses.

    Rules, in order:

    - A manual override with an explicit legal status wins.
    - No licenses: ``unknown``.
    - All licenses share one configured category: that category.
    - Otherwise: ``conflicting``.

    Args:
        licenses: Resulting licenses of an archive.
        detection_status: How the licenses were obtained.
        explicit_legal_status: Legal status given by an override.

    Returns:
        The legal status.
    """
    if (
        detection_status is DetectionStatus.MANUALLY_OVERRIDDEN
        and explicit_legal_status
    ):
        return LegalStatus.normalize(explicit_legal_status)

    categories = {
        LegalStatus.normalize(license.legal_status or LegalStatus.UNKNOWN)
        for license in licenses
    }
    if not categories:
        return LegalStatus.UNKNOWN
    if len(categories) == 1:
        return categories.pop()
    return LegalStatus.CONFLICTING


class LegalStatusClassifier:
    """Assigns the legal status of resolved archives."""

    def classify(self, archive: Archive) -> str:
        """Set and return the legal status of an archive.

        Safe to call repeatedly; the result only depends on the resulting
        licenses, the detection status and the explicit override status.
        """
        archive.legal_status = classify_legal_status(
            archive.resulting_licenses,
            archive.detection_status,
            archive.explicit_legal_status,
        )
        logger.debug("Classified %s as %s", archive.file_name, archive.legal_status)
        return archive.legal_status
