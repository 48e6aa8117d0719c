"""Scan pipeline: discovery, detection, resolution and classification.

The executor processes every archive on a bounded worker pool, sorts the
finished collection and only then evaluates the reporting policies. A
fail-on-error condition is returned as a :class:`PolicyViolation` value in
the :class:`ScanResult`; genuine errors are raised immediately.
"""

import asyncio
import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from license_scout.catalog import ReferenceCatalog
from license_scout.classifier import LegalStatusClassifier
from license_scout.config import DEFAULT_WORKERS, ExecutionParameters
from license_scout.detector import LicenseDetector
from license_scout.discovery.base import BaseFinder
from license_scout.models import Archive, LegalStatus, compare_archives
from license_scout.overrides import OverrideStore
from license_scout.resolution import ResolutionEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanOutputPolicy:
    """Reporting-time filter removing archives from the report.

    Attributes:
        active: Whether the policy applies.
        legal_states: Archives with one of these legal statuses are dropped.
        spdx_ids: Archives whose resulting licenses all have one of these
            SPDX identifiers are dropped.
        omit_vendor_filtered: Whether archives of filtered vendors are
            dropped. Applies even when the policy is inactive.
    """

    active: bool = False
    legal_states: frozenset[str] = frozenset()
    spdx_ids: frozenset[str] = frozenset()
    omit_vendor_filtered: bool = True

    def is_reportable(self, archive: Archive) -> bool:
        """Check if an archive belongs in the report."""
        if archive.vendor_filtered and self.omit_vendor_filtered:
            return False
        if not self.active:
            return True
        if archive.legal_status in self.legal_states:
            return False
        licenses = list(archive.resulting_licenses)
        if licenses and all(lic.spdx_id in self.spdx_ids for lic in licenses):
            return False
        return True


@dataclass(frozen=True)
class PolicyViolation:
    """Archives whose legal status is configured as an error.

    Attributes:
        archives: Offending archives, in report order.
        error_legal_states: Legal statuses configured as errors.
    """

    archives: tuple[Archive, ...]
    error_legal_states: frozenset[str]

    def __str__(self) -> str:
        details = ", ".join(
            f"{a.file_name} {a.version} ({a.legal_status})" for a in self.archives
        )
        return f"{len(self.archives)} archive(s) with error legal status: {details}"


@dataclass(frozen=True)
class FailOnErrorPolicy:
    """Fails the run when an archive has an error legal status.

    Attributes:
        active: Whether the policy applies.
        error_legal_states: Legal statuses that fail the run.
    """

    active: bool = False
    error_legal_states: frozenset[str] = frozenset()

    def evaluate(self, archives: Iterable[Archive]) -> Optional[PolicyViolation]:
        """Check finished archives against the error legal statuses.

        Returns:
            A PolicyViolation listing the offending archives, or None.
        """
        if not self.active:
            return None
        offending = tuple(a for a in archives if a.legal_status in self.error_legal_states)
        if not offending:
            return None
        return PolicyViolation(
            archives=offending, error_legal_states=self.error_legal_states
        )


@dataclass
class ScanResult:
    """Outcome of a scan.

    Attributes:
        archives: Every processed archive, sorted by file name.
        reportable: Archives to hand to reporters, in the same order.
        policy_violation: Fail-on-error condition, if triggered.
    """

    archives: list[Archive] = field(default_factory=list)
    reportable: list[Archive] = field(default_factory=list)
    policy_violation: Optional[PolicyViolation] = None

    @property
    def failed(self) -> bool:
        """Return True if the run is to be reported as failed."""
        return self.policy_violation is not None

    def count_by_legal_status(self) -> dict[str, int]:
        """Count archives per legal status."""
        counts: dict[str, int] = {}
        for archive in self.archives:
            status = archive.legal_status or LegalStatus.UNKNOWN
            counts[status] = counts.get(status, 0) + 1
        return dict(sorted(counts.items()))


class Executor:
    """Runs the detection, resolution and classification pipeline.

    The catalog and override store are shared read-only by all workers.

    Attributes:
        detector: License detector.
        resolution: Resolution engine.
        classifier: Legal status classifier.
        clean_output: Reporting-time filter.
        fail_on_error: Fail-on-error policy.
        workers: Maximum number of archives processed concurrently.
    """

    def __init__(
        self,
        catalog: ReferenceCatalog,
        overrides: Optional[OverrideStore] = None,
        clean_output: Optional[CleanOutputPolicy] = None,
        fail_on_error: Optional[FailOnErrorPolicy] = None,
        workers: int = DEFAULT_WORKERS,
    ) -> None:
        """Initialize the executor.

        Args:
            catalog: Reference catalog.
            overrides: Checked archives; empty if not given.
            clean_output: Reporting-time filter; inactive if not given.
            fail_on_error: Fail-on-error policy; inactive if not given.
            workers: Size of the worker pool.
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.detector = LicenseDetector(catalog)
        self.resolution = ResolutionEngine(catalog, overrides or OverrideStore())
        self.classifier = LegalStatusClassifier()
        self.clean_output = clean_output or CleanOutputPolicy()
        self.fail_on_error = fail_on_error or FailOnErrorPolicy()
        self.workers = workers

    @classmethod
    def from_parameters(
        cls,
        params: ExecutionParameters,
        catalog: ReferenceCatalog,
        overrides: OverrideStore,
    ) -> "Executor":
        """Create an executor configured from execution parameters."""
        return cls(
            catalog,
            overrides,
            clean_output=CleanOutputPolicy(
                active=params.clean_output_active,
                legal_states=params.clean_output_legal_states,
                spdx_ids=params.clean_output_spdx_ids,
                omit_vendor_filtered=params.omit_vendor_filtered,
            ),
            fail_on_error=FailOnErrorPolicy(
                active=params.fail_on_error,
                error_legal_states=params.error_legal_states,
            ),
            workers=params.workers,
        )

    def process_archive(self, archive: Archive) -> Archive:
        """Detect, resolve and classify a single archive."""
        self.detector.detect(archive)
        self.resolution.resolve(archive)
        self.classifier.classify(archive)
        return archive

    async def run(self, archives: Iterable[Archive]) -> ScanResult:
        """Process all archives and evaluate the reporting policies.

        Archives are processed concurrently; the policies are evaluated only
        after every archive has been classified, so a fail-on-error
        condition never cuts the scan short.

        Args:
            archives: Discovered archives.

        Returns:
            The sorted archives, the reportable subset and the fail-on-error
            outcome.

        Raises:
            Exception: Any error raised while processing an archive.
        """
        archives = list(archives)
        logger.info(
            "Processing %d archives with %d workers", len(archives), self.workers
        )
        semaphore = asyncio.Semaphore(self.workers)

        async def process(archive: Archive) -> Archive:
            async with semaphore:
                return await asyncio.to_thread(self.process_archive, archive)

        await asyncio.gather(*(process(archive) for archive in archives))

        ordered = sorted(archives, key=functools.cmp_to_key(compare_archives))
        reportable = [a for a in ordered if self.clean_output.is_reportable(a)]
        violation = self.fail_on_error.evaluate(ordered)

        logger.info(
            "Scan complete: %d archives, %d reportable", len(ordered), len(reportable)
        )
        if violation is not None:
            logger.warning("Fail on error condition: %s", violation)
        return ScanResult(
            archives=ordered, reportable=reportable, policy_violation=violation
        )

    async def execute(self, finder: BaseFinder) -> ScanResult:
        """Discover archives with ``finder`` and run the pipeline on them.

        Raises:
            DiscoveryError: If discovery fails; no archive is processed.
        """
        archives = finder.find()
        logger.info("Discovered %d archives with %s", len(archives), finder.source_name)
        return await self.run(archives)
