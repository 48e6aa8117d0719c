"""Reference catalog of licenses, mappings and filters.

The catalog is built once from the configuration sources before any archive
is processed and is only read afterwards, so it can be shared by all
workers of a scan.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Optional

from license_scout.config import ConfigFiles
from license_scout.exceptions import ConfigurationError
from license_scout.loaders import (
    CheckedArchivesLoader,
    GlobalFilter,
    GlobalFiltersLoader,
    LicensesLoader,
    NameMappingsLoader,
    NoticesLoader,
    ProvidersLoader,
    UrlMappingsLoader,
    VendorNamesLoader,
)
from license_scout.models import License, LicenseText, Notice, Provider
from license_scout.overrides import CheckedArchive, OverrideStore

logger = logging.getLogger(__name__)

_URL_PREFIX = re.compile(r"^(?:https?://)?(?:www\.)?", re.IGNORECASE)


def normalize_name(value: str) -> str:
    """Normalize a license name or vendor for lookups.

    Casefolds and collapses whitespace, so "The  MIT License" and
    "the mit license" compare equal.
    """
    return " ".join(value.split()).casefold()


def normalize_url(value: str) -> str:
    """Normalize a URL for lookups.

    Drops the scheme, a leading ``www.`` and trailing slashes, and casefolds
    the rest, so "https://www.apache.org/licenses/LICENSE-2.0/" and
    "http://apache.org/licenses/license-2.0" compare equal.
    """
    return _URL_PREFIX.sub("", value.strip()).rstrip("/").casefold()


def _looks_like_url(value: str) -> bool:
    return "://" in value or value.lower().startswith("www.")


@dataclass(frozen=True)
class ReferenceCatalog:
    """Immutable tables of reference data for a scan.

    Attributes:
        licenses: Known licenses keyed by catalog id.
        providers: Providers keyed by id.
        notices: Notices keyed by id.
        license_texts: License texts keyed by id.
        name_mappings: Normalized license name to license id.
        url_mappings: Normalized license URL to license id.
        global_filters: False-positive suppression rules.
        filtered_vendor_names: Normalized vendor names excluded from reports.
    """

    licenses: Mapping[str, License] = field(default_factory=dict)
    providers: Mapping[str, Provider] = field(default_factory=dict)
    notices: Mapping[str, Notice] = field(default_factory=dict)
    license_texts: Mapping[str, LicenseText] = field(default_factory=dict)
    name_mappings: Mapping[str, str] = field(default_factory=dict)
    url_mappings: Mapping[str, str] = field(default_factory=dict)
    global_filters: tuple[GlobalFilter, ...] = ()
    filtered_vendor_names: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        # Freeze the mappings and build the secondary indexes.
        for name in (
            "licenses",
            "providers",
            "notices",
            "license_texts",
            "name_mappings",
            "url_mappings",
        ):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(
            self,
            "filtered_vendor_names",
            frozenset(normalize_name(v) for v in self.filtered_vendor_names),
        )
        object.__setattr__(self, "global_filters", tuple(self.global_filters))

        by_spdx: dict[str, License] = {}
        by_name: dict[str, License] = {}
        by_checksum: dict[str, list[License]] = {}
        for license in self.licenses.values():
            if license.spdx_id:
                by_spdx.setdefault(license.spdx_id.casefold(), license)
            if license.name:
                by_name.setdefault(normalize_name(license.name), license)
            for checksum in license.checksums:
                by_checksum.setdefault(checksum, []).append(license)
        object.__setattr__(self, "_by_spdx", by_spdx)
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(
            self,
            "_by_checksum",
            {checksum: tuple(found) for checksum, found in by_checksum.items()},
        )

    def get_license(self, license_id: str) -> Optional[License]:
        """Return the license with the given catalog id."""
        return self.licenses.get(license_id)

    def licenses_for_checksum(self, checksum: str) -> tuple[License, ...]:
        """Return the licenses whose known checksums include ``checksum``."""
        return self._by_checksum.get(checksum.lower(), ())

    def resolve_license(self, identifier: str) -> Optional[License]:
        """Resolve a textual license identifier to a catalog license.

        Tries, in order: catalog id, SPDX id (ignoring case), the name
        mapping table, the URL mapping table, and the license names.

        Args:
            identifier: Catalog id, SPDX id, license name or license URL.

        Returns:
            The license, or None if the identifier is unknown.
        """
        identifier = identifier.strip()
        if not identifier:
            return None

        license = self.licenses.get(identifier) or self._by_spdx.get(identifier.casefold())
        if license is not None:
            return license

        mapped = self.name_mappings.get(normalize_name(identifier))
        if mapped is None and _looks_like_url(identifier):
            mapped = self.url_mappings.get(normalize_url(identifier))
        if mapped is not None:
            return self.licenses.get(mapped)

        return self._by_name.get(normalize_name(identifier))

    def matching_global_filter(
        self, license: License, file_path: str
    ) -> Optional[GlobalFilter]:
        """Return the first global filter suppressing a detection, if any."""
        return next(
            (rule for rule in self.global_filters if rule.matches(license, file_path)),
            None,
        )

    def is_vendor_filtered(self, vendor: Optional[str]) -> bool:
        """Check if archives of ``vendor`` are excluded from reports."""
        return bool(vendor) and normalize_name(vendor) in self.filtered_vendor_names


def _canonical_mappings(
    raw: Mapping[str, str],
    licenses: Mapping[str, License],
    normalize,
    source_name: str,
) -> dict[str, str]:
    """Normalize mapping keys and check that every target license exists."""
    mappings = {}
    for key, license_id in raw.items():
        if license_id not in licenses:
            raise ConfigurationError(
                f"{source_name} entry '{key}' refers to unknown license '{license_id}'"
            )
        mappings[normalize(key)] = license_id
    return mappings


def load_catalog(files: ConfigFiles) -> ReferenceCatalog:
    """Build the reference catalog from the configured sources.

    Args:
        files: Locations of the configuration sources. Only the license
            catalog is required.

    Returns:
        The immutable catalog.

    Raises:
        ConfigurationError: If a source is missing or malformed, or refers
            to a license that is not in the catalog.
    """
    licenses = {lic.id: lic for lic in LicensesLoader(files.licenses).load()}

    providers = ProvidersLoader(files.providers).load() if files.providers else {}
    notices, license_texts = (
        NoticesLoader(files.notices).load() if files.notices else ({}, {})
    )

    name_mappings = _canonical_mappings(
        NameMappingsLoader(files.name_mappings).load() if files.name_mappings else {},
        licenses,
        normalize_name,
        "Name mapping",
    )
    url_mappings = _canonical_mappings(
        UrlMappingsLoader(files.url_mappings).load() if files.url_mappings else {},
        licenses,
        normalize_url,
        "URL mapping",
    )

    partial = ReferenceCatalog(
        licenses=licenses, name_mappings=name_mappings, url_mappings=url_mappings
    )
    global_filters = []
    if files.global_filters:
        for rule in GlobalFiltersLoader(files.global_filters).load():
            if rule.license_id is not None:
                license = partial.resolve_license(rule.license_id)
                if license is None:
                    raise ConfigurationError(
                        f"Global filter refers to unknown license '{rule.license_id}'",
                        source=files.global_filters,
                    )
                rule = replace(rule, license_id=license.id)
            global_filters.append(rule)

    vendors = list(files.filtered_vendor_names_list)
    if files.filtered_vendor_names:
        vendors.extend(VendorNamesLoader(files.filtered_vendor_names).load())

    catalog = ReferenceCatalog(
        licenses=licenses,
        providers=providers,
        notices=notices,
        license_texts=license_texts,
        name_mappings=name_mappings,
        url_mappings=url_mappings,
        global_filters=tuple(global_filters),
        filtered_vendor_names=frozenset(vendors),
    )
    logger.info(
        "Catalog loaded: %d licenses, %d name mappings, %d URL mappings, "
        "%d global filters, %d filtered vendors",
        len(catalog.licenses),
        len(catalog.name_mappings),
        len(catalog.url_mappings),
        len(catalog.global_filters),
        len(catalog.filtered_vendor_names),
    )
    return catalog


def build_override_store(
    entries: Iterable[CheckedArchive], catalog: ReferenceCatalog
) -> OverrideStore:
    """Canonicalize checked archive entries against the catalog.

    License identifiers are resolved through the name and URL mappings;
    provider, notice and license text ids must exist in the catalog.

    Raises:
        ConfigurationError: If an entry refers to unknown reference data.
    """
    canonical = []
    for entry in entries:
        license_ids = []
        for identifier in entry.license_ids:
            license = catalog.resolve_license(identifier)
            if license is None:
                raise ConfigurationError(
                    f"Checked archive '{entry.file_name}' refers to unknown "
                    f"license '{identifier}'"
                )
            license_ids.append(license.id)

        for attr, table in (
            ("provider_id", catalog.providers),
            ("notice_id", catalog.notices),
            ("license_text_id", catalog.license_texts),
        ):
            ref = getattr(entry, attr)
            if ref is not None and ref not in table:
                raise ConfigurationError(
                    f"Checked archive '{entry.file_name}' refers to unknown "
                    f"{attr.removesuffix('_id').replace('_', ' ')} '{ref}'"
                )

        canonical.append(replace(entry, license_ids=tuple(dict.fromkeys(license_ids))))
    return OverrideStore(canonical)


def load_override_store(files: ConfigFiles, catalog: ReferenceCatalog) -> OverrideStore:
    """Load the checked archives file, if configured, into an override store."""
    if files.checked_archives is None:
        return OverrideStore()
    store = build_override_store(
        CheckedArchivesLoader(files.checked_archives).load(), catalog
    )
    logger.info("Override store loaded: %d checked archives", len(store))
    return store
