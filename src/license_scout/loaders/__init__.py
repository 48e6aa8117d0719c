"""Loaders for the configuration sources of a scan.

Each loader reads one file (license catalog, providers, notices, mapping
tables, filters, checked archives) and raises ConfigurationError if the
file is missing or malformed.
"""

from license_scout.loaders.base import BaseLoader, CsvLoader
from license_scout.loaders.checked_archives import CheckedArchivesLoader
from license_scout.loaders.filters import (
    GlobalFilter,
    GlobalFiltersLoader,
    VendorNamesLoader,
)
from license_scout.loaders.licenses import LicensesLoader
from license_scout.loaders.mappings import NameMappingsLoader, UrlMappingsLoader
from license_scout.loaders.providers import NoticesLoader, ProvidersLoader

__all__ = [
    "BaseLoader",
    "CheckedArchivesLoader",
    "CsvLoader",
    "GlobalFilter",
    "GlobalFiltersLoader",
    "LicensesLoader",
    "NameMappingsLoader",
    "NoticesLoader",
    "ProvidersLoader",
    "UrlMappingsLoader",
    "VendorNamesLoader",
]
