"""SQLite document store for license records."""

from dlscrape.store.models import LicenseDocument
from dlscrape.store.repository import LicenseStore

__all__ = ["LicenseDocument", "LicenseStore"]
