"""Browser-driven extraction of license records.

The extractor owns the browser session for a single lookup and the JSON
cache that memoizes previous lookups.
"""

from dlscrape.driver.cache import RecordCache
from dlscrape.driver.extractor import LicenseExtractor

__all__ = ["LicenseExtractor", "RecordCache"]
