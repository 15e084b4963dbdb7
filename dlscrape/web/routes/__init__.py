"""Route modules for the license API.

- licenses: scrape-and-store, listing, lookup and deletion
- health: database connectivity check
"""

from dlscrape.web.routes.health import (
    router as health_router,
)
from dlscrape.web.routes.licenses import (
    router as licenses_router,
)
from dlscrape.web.routes.licenses import (
    scrape_router,
)

__all__ = [
    "health_router",
    "licenses_router",
    "scrape_router",
]
