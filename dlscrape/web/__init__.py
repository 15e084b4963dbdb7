"""REST API for stored license records."""
