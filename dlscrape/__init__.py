"""
Driving-license record retrieval.

This package reads a personal license record from the licensing portal
using a headless browser, memoizes it in a local JSON cache, stores it in
a SQLite document table and serves it over a small REST API.
"""

__version__ = "0.1.0"
