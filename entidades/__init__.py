"""
Partitioned scraper for the public directory of contracting entities.

This package splits the directory's listing pages across a fixed pool of
browser-backed workers, enriches every listed entity from its detail page,
and writes the merged records to a flat CSV table.
"""
