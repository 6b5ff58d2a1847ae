"""T212 CSV export importer: versioned schema validation, row decoding and multi-year aggregation."""

__version__ = "0.1.0"
