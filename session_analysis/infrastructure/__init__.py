# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Concrete implementations of the base interfaces.

- sources/: CSV row sources (polars)
- sinks/: JSON file and PostgreSQL result sinks
"""
