"""
cashbook_kernel -- records, storage and infrastructure for the cashbook.

Subpackages:
    domain     -- pure value helpers, currency registry, records, clock
    db         -- SQLAlchemy engine, declarative base, column types
    models     -- ORM tables (one row per stored record)
    selectors  -- read-only queries returning domain records
"""

__version__ = "0.1.0"
