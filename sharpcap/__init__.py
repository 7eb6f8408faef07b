"""Sharp capper factor aggregation and decision engine."""

__all__ = [
    "batch",
    "cli",
    "config",
    "constants",
    "engine",
    "exceptions",
    "factors",
    "ingestion",
    "market",
    "ops",
    "policy",
    "reporting",
    "runtime",
    "schema",
    "storage",
    "utils",
]

__version__ = "0.1.0"
