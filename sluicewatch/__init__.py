"""Cache-first sync and filtered, paginated view of lock occurrences."""

__version__ = "0.1.0"
