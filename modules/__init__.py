"""Helper modules for the Print4me server."""

__all__ = [
    "mailer",
    "page_counter",
    "pricing",
    "range_resolver",
    "validator",
]
