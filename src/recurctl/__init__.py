"""recurctl: recurring task lifecycle engine for markdown vaults."""

__version__ = "0.1.0"
