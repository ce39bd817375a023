"""Data access layer. Each module exposes async functions over one table."""
