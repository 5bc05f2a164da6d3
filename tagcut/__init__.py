"""tagcut: semantic-version release cuts with compensating rollback."""

__version__ = "0.3.0"
