"""Order saga data records and a client that runs scenarios against a saga orchestrator."""

__version__ = "0.1.0"
__all__ = ["models", "scenarios"]