class SnapshotEngineError(Exception):
    """Base class for failures surfaced by the snapshot engine."""


class ConfigurationError(SnapshotEngineError):
    """The engine cannot run with the supplied configuration (e.g. exchange rate)."""


class DataRetrievalError(SnapshotEngineError):
    """Accounts, investments or the ledger could not be loaded."""
