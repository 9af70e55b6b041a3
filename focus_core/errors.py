class ConfigurationError(ValueError):
    """Raised when timer settings fail validation at the settings boundary."""
    pass


class PersistenceError(RuntimeError):
    """Raised when a durable write or read against the store fails."""
    pass
