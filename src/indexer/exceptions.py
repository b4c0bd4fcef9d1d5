class IndexerError(Exception):
    pass


class TickOutOfRangeError(IndexerError, ValueError):
    """Tick outside [MIN_TICK, MAX_TICK]; fatal for the event being applied."""


class UnknownEventError(IndexerError):
    pass


class ConfigurationError(IndexerError):
    pass
