"""configconv exception hierarchy."""


class ConfigConvError(Exception):
    """Base exception for all configconv errors."""


class UsageError(ConfigConvError):
    """Bad user input: unknown format, from == to, malformed --since."""


class ScanError(ConfigConvError):
    """Unexpected I/O failure while reading a required location. Fatal for the scan."""

    def __init__(self, path, cause: Exception):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Cannot read {self.path}: {cause}")


class ConversionError(ConfigConvError):
    """One canonical item could not be translated. Recorded per item, never fatal."""


class BackupError(ConfigConvError):
    """No backups exist, or the requested backup id is unknown."""
