"""Exception types raised by the dictionary harvester."""


class DictionaryHarvestError(Exception):
    """Base class for harvester failures"""


class CacheCorruptionError(DictionaryHarvestError):
    """A stored record exists but cannot be read back"""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt dictionary record {path}: {reason}")


class ConfigurationError(DictionaryHarvestError):
    """Invalid harvester configuration"""
