class ExtractionError(Exception):
    """Fatal error for one parcel run"""

    def __init__(self, message, path=None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_payload(self):
        return {"type": "error", "message": self.message, "path": self.path}


class MappingError(ExtractionError):
    """A required normalized value has no mapping entry"""


class SchemaError(ExtractionError):
    """An output record does not validate against its schema"""


class InputError(ExtractionError):
    """A required input file is missing or unreadable"""


class ConfigError(ExtractionError):
    """A configuration value is not recognized"""
