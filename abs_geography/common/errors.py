"""Domain errors and failure typing."""


class GeographyError(Exception):
    """Base class for geography failures."""

    error_code = "GEOGRAPHY_ERROR"


class ConfigError(GeographyError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class SourceUnavailableError(GeographyError):
    """Raised when neither the disk cache nor the baseline copy of a dataset can be read."""

    error_code = "SOURCE_UNAVAILABLE"


class DatasetParseError(GeographyError):
    """Raised when a whole dataset is unparsable."""

    error_code = "DATASET_PARSE_ERROR"
