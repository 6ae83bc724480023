"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for update failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class NotFoundError(PipelineError):
    """Raised when a postal code, station or data column cannot be located."""

    error_code = "NOT_FOUND"


class UpstreamError(PipelineError):
    """Raised for transport or payload-shape failures from external services."""

    error_code = "UPSTREAM_ERROR"
