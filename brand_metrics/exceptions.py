"""
Custom exceptions for Brand Metrics.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the package. All exceptions inherit from the base
BrandMetricsError for consistent catching.

Exception Hierarchy:
    BrandMetricsError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    ├── ExtractionError
    │   └── RecordFormatError
    └── AggregationError
        ├── ScopeError
        └── DateRangeError

Malformed response text never raises: the extractor degrades to an empty
result instead. These exceptions cover programming and input errors that a
caller must fix (bad config, malformed scope, unreadable stored records).

Usage:
    from brand_metrics.exceptions import ScopeError

    try:
        scope = AggregationScope(scope="topic")
    except ScopeError as e:
        logger.error(f"Invalid scope: {e}")
"""


class BrandMetricsError(Exception):
    """
    Base exception for all Brand Metrics errors.

    Example:
        try:
            # package code
            pass
        except BrandMetricsError as e:
            logger.error(f"Metrics error: {e}")
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(BrandMetricsError):
    """
    Base class for configuration-related errors.

    Raised when configuration loading, parsing, or validation fails.
    The CLI maps it to exit code 1.
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/metrics.config.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Example:
        raise ConfigValidationError("detection.fuzzy_threshold must be in [0, 1]")
    """

    pass


# ============================================================================
# Extraction Errors
# ============================================================================


class ExtractionError(BrandMetricsError):
    """
    Base class for extraction pipeline errors.

    Never raised for bad response text; only for structurally invalid
    records handed to the pipeline.
    """

    pass


class RecordFormatError(ExtractionError):
    """
    A stored or input record cannot be decoded.

    Example:
        raise RecordFormatError("line 12: missing 'response' field")
    """

    pass


# ============================================================================
# Aggregation Errors
# ============================================================================


class AggregationError(BrandMetricsError):
    """
    Base class for aggregation errors.

    The CLI maps it to exit code 2.
    """

    pass


class ScopeError(AggregationError):
    """
    Scope descriptor is malformed.

    Example:
        raise ScopeError("scope 'platform' requires a scope_value")
    """

    pass


class DateRangeError(AggregationError):
    """
    Date window is malformed (naive datetimes or date_from >= date_to).

    Example:
        raise DateRangeError("date_from must be before date_to")
    """

    pass
