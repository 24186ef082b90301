"""
Cache Infrastructure Exceptions

Error taxonomy for the cache layer. CacheStore converts every one of these
into a logged, metered miss or no-op; they are never raised to callers of
the cache facade.
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Base exception for cache-related errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class CacheStoreUnavailableException(CacheException):
    """Raised when the remote store is not ready or a command fails to reach it."""

    def __init__(
        self,
        operation: str,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Cache store unavailable during '{operation}'",
            error_code="CACHE_STORE_UNAVAILABLE",
            details=details,
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class CacheSerializationException(CacheException):
    """Raised when a value cannot be encoded, or a stored payload decoded."""

    def __init__(
        self,
        key: str,
        direction: str,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"key": key, "direction": direction}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Failed to {direction} cache payload for key: {key}",
            error_code="CACHE_SERIALIZATION_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class CacheScanException(CacheException):
    """Raised when a pattern delete fails part-way through the keyspace scan."""

    def __init__(
        self,
        pattern: str,
        deleted_so_far: int,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {
            "pattern": pattern,
            "deleted_so_far": deleted_so_far,
        }
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Pattern delete interrupted for '{pattern}' after {deleted_so_far} keys",
            error_code="CACHE_SCAN_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class CacheConfigurationException(CacheException):
    """Raised when Redis configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = str(config_value)
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_CONFIGURATION_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error
