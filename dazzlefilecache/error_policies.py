"""
Error handling policies for DazzleFileCache.

This module provides a flexible error handling system through the Policy pattern,
allowing users to decide what happens when the cache detects that its directory
bookkeeping has drifted from the entries it holds.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for handling the internal
    anomalies the cache reports. Read failures never pass through a policy;
    they always propagate to the caller.
    """

    @abstractmethod
    def handle(self, error: Exception) -> None:
        """
        Handle an anomaly detected by the cache.

        Args:
            error: The exception describing the anomaly

        Returns:
            None to let the cache continue, or re-raises to stop the operation.
        """
        pass


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error.

    Useful in test suites where a bookkeeping inconsistency means a bug.
    """

    def handle(self, error: Exception) -> None:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that logs errors and continues.

    This is the default. Errors are collected for later inspection and the
    cache treats the offending operation as a no-op.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning when an error occurs
        """
        self.errors: List[Dict[str, Any]] = []
        self.verbose = verbose

    def handle(self, error: Exception) -> None:
        """Record the error and log it."""
        self.errors.append({
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'entry_id': getattr(error, 'entry_id', None),
            'directory': getattr(error, 'directory', None),
        })

        if self.verbose:
            logger.warning("%s: %s", type(error).__name__, error)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        by_type: Dict[str, int] = {}
        for record in self.errors:
            by_type[record['error_type']] = by_type.get(record['error_type'], 0) + 1
        return {
            'total_errors': len(self.errors),
            'by_type': by_type,
        }

    def clear(self) -> None:
        """Forget all recorded errors."""
        self.errors.clear()
