#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/utils/decorators.py
"""Utility decorators for richdoc codecs and entry points.

This module provides the dependency guard used by the markdown parser and
the CLI's rich output, plus a debug timer for codec operations.

"""

from __future__ import annotations

import importlib
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, List, Tuple

from richdoc.exceptions import DependencyError
from richdoc.utils.packages import check_version_requirement


def requires_dependencies(feature_name: str, packages: List[Tuple[str, str, str]]) -> Callable:
    """Check required dependencies and versions before method execution.

    Parameters
    ----------
    feature_name : str
        Name of the feature (e.g., "markdown", "rich-output"). This appears
        in error messages to help users identify what needs installing.
    packages : list of tuple
        Required packages as (install_name, import_name, version_spec) tuples

    Returns
    -------
    Callable
        Decorated function that checks dependencies before execution

    Raises
    ------
    DependencyError
        If any required package is missing or has an incompatible version.

    Examples
    --------
        >>> @requires_dependencies("markdown", [("mistune", "mistune", ">=3.0.0")])
        ... def parse(self, text):
        ...     import mistune

    """

    def decorator(method: Callable) -> Callable:
        @wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing = []
            version_mismatches = []
            original_error = None

            for install_name, import_name, version_spec in packages:
                try:
                    importlib.import_module(import_name)

                    if version_spec:
                        meets_requirement, installed_version = check_version_requirement(install_name, version_spec)
                        if not meets_requirement:
                            version_mismatches.append((install_name, version_spec, installed_version or "unknown"))

                except ImportError as e:
                    missing.append((install_name, version_spec))
                    if original_error is None:
                        original_error = e

            if missing or version_mismatches:
                raise DependencyError(
                    feature_name=feature_name,
                    missing_packages=missing,
                    version_mismatches=version_mismatches,
                    original_import_error=original_error,
                ) from original_error

            return method(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Time a block and log the elapsed time at DEBUG level.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance to use for DEBUG messages
    operation : str
        Description of the operation being timed (e.g., "Markdown parse")

    Notes
    -----
    Zero overhead when DEBUG logging is disabled.

    """
    if logger.isEnabledFor(logging.DEBUG):
        start_time = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{operation} completed in {elapsed:.4f}s")
    else:
        yield
