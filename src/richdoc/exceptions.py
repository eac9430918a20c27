#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the richdoc library.

This module defines specialized exception classes for the error conditions
that can occur while building schemas, editing documents, converting to and
from markdown, and driving node views.

Exception Hierarchy
-------------------
- RichDocError (base exception)

  - ValidationError (parameter/option validation)

  - SchemaError (schema definition and schema violations)
    - DuplicateTypeError (type name registered twice)
    - UnknownTypeError (type name not in the schema)
    - AttributeValidationError (attribute rejected by its validator)
    - ContentMatchError (children violate a content expression)

  - TransformError (document editing failures)
    - PositionError (position outside the document)
    - TransactionRejectedError (transaction refused before commit)

  - ParsingError (markdown input could not be turned into a document)

  - RenderingError (markdown output generation failures)

  - NodeViewLifecycleError (foreign rendering no longer matches the bridge)

  - DependencyError (missing/incompatible packages)

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from richdoc.model.transaction import Rejected


class RichDocError(Exception):
    """Base exception class for all richdoc-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(RichDocError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class SchemaError(RichDocError):
    """Base exception for schema definition errors and schema violations.

    Raised when a type is misconfigured, when the registry is modified after
    it has been frozen, or when a node would break the rules of its type.

    Parameters
    ----------
    message : str
        Description of the schema problem
    type_name : str, optional
        Name of the node or mark type involved
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, type_name: str | None = None, original_error: Exception | None = None):
        """Initialize the schema error with the offending type name."""
        super().__init__(message, original_error=original_error)
        self.type_name = type_name


class DuplicateTypeError(SchemaError):
    """Exception raised when a type name is registered a second time."""

    def __init__(self, type_name: str, message: str | None = None):
        """Initialize the duplicate type error."""
        if message is None:
            message = f"Type '{type_name}' is already registered"
        super().__init__(message, type_name=type_name)


class UnknownTypeError(SchemaError):
    """Exception raised when a node or mark type is not part of the schema."""

    def __init__(self, type_name: str, message: str | None = None):
        """Initialize the unknown type error."""
        if message is None:
            message = f"Unknown type: '{type_name}'"
        super().__init__(message, type_name=type_name)


class AttributeValidationError(SchemaError):
    """Exception raised when attributes do not satisfy a type's attribute schema.

    Parameters
    ----------
    type_name : str
        Name of the type whose attributes were validated
    attribute : str
        Name of the failing attribute
    value : any
        The rejected value
    message : str, optional
        Custom error message. If not provided, a default is generated

    Attributes
    ----------
    attribute : str
        Name of the failing attribute
    value : any
        The rejected value

    """

    def __init__(self, type_name: str, attribute: str, value: Any = None, message: str | None = None):
        """Initialize the attribute validation error."""
        if message is None:
            message = f"Invalid value {value!r} for attribute '{attribute}' of '{type_name}'"
        super().__init__(message, type_name=type_name)
        self.attribute = attribute
        self.value = value


class ContentMatchError(SchemaError):
    """Exception raised when a node's children violate its content expression.

    Parameters
    ----------
    type_name : str
        Name of the parent type
    content : list of str
        Type names of the offending children, in order
    expression : str
        The content expression that rejected them

    """

    def __init__(self, type_name: str, content: list[str], expression: str, message: str | None = None):
        """Initialize the content match error."""
        if message is None:
            rendered = ", ".join(content) or "<empty>"
            message = f"Invalid content for '{type_name}' ({expression!r}): {rendered}"
        super().__init__(message, type_name=type_name)
        self.content = content
        self.expression = expression


class TransformError(RichDocError):
    """Base exception for errors raised while editing a document."""

    pass


class PositionError(TransformError):
    """Exception raised when a position does not resolve in a document.

    Parameters
    ----------
    pos : int
        The offending position
    size : int
        Content size of the document the position was resolved against

    """

    def __init__(self, pos: int, size: int, message: str | None = None):
        """Initialize the position error."""
        if message is None:
            message = f"Position {pos} out of range (document content size is {size})"
        super().__init__(message)
        self.pos = pos
        self.size = size


class TransactionRejectedError(TransformError):
    """Exception raised when a transaction is refused before any step is committed.

    Parameters
    ----------
    rejected : Rejected
        Structured description of the failing step

    Attributes
    ----------
    rejected : Rejected
        The rejection record (failing step index, step and reason)

    """

    def __init__(self, rejected: "Rejected"):
        """Initialize from a rejection record."""
        super().__init__(f"Transaction rejected at step {rejected.step_index}: {rejected.reason}")
        self.rejected = rejected


class ParsingError(RichDocError):
    """Exception raised when markdown input cannot be converted into a document.

    Parameters
    ----------
    message : str
        Description of the parsing failure
    warnings : list, optional
        Parse warnings collected before the failure

    """

    def __init__(self, message: str, warnings: list | None = None, original_error: Exception | None = None):
        """Initialize the parsing error."""
        super().__init__(message, original_error=original_error)
        self.warnings = warnings or []


class RenderingError(RichDocError):
    """Exception raised when a document cannot be serialized.

    Parameters
    ----------
    message : str
        Description of the rendering failure
    rendering_stage : str, optional
        Stage where rendering failed (e.g., "node", "mark")

    """

    def __init__(self, message: str, rendering_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the rendering error."""
        super().__init__(message, original_error=original_error)
        self.rendering_stage = rendering_stage


class NodeViewLifecycleError(RichDocError):
    """Exception raised when a node view's rendered output breaks its invariants.

    These are programming-contract failures: the foreign rendering layer no
    longer produces the structure the bridge relies on, or a destroyed
    binding was used again. They are never retried.

    """

    pass


class DependencyError(RichDocError):
    """Exception raised when required dependencies are not available.

    Parameters
    ----------
    feature_name : str
        Name of the feature requiring dependencies
    missing_packages : list[tuple[str, str]]
        List of (package_name, version_spec) tuples for missing packages
    version_mismatches : list[tuple[str, str, str]], optional
        List of (package_name, required_version, installed_version) tuples
    install_command : str, optional
        Suggested pip install command to resolve the issue

    """

    def __init__(
        self,
        feature_name: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        install_command: str = "",
        message: str | None = None,
        original_import_error: ImportError | None = None,
    ):
        """Initialize the dependency error with package details."""
        version_mismatches = version_mismatches or []
        self.original_import_error = original_import_error
        if message is None:
            message_parts = []

            if missing_packages:
                pkg_list = ", ".join(f"'{name}{spec}'" if spec else f"'{name}'" for name, spec in missing_packages)
                message_parts.append(f"{feature_name} requires the following packages: {pkg_list}")

            if version_mismatches:
                mismatch_str = ", ".join(
                    f"'{name}' (requires {required}, but {installed} is installed)"
                    for name, required, installed in version_mismatches
                )
                message_parts.append(f"{feature_name} has version mismatches: {mismatch_str}")

            message = "\n".join(message_parts)

            if install_command:
                message += f"\nInstall with: {install_command}"
            else:
                all_packages = missing_packages + [(name, req) for name, req, _ in version_mismatches]
                if all_packages:
                    packages_str = " ".join(f'"{name}{spec}"' if spec else name for name, spec in all_packages)
                    message += f"\nInstall with: pip install --upgrade {packages_str}"

        super().__init__(message)
        self.feature_name = feature_name
        self.missing_packages = missing_packages
        self.version_mismatches = version_mismatches
        self.install_command = install_command
