#!/usr/bin/env -S python3 -B -u
"""
Exceptions raised by the home network planner.

Every error carries a one-line message, an optional hint on how to fix
it and an exit code for the shell. Edits rejected by validation leave
the graph untouched; the shell reports them and returns the code.

Key Features:
- ValidationError family for rejected field edits
- Storage and configuration failures wrapping the underlying OSError/YAMLError
- Details and causes revealed step by step with -v, -vv, -vvv
"""

import sys
import traceback
from typing import Optional, Dict, Any, Iterable
from enum import IntEnum


class ErrorCode(IntEnum):
    """Shell exit codes."""
    SUCCESS = 0
    NOTHING_TO_DO = 1
    NOT_FOUND = 2
    INVALID_INPUT = 10
    CONFIGURATION_ERROR = 11
    STORAGE_ERROR = 12
    INTERNAL_ERROR = 15


class TopologyError(Exception):
    """Base class of all planner errors."""

    def __init__(self, message: str, suggestion: Optional[str] = None,
                 error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        """
        Args:
            message: What went wrong, in user terms
            suggestion: How to fix it
            error_code: Exit code reported by the shell
            details: Key/value context, printed from -v on
            cause: Underlying exception, printed from -vv on
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def format_error(self, verbose_level: int = 0) -> str:
        """Render the error for the terminal at the given verbosity (0-3)."""
        parts = [f"Error: {self.message}"]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")

        if verbose_level >= 1 and self.details:
            parts.append("\nDetails:")
            parts.extend(f"  {key}: {value}" for key, value in self.details.items())

        if verbose_level >= 2 and self.cause is not None:
            parts.append(f"\nCaused by: {type(self.cause).__name__}: {self.cause}")

        if verbose_level >= 3:
            tb = sys.exc_info()[2]
            parts.append("\nStack trace:")
            parts.append(''.join(traceback.format_tb(tb)) if tb else "(no active exception)")

        return "\n".join(parts)


class ConfigurationError(TopologyError):
    """Invalid or unreadable hnet.yaml."""

    def __init__(self, message: str, config_file: Optional[str] = None, **kwargs):
        hint = "Fix the value in hnet.yaml or remove it to use the default."
        if config_file:
            hint = f"Fix the value in {config_file} or remove it to use the default."
            kwargs.setdefault('details', {})['config_file'] = config_file
        super().__init__(message, hint, ErrorCode.CONFIGURATION_ERROR, **kwargs)


class StorageError(TopologyError):
    """Saving, loading or exporting a file failed."""

    def __init__(self, path: str, operation: str, **kwargs):
        kwargs.setdefault('details', {}).update({"path": path, "operation": operation})
        super().__init__(
            f"Failed to {operation} topology data at {path}",
            "Check that the storage directory exists and is writable. "
            "You can set a different location with: export HNET_DATA=/path/to/dir",
            ErrorCode.STORAGE_ERROR,
            **kwargs
        )


# Edit validation

class ValidationError(TopologyError):
    """A field edit or argument was rejected; nothing was changed."""

    def __init__(self, field: str, value: Any, requirement: str, **kwargs):
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {field}: {value}",
            f"The {field} must {requirement}",
            ErrorCode.INVALID_INPUT,
            details={"field": field, "value": value, "requirement": requirement},
            **kwargs
        )


class SubnetValidationError(ValidationError):
    """Raised when a subnet is not one of the selectable choices."""

    def __init__(self, subnet: str, choices: Iterable[str], **kwargs):
        super().__init__(
            field="subnet",
            value=subnet,
            requirement=f"be one of: {', '.join(choices)}",
            **kwargs
        )


class DuplicateSubnetError(ValidationError):
    """Raised when a dial-capable node would reuse its parent's subnet."""

    def __init__(self, subnet: str, node_id: str, parent_id: str, **kwargs):
        super().__init__(
            field="subnet",
            value=subnet,
            requirement="differ from the subnet of the upstream device",
            **kwargs
        )
        self.message = f"Subnet {subnet} is already used by upstream device '{parent_id}'"
        self.suggestion = (
            "A dialing device must open a new subnet. Pick a different subnet, "
            "or switch the router to inherit mode to bridge the upstream subnet."
        )
        self.details.update({"node": node_id, "parent": parent_id})


class IpSuffixValidationError(ValidationError):
    """Raised when an IP suffix is not a valid host number."""

    def __init__(self, suffix: str, **kwargs):
        super().__init__(
            field="ip_suffix",
            value=suffix,
            requirement="be empty or a number between 1 and 254",
            **kwargs
        )


class FieldNotApplicableError(ValidationError):
    """Raised when a field cannot be edited on a device."""

    def __init__(self, field: str, kind: str, reason: str = "", **kwargs):
        super().__init__(
            field=field,
            value=kind,
            requirement=reason or "be a field the device carries",
            **kwargs
        )
        self.message = f"Field '{field}' cannot be edited on {kind}"


class ViewModeError(TopologyError):
    """Raised when an operation is not available in the active view."""

    def __init__(self, operation: str, mode: str, **kwargs):
        super().__init__(
            message=f"'{operation}' is not available in {mode} view",
            suggestion="Switch to the topology view first: view mode topology",
            error_code=ErrorCode.INVALID_INPUT,
            details={"operation": operation, "view_mode": mode},
            **kwargs
        )


class LayoutError(ValidationError):
    """Raised when an unknown layout direction is requested."""

    def __init__(self, direction: str, **kwargs):
        super().__init__(
            field="direction",
            value=direction,
            requirement="be TB (top to bottom) or LR (left to right)",
            **kwargs
        )


class EmptyInventoryError(TopologyError):
    """Raised when there are no devices to export."""

    def __init__(self, **kwargs):
        super().__init__(
            message="No devices to export",
            suggestion="Add devices with: device add <kind>",
            error_code=ErrorCode.NOTHING_TO_DO,
            **kwargs
        )


class ErrorHandler:
    """Turns exceptions escaping the shell into stderr output and an exit code."""

    @staticmethod
    def handle_error(error: Exception, verbose_level: int = 0) -> int:
        if isinstance(error, TopologyError):
            sys.stderr.write(error.format_error(verbose_level) + "\n")
            return error.error_code

        lines = [
            "Error: An unexpected error occurred",
            "Suggestion: This might be a bug. Please report it with the full error output.",
        ]
        if verbose_level >= 1:
            lines.append(f"\nError type: {type(error).__name__}")
            lines.append(f"Error message: {error}")
        sys.stderr.write("\n".join(lines) + "\n")

        if verbose_level >= 3:
            sys.stderr.write("\nStack trace:\n")
            traceback.print_exc(file=sys.stderr)

        return ErrorCode.INTERNAL_ERROR
