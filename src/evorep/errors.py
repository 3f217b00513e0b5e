"""
Error Types Module

Defines the exception raised when persisted or in-memory representation data
is found to be corrupt. Precondition violations by the caller (removing the
sole layer of a network, reading an output index that does not exist, etc.)
are reported with the builtin ValueError / IndexError instead.

Classes:
    EvorepError:      Base class for all errors raised by this package
    CorruptDataError: Unknown operator/variant code, truncated file, or invalid stored length
"""

class EvorepError(Exception):
    """Base class for errors raised by this package."""

class CorruptDataError(EvorepError, ValueError):
    """
    Raised when a representation cannot be trusted: an unrecognized GP operator
    code, an unknown layer variant tag, a truncated binary record, or a stored
    tree length below 1. Loading never yields a half-initialized object.
    """
