"""
Plinth Error Taxonomy.

This module defines the exceptions raised across the platform.

Key features:
- Single PlinthError base for callers that want to catch everything
- One exception per failure concern (config, descriptor, listener, resources)
- UnknownComponentError for operations on unregistered codes
"""


class PlinthError(Exception):
    """Base exception for all platform errors."""

    pass


class ConfigLoadError(PlinthError):
    """Raised when a settings store or config file is unreadable or corrupt."""

    pass


class DescriptorParseError(PlinthError):
    """Raised when a component descriptor document or entry is malformed."""

    pass


class ListenerResolutionError(PlinthError):
    """Raised when a component listener cannot be looked up or created."""

    pass


class ResourceIOError(PlinthError):
    """Raised when releasing or retracting component resources fails."""

    pass


class PathContainmentError(ResourceIOError):
    """Raised when a resource path would escape its root directory."""

    pass


class UnknownComponentError(PlinthError):
    """Raised when an operation references an unregistered component code."""

    pass
