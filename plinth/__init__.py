"""
Plinth - component lifecycle platform for host applications.

This is the main package that exports the public API: the Platform
orchestrator, the component model and the error taxonomy.
"""

from plinth.component import (
    BeanRegistry,
    ComponentDescriptor,
    ComponentListener,
    ComponentState,
    Origin,
)
from plinth.errors import (
    ConfigLoadError,
    DescriptorParseError,
    ListenerResolutionError,
    PathContainmentError,
    PlinthError,
    ResourceIOError,
    UnknownComponentError,
)
from plinth.platform import (
    VERSION as __version__,
    OperationResult,
    Platform,
    get_platform,
)

__all__ = [
    "__version__",
    "BeanRegistry",
    "ComponentDescriptor",
    "ComponentListener",
    "ComponentState",
    "ConfigLoadError",
    "DescriptorParseError",
    "ListenerResolutionError",
    "OperationResult",
    "Origin",
    "PathContainmentError",
    "Platform",
    "PlinthError",
    "ResourceIOError",
    "UnknownComponentError",
    "get_platform",
]
