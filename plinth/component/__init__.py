"""
Plinth Components - declared units the platform discovers and manages.

This module handles:
- Descriptor model and document loading
- Origins (archives and directories) and discovery providers
- Listener resolution and lifecycle hook dispatch
- Resource release and settings merge
"""

from plinth.component.descriptor import (
    ComponentDescriptor,
    ComponentState,
    ListenerKind,
    ListenerRef,
)
from plinth.component.hooks import LifecycleEvent, fire_event
from plinth.component.listener import BeanRegistry, CapabilityResolver, ComponentListener
from plinth.component.origin import (
    DESCRIPTOR_NAME,
    DirectoryOriginProvider,
    Origin,
    OriginKind,
    OriginProvider,
    PathOriginProvider,
    SearchPathOriginProvider,
    SysPathOriginProvider,
)

__all__ = [
    "BeanRegistry",
    "CapabilityResolver",
    "ComponentDescriptor",
    "ComponentListener",
    "ComponentState",
    "DESCRIPTOR_NAME",
    "DirectoryOriginProvider",
    "LifecycleEvent",
    "ListenerKind",
    "ListenerRef",
    "Origin",
    "OriginKind",
    "OriginProvider",
    "PathOriginProvider",
    "SearchPathOriginProvider",
    "SysPathOriginProvider",
    "fire_event",
]
