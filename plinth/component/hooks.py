"""
Component Lifecycle Hooks.

This module provides lifecycle hook dispatch for component listeners.

Key features:
- The seven lifecycle events a listener can handle
- Synchronous, in-order dispatch on the caller's thread
- Missing hooks are skipped; hook exceptions propagate
"""

import logging
from enum import Enum
from typing import Any

from plinth.component.descriptor import ComponentDescriptor

logger = logging.getLogger(__name__)


class LifecycleEvent(Enum):
    """Lifecycle event enumeration; values are listener method names."""

    ON_STARTUP = "on_startup"
    BEFORE_ACTIVE = "before_active"
    AFTER_ACTIVE = "after_active"
    BEFORE_DEPLOY = "before_deploy"
    AFTER_DEPLOY = "after_deploy"
    BEFORE_REMOVE = "before_remove"
    AFTER_REMOVE = "after_remove"


def _find_hook(listener: Any, event: LifecycleEvent):
    if listener is None:
        return None
    hook = getattr(listener, event.value, None)
    return hook if callable(hook) else None


def has_hook(listener: Any, event: LifecycleEvent) -> bool:
    """
    Check if a listener handles a lifecycle event.

    Args:
        listener: Listener object (may be None)
        event: Lifecycle event

    Returns:
        True if the listener has a callable hook for the event
    """
    return _find_hook(listener, event) is not None


def fire_event(descriptor: ComponentDescriptor | None, event: LifecycleEvent) -> bool:
    """
    Invoke a component's listener hook for an event.

    Args:
        descriptor: Component whose listener is notified (may be None)
        event: Lifecycle event

    Returns:
        True if a hook ran
    """
    if descriptor is None:
        return False

    hook = _find_hook(descriptor.listener, event)
    if hook is None:
        return False

    logger.debug("Firing %s for component %s", event.value, descriptor.code)
    hook()
    return True
