"""
Component Listener Resolution.

This module turns listener references into listener objects.

Key features:
- ComponentListener base class with no-op lifecycle hooks
- CapabilityResolver interface (lookup by name, autowired instantiation)
- BeanRegistry: default resolver backed by named objects
- importlib-based class loading for native class references
"""

import importlib
import inspect
import logging
from typing import Any, Protocol

from plinth.component.descriptor import ListenerKind, ListenerRef
from plinth.errors import ListenerResolutionError

logger = logging.getLogger(__name__)


class ComponentListener:
    """
    Base class for component listeners.

    Override the hooks you need; the rest do nothing. Hooks run
    synchronously on the platform's thread and exceptions are not caught.
    """

    def before_active(self) -> None:
        pass

    def after_active(self) -> None:
        pass

    def before_deploy(self) -> None:
        pass

    def after_deploy(self) -> None:
        pass

    def before_remove(self) -> None:
        pass

    def after_remove(self) -> None:
        pass

    def on_startup(self) -> None:
        pass


class CapabilityResolver(Protocol):
    """Lookup interface the platform uses to obtain listener objects."""

    def resolve_by_name(self, identifier: str) -> Any: ...

    def instantiate(self, cls: type) -> Any: ...


class BeanRegistry:
    """
    Registry of named objects that also builds new ones.

    ``instantiate`` autowires constructor parameters by name from the
    registered objects. Parameters with defaults may be left unsatisfied.

    Example:
        registry = BeanRegistry()
        registry.register("mailer", Mailer())
        listener = registry.instantiate(BlogListener)  # BlogListener(mailer=...)
    """

    def __init__(self, beans: dict[str, Any] | None = None):
        self._beans: dict[str, Any] = dict(beans or {})

    def register(self, name: str, bean: Any) -> None:
        """Register ``bean`` under ``name``, replacing any previous one."""
        self._beans[name] = bean

    def unregister(self, name: str) -> None:
        self._beans.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._beans

    def resolve_by_name(self, identifier: str) -> Any:
        """
        Look up a registered object.

        Raises:
            ListenerResolutionError: If nothing is registered under ``identifier``
        """
        try:
            return self._beans[identifier]
        except KeyError:
            raise ListenerResolutionError(
                f"No bean registered under name '{identifier}'"
            ) from None

    def instantiate(self, cls: type) -> Any:
        """
        Create ``cls``, injecting registered objects by parameter name.

        Raises:
            ListenerResolutionError: If a required parameter has no bean
        """
        kwargs = {}
        try:
            sig = inspect.signature(cls)
        except (TypeError, ValueError):
            # builtin types without introspectable signatures
            return cls()
        for name, param in sig.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if name in self._beans:
                kwargs[name] = self._beans[name]
            elif param.default is param.empty:
                raise ListenerResolutionError(
                    f"Cannot autowire parameter '{name}' of {cls.__qualname__}"
                )
        return cls(**kwargs)


def import_class(identifier: str) -> type:
    """
    Import a class from ``package.module:Class`` or ``package.module.Class``.

    Raises:
        ListenerResolutionError: If the module or attribute cannot be loaded
    """
    if ":" in identifier:
        module_name, _, attr_path = identifier.partition(":")
    else:
        module_name, _, attr_path = identifier.rpartition(".")

    if not module_name or not attr_path:
        raise ListenerResolutionError(f"Invalid class reference: {identifier}")

    try:
        target: Any = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as e:
        raise ListenerResolutionError(f"Failed to import {identifier}: {e}") from e

    if not isinstance(target, type):
        raise ListenerResolutionError(f"{identifier} is not a class")
    return target


def resolve_listener(ref: ListenerRef, resolver: CapabilityResolver) -> Any:
    """
    Resolve a listener reference.

    Native class failures are logged and yield None. A registry lookup miss
    propagates.

    Args:
        ref: Listener reference from the descriptor
        resolver: Capability resolver to look up or build the object

    Returns:
        Listener object, or None

    Raises:
        ListenerResolutionError: If a registry bean is not found
    """
    if ref.kind is ListenerKind.REGISTRY_BEAN:
        return resolver.resolve_by_name(ref.identifier)

    if ref.kind is ListenerKind.NATIVE_CLASS:
        try:
            return resolver.instantiate(import_class(ref.identifier))
        except Exception as e:
            logger.error(
                "Exception while creating component listener '%s': %s",
                ref.identifier,
                e,
            )
            return None

    logger.error("Unknown listener kind %r for '%s'", ref.kind, ref.identifier)
    return None
