"""
Component Descriptor Model.

This module provides the in-memory representation of a declared component.

Key features:
- ComponentDescriptor identity by unique code
- Enable state tracked separately from the descriptor document
- Tagged listener references (native class or registry bean)
- State key derivation for the persistent settings store
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plinth.component.origin import Origin


class ComponentState(Enum):
    """Component enable state, stored as the value string."""

    ACTIVE = "active"
    DISABLED = "disable"

    @classmethod
    def parse(cls, value: str | None) -> ComponentState:
        """Map a persisted value to a state; anything but "active" is disabled."""
        if value is not None and value.strip() == cls.ACTIVE.value:
            return cls.ACTIVE
        return cls.DISABLED


class ListenerKind(Enum):
    """How a listener identifier is turned into an object."""

    NATIVE_CLASS = "class"
    REGISTRY_BEAN = "registry"


# Values of the listener ``type`` attribute in descriptor documents
LISTENER_TYPES: dict[str, ListenerKind] = {
    "javabean": ListenerKind.NATIVE_CLASS,
    "class": ListenerKind.NATIVE_CLASS,
    "spring": ListenerKind.REGISTRY_BEAN,
    "registry": ListenerKind.REGISTRY_BEAN,
}


@dataclass(frozen=True)
class ListenerRef:
    """
    Reference to a component listener.

    Attributes:
        kind: Resolution strategy
        identifier: Import path (native class) or registered name (bean)
    """

    kind: ListenerKind
    identifier: str


@dataclass(eq=False)
class ComponentDescriptor:
    """
    A declared component.

    Attributes:
        name: Display name
        code: Unique identifier within the registry
        version: Component version
        entry_point: Primary resource of the component
        description: Optional description
        config_file: External settings file, relative to the origin root
        inline_config: Settings declared inline in the descriptor
        properties: Component-specific metadata (never merged into settings)
        listener_ref: Listener to resolve, if any
        listener: Resolved listener object, bound by the platform
        state: Current enable state
        origin: Archive or directory the descriptor was loaded from
    """

    name: str
    code: str
    version: str
    entry_point: str = ""
    description: str = ""
    config_file: str | None = None
    inline_config: dict[str, str] = field(default_factory=dict)
    properties: dict[str, str] = field(default_factory=dict)
    listener_ref: ListenerRef | None = None
    listener: Any = None
    state: ComponentState = ComponentState.DISABLED
    origin: Origin | None = None

    def state_key(self, namespace: str) -> str:
        """Persistent settings key holding this component's state."""
        return f"{namespace}.component.{self.code}.state"

    @property
    def is_active(self) -> bool:
        return self.state is ComponentState.ACTIVE

    def __str__(self) -> str:
        return f"Component[name={self.name}, code={self.code}, version={self.version}]"
