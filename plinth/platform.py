"""
Component Platform.

This module provides the orchestrator that owns the component registry.

Key features:
- Discovery through injected origin providers
- Reconciliation of discovered components against persisted state
- Activate, disable, deploy and remove operations with lifecycle hooks
- Best-effort multi-step operations with per-step results
- Lazily built process-wide default instance
"""

import logging
import os
import time
from collections.abc import Callable, Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from plinth.component.descriptor import ComponentDescriptor, ComponentState
from plinth.component.hooks import LifecycleEvent, fire_event
from plinth.component.listener import (
    BeanRegistry,
    CapabilityResolver,
    resolve_listener,
)
from plinth.component.loader import load_descriptors
from plinth.component.origin import (
    OriginProvider,
    SearchPathOriginProvider,
    SysPathOriginProvider,
    discover,
)
from plinth.component.resources import deploy_resources, remove_resources
from plinth.component.settings import merge_settings, remove_settings
from plinth.config import (
    PlatformConfig,
    apply_log_levels,
    load_platform_config,
    open_or_empty,
)
from plinth.errors import (
    ConfigLoadError,
    DescriptorParseError,
    ListenerResolutionError,
    PlinthError,
    UnknownComponentError,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@dataclass
class StepResult:
    """
    Outcome of one step of a multi-step operation.

    Attributes:
        name: Step name ("settings", "resources", "state")
        ok: Whether the step succeeded
        error: Error message if the step failed
    """

    name: str
    ok: bool = True
    error: str | None = None


@dataclass
class OperationResult:
    """
    Ordered step outcomes of a deploy or remove.

    Steps fail independently; nothing is rolled back.
    """

    operation: str
    code: str
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.ok for step in self.steps)

    @property
    def errors(self) -> list[str]:
        return [f"{step.name}: {step.error}" for step in self.steps if not step.ok]


def default_providers(config: PlatformConfig) -> list[OriginProvider]:
    """Origin providers described by a platform config."""
    providers: list[OriginProvider] = [SearchPathOriginProvider(config.discovery_paths)]
    if config.scan_sys_path:
        providers.append(SysPathOriginProvider())
    return providers


class Platform:
    """
    Component lifecycle orchestrator.

    Owns the registry (code -> descriptor), the persistent settings store and
    the log-status store. Not thread-safe: callers serialize access.
    """

    def __init__(
        self,
        config: PlatformConfig | None = None,
        providers: Iterable[OriginProvider] | None = None,
        resolver: CapabilityResolver | None = None,
        environ: MutableMapping[str, str] | None = None,
    ):
        """
        Initialize Platform and load its stores.

        Missing or corrupt stores are logged and replaced by empty ones.

        Args:
            config: Platform configuration (defaults if omitted)
            providers: Origin providers (derived from ``config`` if omitted)
            resolver: Listener resolver (empty BeanRegistry if omitted)
            environ: Mapping settings are copied into once (os.environ if omitted)
        """
        self.config = config or PlatformConfig()
        self.providers = (
            list(providers) if providers is not None else default_providers(self.config)
        )
        self.resolver = resolver if resolver is not None else BeanRegistry()
        self._components: dict[str, ComponentDescriptor] = {}
        self._started = False

        self.settings = open_or_empty(self.config.settings_file, "settings")
        self.log_status = open_or_empty(self.config.log_status_file, "log status")
        apply_log_levels(self.log_status)

        self._export_settings(os.environ if environ is None else environ)

    def _export_settings(self, environ: MutableMapping[str, str]) -> None:
        # one-time copy; later settings changes are not propagated
        for key, value in self.settings.items():
            if not key.strip():
                continue
            try:
                environ[key] = value
            except ValueError as e:
                # os.environ rejects names holding "=" or NUL
                logger.warning("Not exporting setting %r to the environment: %s", key, e)

    @property
    def version(self) -> str:
        return VERSION

    @property
    def components(self) -> Mapping[str, ComponentDescriptor]:
        """Read-only view of the registry."""
        return MappingProxyType(self._components)

    def component_list(self) -> list[ComponentDescriptor]:
        """Snapshot of all registered components."""
        return list(self._components.values())

    def get_component(self, code: str) -> ComponentDescriptor | None:
        return self._components.get(code)

    def state_key(self, descriptor: ComponentDescriptor) -> str:
        return descriptor.state_key(self.config.namespace)

    def start(self) -> None:
        """Start the platform; only the first call refreshes."""
        if self._started:
            logger.info("Platform is already started.")
            return

        self._started = True
        logger.info("Initializing platform...")
        begin = time.monotonic()
        self.refresh()
        logger.info("Platform started in %.2f sec.", time.monotonic() - begin)

    def refresh(self) -> list[str]:
        """
        Re-scan all origins and reconcile the registry with stored state.

        Returns:
            Codes of the components found by the scan
        """
        found = self._scan()
        self.state_check()
        return found

    def _scan(self) -> list[str]:
        logger.info("Scanning for components...")
        found = []

        for origin in discover(self.providers):
            try:
                descriptors = load_descriptors(origin)
            except DescriptorParseError as e:
                logger.error("Skipping components of %s: %s", origin, e)
                continue

            for descriptor in descriptors:
                self.register(descriptor)
                found.append(descriptor.code)

        logger.info("Scanning completed, %d component(s) found.", len(found))
        return found

    def register(self, descriptor: ComponentDescriptor) -> None:
        """
        Put a descriptor in the registry and bind its listener.

        A descriptor already registered under the same code is replaced
        without removal hooks.
        """
        previous = self._components.get(descriptor.code)
        if previous is not None and previous is not descriptor:
            logger.info("Replacing registered component %s", descriptor.code)

        self._bind_listener(descriptor)
        self._components[descriptor.code] = descriptor

    def _bind_listener(self, descriptor: ComponentDescriptor) -> None:
        if descriptor.listener is not None or descriptor.listener_ref is None:
            return
        try:
            descriptor.listener = resolve_listener(descriptor.listener_ref, self.resolver)
        except ListenerResolutionError as e:
            logger.error(
                "Component %s proceeds without listener: %s", descriptor.code, e
            )

    def state_check(self) -> None:
        """
        Restore stored states; deploy and activate new components.

        Fires ``on_startup`` for every component that ends up active.
        """
        logger.info("Checking component status...")

        for descriptor in self.component_list():
            stored = self.settings.get(self.state_key(descriptor), "")

            if stored.strip():
                descriptor.state = ComponentState.parse(stored)
            else:
                logger.info("Found new component: %s", descriptor.code)
                self.deploy(descriptor)
                self.activate(descriptor.code)

            if descriptor.is_active:
                fire_event(descriptor, LifecycleEvent.ON_STARTUP)

    def _require(self, code: str) -> ComponentDescriptor:
        try:
            return self._components[code]
        except KeyError:
            raise UnknownComponentError(f"Unknown component: {code}") from None

    def _change_state(self, descriptor: ComponentDescriptor, state: ComponentState) -> None:
        descriptor.state = state
        self.settings.set(self.state_key(descriptor), state.value)

    def _set_state_logged(self, descriptor: ComponentDescriptor, state: ComponentState) -> None:
        try:
            self._change_state(descriptor, state)
        except ConfigLoadError as e:
            logger.error("Failed to persist state of %s: %s", descriptor.code, e)

    def activate(self, code: str) -> bool:
        """
        Activate a component.

        Returns:
            False if the code is unknown
        """
        try:
            descriptor = self._require(code)
        except UnknownComponentError as e:
            logger.warning("Cannot activate: %s", e)
            return False

        logger.info("Activating component %s ...", code)
        fire_event(descriptor, LifecycleEvent.BEFORE_ACTIVE)
        self._set_state_logged(descriptor, ComponentState.ACTIVE)
        fire_event(descriptor, LifecycleEvent.AFTER_ACTIVE)
        return True

    def disable(self, code: str) -> bool:
        """
        Disable a component. No hooks are fired.

        Returns:
            False if the code is unknown
        """
        try:
            descriptor = self._require(code)
        except UnknownComponentError as e:
            logger.warning("Cannot disable: %s", e)
            return False

        logger.info("Disabling component %s", code)
        self._set_state_logged(descriptor, ComponentState.DISABLED)
        return True

    def _run_step(
        self,
        result: OperationResult,
        name: str,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        try:
            value = func(*args, **kwargs)
        except PlinthError as e:
            logger.error("%s of %s: step '%s' failed: %s", result.operation, result.code, name, e)
            result.steps.append(StepResult(name, ok=False, error=str(e)))
            return None
        result.steps.append(StepResult(name))
        return value

    def deploy(self, descriptor: ComponentDescriptor) -> OperationResult:
        """
        Deploy a component: merge settings, release resources, mark disabled.

        Deploy never activates.

        Returns:
            Per-step outcome
        """
        result = OperationResult("deploy", descriptor.code)
        self._bind_listener(descriptor)

        fire_event(descriptor, LifecycleEvent.BEFORE_DEPLOY)
        logger.info("Deploying component %s ...", descriptor.code)

        if self._components.get(descriptor.code) is not descriptor:
            self.register(descriptor)

        if descriptor.origin is not None:
            self._run_step(result, "settings", merge_settings, descriptor, self.settings)
            self._run_step(
                result,
                "resources",
                deploy_resources,
                descriptor.origin,
                self.config.webroot,
                overlay=self.config.overlay,
                excluded_extensions=self.config.excluded_extensions,
            )

        self._run_step(
            result, "state", self._change_state, descriptor, ComponentState.DISABLED
        )

        if result.ok:
            logger.info("Deploy of component %s completed.", descriptor.code)
        else:
            logger.warning(
                "Deploy of component %s completed with errors: %s",
                descriptor.code,
                result.errors,
            )

        fire_event(descriptor, LifecycleEvent.AFTER_DEPLOY)
        return result

    def remove(self, target: str | ComponentDescriptor) -> OperationResult | None:
        """
        Remove a component: retract resources and settings, forget its state.

        A descriptor is unregistered only if it is the instance currently
        registered under its code; a stale one (replaced by a later refresh)
        leaves the registry untouched.

        Args:
            target: Component code or descriptor

        Returns:
            Per-step outcome, or None if the code is unknown
        """
        if isinstance(target, ComponentDescriptor):
            descriptor = target
        else:
            try:
                descriptor = self._require(target)
            except UnknownComponentError as e:
                logger.warning("Cannot remove: %s", e)
                return None

        result = OperationResult("remove", descriptor.code)

        fire_event(descriptor, LifecycleEvent.BEFORE_REMOVE)
        logger.info("Removing component %s ...", descriptor.code)

        if descriptor.origin is not None:
            self._run_step(
                result,
                "resources",
                remove_resources,
                descriptor.origin,
                self.config.webroot,
                excluded_extensions=self.config.excluded_extensions,
            )
        self._run_step(result, "settings", remove_settings, descriptor, self.settings)

        if self._components.get(descriptor.code) is descriptor:
            del self._components[descriptor.code]
        else:
            logger.info(
                "Component %s is registered as another instance; leaving it registered",
                descriptor.code,
            )
        self._run_step(result, "state", self.settings.remove, self.state_key(descriptor))

        logger.info("Removal of component %s completed.", descriptor.code)
        fire_event(descriptor, LifecycleEvent.AFTER_REMOVE)
        return result


# Process-wide default instance
_platform: Platform | None = None


def get_platform(config_file: Path | None = None) -> Platform:
    """
    Get the process-wide platform, building it on first access.

    Args:
        config_file: Platform config used when building (first call only)
    """
    global _platform
    if _platform is None:
        try:
            config = load_platform_config(config_file)
        except ConfigLoadError as e:
            logger.error("Unusable platform config, using defaults: %s", e)
            config = PlatformConfig()
        _platform = Platform(config)
    return _platform


def set_platform(platform: Platform | None) -> None:
    """Install ``platform`` as the process-wide instance (None clears it)."""
    global _platform
    _platform = platform


def reset_platform() -> None:
    set_platform(None)
