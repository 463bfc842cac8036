"""
Tests for listener resolution and lifecycle hook dispatch.

This test suite covers:
1. BeanRegistry lookup and autowired instantiation
2. Class import from string references
3. Listener reference resolution for both kinds
4. Hook dispatch, duck typing and exception propagation
"""

import collections

import pytest

from plinth.component.descriptor import ComponentDescriptor, ListenerKind, ListenerRef
from plinth.component.hooks import LifecycleEvent, fire_event, has_hook
from plinth.component.listener import (
    BeanRegistry,
    ComponentListener,
    import_class,
    resolve_listener,
)
from plinth.errors import ListenerResolutionError


class Mailer:
    pass


class NeedsMailer(ComponentListener):
    def __init__(self, mailer, retries=3):
        self.mailer = mailer
        self.retries = retries


class RecordingListener(ComponentListener):
    def __init__(self):
        self.calls = []

    def before_active(self):
        self.calls.append("before_active")

    def after_active(self):
        self.calls.append("after_active")


class TestBeanRegistry:
    """Test the default capability resolver."""

    def test_resolve_by_name(self):
        """Should return the registered object."""
        mailer = Mailer()
        registry = BeanRegistry({"mailer": mailer})

        assert registry.resolve_by_name("mailer") is mailer
        assert "mailer" in registry

    def test_resolve_missing(self):
        """Should raise when nothing is registered under the name."""
        registry = BeanRegistry()

        with pytest.raises(ListenerResolutionError, match="No bean registered"):
            registry.resolve_by_name("ghost")

    def test_unregister(self):
        registry = BeanRegistry()
        registry.register("x", 1)
        registry.unregister("x")
        registry.unregister("x")

        assert "x" not in registry

    def test_instantiate_autowires(self):
        """Constructor parameters should be filled by name."""
        mailer = Mailer()
        registry = BeanRegistry({"mailer": mailer})

        listener = registry.instantiate(NeedsMailer)

        assert listener.mailer is mailer
        assert listener.retries == 3

    def test_instantiate_missing_dependency(self):
        """A required parameter without a bean should fail."""
        with pytest.raises(ListenerResolutionError, match="Cannot autowire parameter 'mailer'"):
            BeanRegistry().instantiate(NeedsMailer)


class TestImportClass:
    """Test class references."""

    def test_colon_form(self):
        assert import_class("collections:OrderedDict") is collections.OrderedDict

    def test_dotted_form(self):
        assert (
            import_class("plinth.component.listener.ComponentListener")
            is ComponentListener
        )

    def test_missing_module(self):
        with pytest.raises(ListenerResolutionError, match="Failed to import"):
            import_class("no_such_module_xyz:Thing")

    def test_not_a_class(self):
        with pytest.raises(ListenerResolutionError, match="is not a class"):
            import_class("plinth.component.listener:import_class")

    def test_invalid_reference(self):
        with pytest.raises(ListenerResolutionError, match="Invalid class reference"):
            import_class("NoModule")


class TestResolveListener:
    """Test listener reference resolution."""

    def test_registry_bean(self):
        listener = RecordingListener()
        registry = BeanRegistry({"blogListener": listener})

        ref = ListenerRef(ListenerKind.REGISTRY_BEAN, "blogListener")
        assert resolve_listener(ref, registry) is listener

    def test_registry_bean_missing_propagates(self):
        """A registry miss should propagate to the caller."""
        ref = ListenerRef(ListenerKind.REGISTRY_BEAN, "ghost")

        with pytest.raises(ListenerResolutionError):
            resolve_listener(ref, BeanRegistry())

    def test_native_class(self):
        """Native class references should be imported and instantiated."""
        ref = ListenerRef(ListenerKind.NATIVE_CLASS, "collections:OrderedDict")

        listener = resolve_listener(ref, BeanRegistry())

        assert isinstance(listener, collections.OrderedDict)

    def test_native_class_failure_yields_none(self, caplog):
        """Native class failures should be logged and yield None."""
        ref = ListenerRef(ListenerKind.NATIVE_CLASS, "no_such_module_xyz:Thing")

        assert resolve_listener(ref, BeanRegistry()) is None
        assert "Exception while creating component listener" in caplog.text


class TestFireEvent:
    """Test lifecycle hook dispatch."""

    def _descriptor(self, listener):
        return ComponentDescriptor(name="A", code="a", version="1", listener=listener)

    def test_fire_in_order(self):
        """Hooks should run synchronously in call order."""
        listener = RecordingListener()
        descriptor = self._descriptor(listener)

        assert fire_event(descriptor, LifecycleEvent.BEFORE_ACTIVE) is True
        assert fire_event(descriptor, LifecycleEvent.AFTER_ACTIVE) is True

        assert listener.calls == ["before_active", "after_active"]

    def test_base_hooks_are_noops(self):
        """Base class hooks should run without effect."""
        descriptor = self._descriptor(ComponentListener())

        for event in LifecycleEvent:
            assert fire_event(descriptor, event) is True

    def test_duck_typed_listener(self):
        """Listeners need not subclass ComponentListener."""

        class Partial:
            def __init__(self):
                self.started = False

            def on_startup(self):
                self.started = True

        listener = Partial()
        descriptor = self._descriptor(listener)

        assert fire_event(descriptor, LifecycleEvent.ON_STARTUP) is True
        assert fire_event(descriptor, LifecycleEvent.BEFORE_REMOVE) is False
        assert listener.started
        assert has_hook(listener, LifecycleEvent.ON_STARTUP)
        assert not has_hook(listener, LifecycleEvent.AFTER_DEPLOY)

    def test_no_listener(self):
        assert fire_event(self._descriptor(None), LifecycleEvent.ON_STARTUP) is False
        assert fire_event(None, LifecycleEvent.ON_STARTUP) is False

    def test_hook_exception_propagates(self):
        """Exceptions raised by hooks should reach the caller."""

        class Failing(ComponentListener):
            def before_deploy(self):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            fire_event(self._descriptor(Failing()), LifecycleEvent.BEFORE_DEPLOY)
