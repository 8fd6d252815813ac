"""Name-keyed plugin registry.

A :class:`PluginRegistry` maps lowercase names to plugin prototypes that
share a common base class.  Registries are explicit values: build one at
process start, register every plugin, then hand it to whatever resolves
policy specifications.

Registration mistakes (an empty name, a missing instance, a duplicate name)
are programming errors.  They raise immediately and are not meant to be
caught.

Example
-------
>>> registry = PluginRegistry(Inspector, "inspectors")
>>> @registry.plugin("group")
... class GroupInspector(Inspector):
...     ...
>>> registry.list_plugins()
['group']
"""
from __future__ import annotations

import importlib.metadata
import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PluginNotFoundError(KeyError):
    """Raised when no plugin is registered under the requested name.

    Attributes
    ----------
    plugin_name:
        The name that was looked up.
    registry_name:
        Name of the registry that was searched.
    available:
        Names registered at the time of the lookup.
    """

    def __init__(
        self,
        plugin_name: str,
        registry_name: str,
        available: list[str] | None = None,
    ) -> None:
        self.plugin_name = plugin_name
        self.registry_name = registry_name
        self.available = available or []
        super().__init__(plugin_name)

    def __str__(self) -> str:
        return (
            f"Could not find {self.registry_name} plugin '{self.plugin_name}', "
            f"registered {self.registry_name}: {','.join(self.available)}"
        )


class PluginAlreadyRegisteredError(ValueError):
    """Raised when a name is registered twice (in any casing)."""

    def __init__(self, plugin_name: str, registry_name: str) -> None:
        self.plugin_name = plugin_name
        self.registry_name = registry_name
        super().__init__(
            f"{registry_name}: plugin '{plugin_name}' is already registered."
        )


class PluginRegistry(Generic[T]):
    """Thread-safe registry of plugin prototypes.

    Parameters
    ----------
    base_class:
        Every registered instance must be an instance of this class.
    registry_name:
        Human-readable name used in error and log messages.
    """

    def __init__(self, base_class: type[T], registry_name: str) -> None:
        self._base_class = base_class
        self._registry_name = registry_name
        self._plugins: dict[str, T] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._registry_name

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, instance: T) -> None:
        """Make ``instance`` available under ``name.lower()``.

        Raises
        ------
        ValueError:
            When ``name`` is empty.
        TypeError:
            When ``instance`` is ``None`` or not a ``base_class`` instance.
        PluginAlreadyRegisteredError:
            When the name is already taken.
        """
        if not name:
            raise ValueError(
                f"{self._registry_name}: could not register a plugin with an empty name."
            )
        if instance is None:
            raise TypeError(f"{self._registry_name}: could not register a None plugin.")
        if not isinstance(instance, self._base_class):
            raise TypeError(
                f"{self._registry_name}: '{name}' is a {type(instance).__name__}, "
                f"not a {self._base_class.__name__}."
            )

        key = name.lower()
        with self._lock:
            if key in self._plugins:
                raise PluginAlreadyRegisteredError(key, self._registry_name)
            self._plugins[key] = instance
        logger.debug("Registered %s plugin '%s'.", self._registry_name, key)

    def plugin(self, name: str) -> Callable[[type[T]], type[T]]:
        """Class decorator registering a default-constructed instance.

        The decorated class is returned unchanged.
        """

        def decorator(cls: type[T]) -> type[T]:
            self.register(name, cls())
            return cls

        return decorator

    def deregister(self, name: str) -> None:
        """Remove a plugin, matching ``name`` case-insensitively.

        Removing an unknown name is a no-op.
        """
        with self._lock:
            self._plugins.pop(name.lower(), None)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> T:
        """Return the prototype stored under ``name``.

        Names are matched exactly as stored; callers lowercase them.

        Raises
        ------
        PluginNotFoundError:
            When nothing is registered under ``name``.
        """
        with self._lock:
            instance = self._plugins.get(name)
            if instance is not None:
                return instance
            available = sorted(self._plugins)
        raise PluginNotFoundError(name, self._registry_name, available)

    def find(self, name: str) -> T | None:
        """Like :meth:`get` but returns ``None`` when the name is unknown."""
        with self._lock:
            return self._plugins.get(name)

    def list_plugins(self) -> list[str]:
        """Return a sorted snapshot of registered names."""
        with self._lock:
            return sorted(self._plugins)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str) -> None:
        """Register plugins advertised under an ``importlib.metadata`` group.

        Each entry point may resolve to a plugin class (instantiated with no
        arguments) or to a ready instance.  Names that are already registered
        are skipped without loading.  Entry points that fail to load or that
        do not produce a ``base_class`` instance are logged and skipped.
        """
        for entry_point in importlib.metadata.entry_points(group=group):
            if self.find(entry_point.name.lower()) is not None:
                logger.debug(
                    "Skipping entry point '%s': already registered in %s.",
                    entry_point.name,
                    self._registry_name,
                )
                continue
            try:
                loaded = entry_point.load()
                instance = loaded() if isinstance(loaded, type) else loaded
                self.register(entry_point.name, instance)
            except (ImportError, AttributeError, TypeError, ValueError) as exc:
                logger.warning(
                    "Failed to load %s entry point '%s': %s",
                    self._registry_name,
                    entry_point.name,
                    exc,
                )

    # ------------------------------------------------------------------
    # Dunder methods
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._plugins

    def __len__(self) -> int:
        with self._lock:
            return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._registry_name!r}, "
            f"base_class={self._base_class.__name__}, plugins={self.list_plugins()!r})"
        )
