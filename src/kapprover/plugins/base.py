"""Base capability shared by every pluggable policy component."""
from __future__ import annotations

from abc import ABC, abstractmethod


class ConfigurationError(ValueError):
    """Raised by :meth:`Plugin.configure` when a configuration string is rejected."""


class Plugin(ABC):
    """A named, configurable policy component.

    Plugins are immutable value objects.  The instance held by a registry
    is a prototype: :meth:`configure` returns a new instance and never
    mutates the prototype in place.
    """

    @abstractmethod
    def configure(self, config: str) -> Plugin:
        """Return a new instance configured from ``config``.

        Parameters
        ----------
        config:
            The literal text following ``=`` in a policy token.  Never empty.

        Raises
        ------
        ConfigurationError:
            When ``config`` is not acceptable for this plugin.
        """
