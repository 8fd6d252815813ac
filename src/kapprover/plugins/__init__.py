"""Plugin subsystem for kapprover.

The registry module provides the name-keyed registration surface shared by
approvers and inspectors.  Third-party implementations register via
``importlib.metadata`` entry-points under the "kapprover.approvers" and
"kapprover.inspectors" groups.

Example
-------
Declare an inspector in pyproject.toml:

.. code-block:: toml

    [project.entry-points."kapprover.inspectors"]
    my_inspector = "my_package.inspectors:MyInspector"
"""
from __future__ import annotations

from kapprover.plugins.base import ConfigurationError, Plugin
from kapprover.plugins.registry import (
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

__all__ = [
    "ConfigurationError",
    "Plugin",
    "PluginAlreadyRegisteredError",
    "PluginNotFoundError",
    "PluginRegistry",
]
