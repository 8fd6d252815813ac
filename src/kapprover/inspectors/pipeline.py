"""Policy specification parsing.

A policy is written as an ordered, comma-separated list of tokens, each of
the form ``name`` or ``name=config``::

    group=system:nodes,username=system:node:.+,mycheck

Only the first ``=`` of a token separates the name from its configuration,
so the configuration may itself contain ``=``.  Token order is evaluation
order.

Example
-------
>>> builder = PipelineBuilder(default_inspector_registry())
>>> pipeline = builder.build("group=system:nodes,username")
>>> pipeline.names
['group', 'username']
>>> str(pipeline)
'group=system:nodes,username'
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

from kapprover.inspectors.base import Inspector
from kapprover.plugins.base import ConfigurationError, Plugin
from kapprover.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Plugin)


@dataclass(frozen=True)
class NamedPlugin(Generic[P]):
    """One resolved policy token.

    Attributes
    ----------
    name:
        The name as written in the policy.
    config:
        The raw configuration string (empty when none was given).
    plugin:
        The configured plugin instance.
    """

    name: str
    config: str
    plugin: P

    def __str__(self) -> str:
        if self.config:
            return f"{self.name}={self.config}"
        return self.name


def parse_token(token: str) -> tuple[str, str]:
    """Split a policy token on its first ``=`` into ``(name, config)``."""
    name, _, config = token.partition("=")
    return name.strip(), config


def resolve_plugin(registry: PluginRegistry[P], token: str) -> NamedPlugin[P]:
    """Look a token up in ``registry`` and configure it.

    Raises
    ------
    ConfigurationError:
        When the token has no name.
    PluginNotFoundError:
        When the name is not registered.
    """
    name, config = parse_token(token)
    if not name:
        raise ConfigurationError(f"Empty {registry.name} name in policy token {token!r}.")

    plugin = registry.get(name.lower())
    if config:
        plugin = plugin.configure(config)
    return NamedPlugin(name=name, config=config, plugin=plugin)


class InspectorPipeline:
    """Immutable ordered sequence of configured inspectors."""

    def __init__(self, inspectors: list[NamedPlugin[Inspector]] | None = None) -> None:
        self._inspectors: tuple[NamedPlugin[Inspector], ...] = tuple(inspectors or [])

    @property
    def names(self) -> list[str]:
        return [named.name for named in self._inspectors]

    def __iter__(self) -> Iterator[NamedPlugin[Inspector]]:
        return iter(self._inspectors)

    def __len__(self) -> int:
        return len(self._inspectors)

    def __getitem__(self, index: int) -> NamedPlugin[Inspector]:
        return self._inspectors[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InspectorPipeline):
            return NotImplemented
        return self._inspectors == other._inspectors

    def __hash__(self) -> int:
        return hash(self._inspectors)

    def __str__(self) -> str:
        return ",".join(str(named) for named in self._inspectors)

    def __repr__(self) -> str:
        return f"InspectorPipeline({str(self)!r})"


class PipelineBuilder:
    """Builds :class:`InspectorPipeline` objects from policy specifications.

    Parameters
    ----------
    registry:
        Registry holding the inspector prototypes.
    """

    def __init__(self, registry: PluginRegistry[Inspector]) -> None:
        self._registry = registry

    def build(self, spec: str) -> InspectorPipeline:
        """Parse ``spec`` into a pipeline.

        A blank specification yields an empty pipeline.  The first unknown
        name, empty token or configuration failure aborts the whole build.

        Raises
        ------
        PluginNotFoundError:
            When a token names an unregistered inspector.
        ConfigurationError:
            When a token is empty or an inspector rejects its configuration.
        """
        if not spec.strip():
            return InspectorPipeline()

        inspectors = [resolve_plugin(self._registry, token) for token in spec.split(",")]
        pipeline = InspectorPipeline(inspectors)
        logger.info("Built inspector pipeline: %s", pipeline)
        return pipeline

    def build_many(self, specs: list[str]) -> InspectorPipeline:
        """Build one pipeline from several specifications, in order."""
        return self.build(",".join(s for s in specs if s.strip()))
