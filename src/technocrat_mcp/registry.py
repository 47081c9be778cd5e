"""
Capability Registry

In-memory mapping from capability key to its definition and handler, one
partition per capability kind. The registry is populated during start-up
and frozen before a transport accepts traffic; after that it is read-only,
so lookups need no locking.
"""

import logging
from typing import Any, Callable, Dict, Tuple, Union, ValuesView

from .errors import DuplicateName, NotFound, RegistryFrozenError
from .models import (
    CapabilityKind,
    PromptDefinition,
    ResourceDefinition,
    ToolDefinition,
)

logger = logging.getLogger(__name__)

Definition = Union[ToolDefinition, ResourceDefinition, PromptDefinition]
Handler = Callable[..., Any]

_DEFINITION_TYPES = {
    CapabilityKind.TOOL: ToolDefinition,
    CapabilityKind.RESOURCE: ResourceDefinition,
    CapabilityKind.PROMPT: PromptDefinition,
}


class Registry:
    """Registry of tools, resources and prompts.

    Tools and prompts are keyed by name, resources by URI.
    """

    def __init__(self):
        self._definitions: Dict[CapabilityKind, Dict[str, Definition]] = {
            kind: {} for kind in CapabilityKind
        }
        self._handlers: Dict[CapabilityKind, Dict[str, Handler]] = {
            kind: {} for kind in CapabilityKind
        }
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the registry read-only for the rest of the process."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                f"Registry frozen: {self.count(CapabilityKind.TOOL)} tools, "
                f"{self.count(CapabilityKind.RESOURCE)} resources, "
                f"{self.count(CapabilityKind.PROMPT)} prompts"
            )

    def register(self, kind: CapabilityKind, definition: Definition, handler: Handler) -> None:
        """
        Register one capability.

        Args:
            kind: Registry partition
            definition: Immutable capability metadata
            handler: Callable invoked with the validated arguments

        Raises:
            RegistryFrozenError: If a transport has already started
            DuplicateName: If the key is already taken within ``kind``
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {kind.value} '{definition.key}': registry is frozen"
            )
        expected = _DEFINITION_TYPES[kind]
        if not isinstance(definition, expected):
            raise TypeError(f"{kind.value} requires a {expected.__name__}, got {type(definition).__name__}")
        if not callable(handler):
            raise TypeError(f"Handler for {kind.value} '{definition.key}' is not callable")

        key = definition.key
        if key in self._definitions[kind]:
            raise DuplicateName(kind.value, key)

        self._definitions[kind][key] = definition
        self._handlers[kind][key] = handler
        logger.debug(f"Registered {kind.value} '{key}'")

    def register_tool(self, definition: ToolDefinition, handler: Handler) -> None:
        self.register(CapabilityKind.TOOL, definition, handler)

    def register_resource(self, definition: ResourceDefinition, reader: Handler) -> None:
        self.register(CapabilityKind.RESOURCE, definition, reader)

    def register_prompt(self, definition: PromptDefinition, builder: Handler) -> None:
        self.register(CapabilityKind.PROMPT, definition, builder)

    def lookup(self, kind: CapabilityKind, key: str) -> Tuple[Definition, Handler]:
        """Return the ``(definition, handler)`` pair or raise NotFound."""
        try:
            return self._definitions[kind][key], self._handlers[kind][key]
        except KeyError:
            raise NotFound(kind.value, key) from None

    def list(self, kind: CapabilityKind) -> ValuesView:
        """Definitions of ``kind`` in registration order.

        The returned view is lazy and can be iterated any number of times.
        """
        return self._definitions[kind].values()

    def count(self, kind: CapabilityKind) -> int:
        return len(self._definitions[kind])

    def __contains__(self, item: Tuple[CapabilityKind, str]) -> bool:
        kind, key = item
        return key in self._definitions[kind]
