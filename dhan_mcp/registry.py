"""Registry of invocable actions (tools) and their invocation outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Union

from mcp import types as mcp_types

from dhan_mcp.client import DhanApiError
from dhan_mcp.validators import ValidationError, require_object

logger = logging.getLogger(__name__)

Validator = Callable[[dict[str, Any]], None]
Executor = Callable[[dict[str, Any]], Awaitable[Any]]

GATE_MESSAGE = "Trading tools are disabled. Set ENABLE_TRADING_TOOLS=true to allow {action}."


@dataclass(frozen=True)
class ActionDescriptor:
    """A named, schema-described action.

    ``gated_action`` names what the trading gate protects (e.g. "order
    placement"); descriptors without it are never gated.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    validate: Validator
    execute: Executor
    gated_action: str | None = None

    @property
    def gated(self) -> bool:
        return self.gated_action is not None


# --- Invocation outcomes ---


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class InvalidArguments:
    field: str
    message: str


@dataclass(frozen=True)
class DomainFailure:
    message: str
    status: int
    payload: Any = field(default_factory=dict)


@dataclass(frozen=True)
class OtherFailure:
    message: str


Outcome = Union[Ok, InvalidArguments, DomainFailure, OtherFailure]


class ActionRegistry:
    """Immutable, ordered lookup table of actions keyed by name."""

    def __init__(self, descriptors: Iterable[ActionDescriptor], trading_enabled: bool = False):
        """Build the registry.

        Args:
            descriptors: Actions in the order they should be listed
            trading_enabled: Whether gated actions may run

        Raises:
            ValueError: If two descriptors share a name
        """
        actions: dict[str, ActionDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in actions:
                raise ValueError(f"Duplicate action name: {descriptor.name}")
            actions[descriptor.name] = descriptor
        self._actions = actions
        self._trading_enabled = trading_enabled

    @property
    def trading_enabled(self) -> bool:
        return self._trading_enabled

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def names(self) -> list[str]:
        return list(self._actions)

    def get(self, name: str) -> ActionDescriptor | None:
        return self._actions.get(name)

    def list_tools(self) -> list[dict[str, Any]]:
        """Project each action to its {name, description, inputSchema} listing."""
        return [
            mcp_types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema,
            ).model_dump(by_alias=True, exclude_none=True)
            for descriptor in self._actions.values()
        ]

    def _check_gate(self, descriptor: ActionDescriptor) -> OtherFailure | None:
        """Return the gate-closed failure for a gated action while trading is off."""
        if descriptor.gated and not self._trading_enabled:
            return OtherFailure(GATE_MESSAGE.format(action=descriptor.gated_action))
        return None

    async def invoke(self, name: str, arguments: Any) -> Outcome:
        """Run an action: policy gate, then validation, then execution.

        The gate is checked before the arguments are even looked at, so a
        closed gate is reported the same way for well-formed and malformed
        input.

        Args:
            name: Registered action name
            arguments: Untyped arguments from the caller

        Returns:
            The invocation outcome; never raises for action failures

        Raises:
            KeyError: If ``name`` is not registered
        """
        descriptor = self._actions[name]

        gate_closed = self._check_gate(descriptor)
        if gate_closed is not None:
            logger.warning(f"Rejected gated action {name}: trading disabled")
            return gate_closed

        try:
            args = require_object(arguments)
            descriptor.validate(args)
        except ValidationError as e:
            logger.info(f"Invalid arguments for {name}: {e}")
            return InvalidArguments(field=e.field, message=str(e))

        try:
            value = await descriptor.execute(args)
        except DhanApiError as e:
            logger.warning(f"Dhan API rejected {name}: status={e.status} message={e.message}")
            return DomainFailure(message=e.message, status=e.status, payload=e.payload)
        except Exception as e:
            logger.error(f"Action {name} failed: {e}", exc_info=True)
            return OtherFailure(str(e) or e.__class__.__name__)

        return Ok(value)
