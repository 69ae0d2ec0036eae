"""Tool registry: operation name -> schema-validated handler.

The registry is built once at startup, sealed, and then shared read-only by
every connection. ``dispatch`` is the single entry point used by the protocol
layer:

- unknown name            -> ``UnknownOperation``
- arguments fail the model -> ``ToolValidationError`` (lists the bad fields)
- handler runs            -> ``Success`` or ``Failure`` (never raises for I/O)
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError

from mcp_demo.envelope import InvocationResult
from mcp_demo.errors import OutputValidationError, RegistrationError, ToolValidationError, UnknownOperation

logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], Awaitable[InvocationResult]]


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    title: str
    description: str
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    handler: Handler

    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema(by_alias=True)

    def output_schema(self) -> Dict[str, Any]:
        return self.output_model.model_json_schema(by_alias=True)


def _time_call() -> Callable[[], float]:
    """Simple wall-clock timer for execution duration."""
    start = time.perf_counter()

    def done() -> float:
        return time.perf_counter() - start

    return done


def _error_fields(exc: ValidationError) -> List[str]:
    # Top-level argument names only; deeper locs carry union member tags.
    fields = []
    for err in exc.errors():
        loc = err.get("loc", ())
        name = str(loc[0]) if loc else "(root)"
        if name not in fields:
            fields.append(name)
    return fields


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, OperationDescriptor] = {}
        self._sealed = False

    def register(self, descriptor: OperationDescriptor) -> OperationDescriptor:
        if self._sealed:
            raise RegistrationError(f"Registry is sealed; cannot add tool {descriptor.name}")
        if descriptor.name in self._tools:
            raise RegistrationError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool {descriptor.name}")
        return descriptor

    def tool(
        self,
        name: str,
        *,
        title: str,
        description: str,
        input_model: Type[BaseModel],
        output_model: Type[BaseModel],
    ) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(
                OperationDescriptor(
                    name=name,
                    title=title,
                    description=description,
                    input_model=input_model,
                    output_model=output_model,
                    handler=handler,
                )
            )
            return handler

        return decorator

    def seal(self) -> "ToolRegistry":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, name: str) -> Optional[OperationDescriptor]:
        return self._tools.get(name)

    def list_tools(self) -> List[OperationDescriptor]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[OperationDescriptor]:
        return iter(self.list_tools())

    def __len__(self) -> int:
        return len(self._tools)

    async def dispatch(self, name: str, raw_input: Optional[Dict[str, Any]] = None) -> InvocationResult:
        descriptor = self._tools.get(name)
        if descriptor is None:
            logger.warning(f"Unknown tool requested: {name!r}")
            raise UnknownOperation(name)

        call_id = uuid.uuid4().hex[:12]
        logger.debug(f"[{call_id}] {name}() invoked with {raw_input!r}")
        done = _time_call()

        try:
            args = descriptor.input_model.model_validate(raw_input if raw_input is not None else {})
        except ValidationError as e:
            fields = _error_fields(e)
            logger.warning(f"[{call_id}] {name}() validation error after {done():.6f}s: {', '.join(fields)}")
            raise ToolValidationError(name, fields, str(e)) from e

        result = await descriptor.handler(args)

        try:
            descriptor.output_model.model_validate(result.payload)
        except ValidationError as e:
            logger.error(f"[{call_id}] {name}() produced an invalid payload: {e}")
            raise OutputValidationError(name, str(e)) from e

        duration = done()
        if result.is_error:
            logger.warning(f"[{call_id}] {name}() reported error in {duration:.6f}s: {result.error}")
        else:
            logger.info(f"[{call_id}] {name}() success in {duration:.6f}s")
        return result
