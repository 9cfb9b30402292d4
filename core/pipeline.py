"""Shared consumer/processor/producer scaffolding."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Protocol, Tuple, Type, TypeVar

from .cli_errors import CLIError, ExitCode

LOG = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")
ResultT = TypeVar("ResultT")
RequestT = TypeVar("RequestT")
T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ResultEnvelope(Generic[ResultT]):
    status: str
    payload: Optional[ResultT] = None
    diagnostics: Optional[dict[str, Any]] = None

    def ok(self) -> bool:
        return self.status.lower() == "success"

    def unwrap(self) -> ResultT:
        """Return payload or raise ValueError. Use after ok() check."""
        if self.payload is None:
            msg = (self.diagnostics or {}).get("message", "No payload")
            raise ValueError(msg)
        return self.payload

    @property
    def exit_code(self) -> int:
        if self.ok():
            return int(ExitCode.SUCCESS)
        return int((self.diagnostics or {}).get("code", ExitCode.USAGE))


class Consumer(Protocol[PayloadT]):
    def consume(self) -> PayloadT:
        ...


class Processor(Protocol[PayloadT, ResultT]):
    def process(self, payload: PayloadT) -> ResultT:
        ...


class Producer(Protocol[ResultT]):
    def produce(self, result: ResultT) -> None:
        ...


class RequestConsumer(Generic[RequestT], Consumer[RequestT]):
    """Generic consumer that wraps any request object.

    Example usage:
        request = ResolveRequest(...)
        payload = RequestConsumer(request).consume()  # Returns the request
    """

    def __init__(self, request: RequestT) -> None:
        self._request = request

    def consume(self) -> RequestT:  # pragma: no cover - trivial
        return self._request


class BaseProducer:
    """Base class for pipeline producers with common error handling.

    Subclasses override _produce_success() to render successful results;
    failed envelopes are reported here.
    """

    def produce(self, result: ResultEnvelope) -> None:
        """Template method: handle errors, delegate success to subclass."""
        if self.print_error(result):
            return
        if result.payload is not None:
            self._produce_success(result.payload, result.diagnostics)

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        """Override in subclass to handle successful result output."""
        raise NotImplementedError("Subclass must implement _produce_success")

    @staticmethod
    def print_error(result: ResultEnvelope) -> bool:
        """Print error message if result failed. Returns True if error was printed."""
        if result.ok():
            return False
        msg = (result.diagnostics or {}).get("message")
        if msg:
            print(msg)
        return True


class SafeProcessor(Generic[T, R]):
    """Base processor that turns raised errors into error envelopes.

    Subclasses override _process_safe(). ``error_codes`` maps exception
    types to exit codes; the first matching entry wins, CLIError carries its
    own code, anything else falls back to ``default_error_code``.
    """

    error_codes: Tuple[Tuple[Type[BaseException], ExitCode], ...] = (
        (FileNotFoundError, ExitCode.NOT_FOUND),
    )
    default_error_code: ExitCode = ExitCode.ERROR

    def process(self, payload: T) -> ResultEnvelope[R]:
        """Wrap _process_safe with error handling."""
        try:
            result = self._process_safe(payload)
            return ResultEnvelope(status="success", payload=result)
        except Exception as e:
            code = self._code_for(e)
            LOG.debug("%s failed (%s): %s", type(self).__name__, type(e).__name__, e)
            return ResultEnvelope(status="error", diagnostics={"message": str(e), "code": int(code)})

    def _code_for(self, error: Exception) -> ExitCode:
        if isinstance(error, CLIError):
            return error.code
        for exc_type, code in self.error_codes:
            if isinstance(error, exc_type):
                return code
        return self.default_error_code

    def _process_safe(self, payload: T) -> R:
        """Override to implement processing logic without error handling boilerplate."""
        raise NotImplementedError("Subclass must implement _process_safe")


def run_pipeline(request: Any, processor: Processor[Any, ResultEnvelope], producer: Producer[ResultEnvelope]) -> int:
    """Execute a pipeline and return CLI exit code.

    Args:
        request: The request object to process
        processor: Processor instance
        producer: Producer instance

    Returns:
        0 on success, or the error code from diagnostics
    """
    envelope = processor.process(RequestConsumer(request).consume())
    producer.produce(envelope)
    return envelope.exit_code
