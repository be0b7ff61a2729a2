"""Register typed request handlers and mount them on a router.

Usage:
    router = MemoryRouter()
    forja = Forja(router, Config(path="/api"))

    def greet(ctx: Request, params: Greeting) -> Reply:
        return Reply(text=f"Hello, {params.name}")

    add_handler(forja, greet)
    forja.write_client("web/src/apiclient.ts")
"""

from __future__ import annotations

import functools
import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from forja.generator import types as td
from forja.generator.client import generate
from forja.generator.reflect import Reflector

from . import codec
from .router import Request, Response, Router

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Marker segment Python puts in the qualname of functions defined inside functions
_CLOSURE_MARKER = "<locals>"


class RegistrationError(RuntimeError):
    """Raised when a handler cannot be registered."""


class IdentityResolutionError(RegistrationError):
    """Raised when a handler identity cannot be split into namespace and name."""


class DuplicateHandlerError(RegistrationError):
    """Raised when two handlers resolve to the same namespace and name."""


@dataclass
class Config:
    # Called with the exception whenever a handler raises
    on_error: Callable[[Exception], None] | None = None

    # Mount prefix for every route, e.g. "/api" gives "/api/pkg.handler".
    # Used as given apart from a trailing "/".
    path: str = "/"


@dataclass(frozen=True)
class HandlerDescriptor:
    namespace: str
    name: str
    input_type: td.TypeDescriptor
    output_type: td.TypeDescriptor
    input_is_empty: bool

    @property
    def key(self) -> str:
        return f"{self.namespace}.{self.name}"


def resolve_identity(handler: Callable[..., Any]) -> tuple[str, str]:
    """Derive ``(namespace, name)`` from a handler's module and qualified name.

    The namespace is the last segment of the declaring module. The name is
    the qualified name with closure markers removed and nested segments
    joined by ``_``, so ``Greeter.hello`` becomes ``Greeter_hello``.
    """
    if isinstance(handler, functools.partial):
        raise IdentityResolutionError(f"Cannot resolve a name for partial {handler!r}")

    module = getattr(handler, "__module__", None)
    qualname = getattr(handler, "__qualname__", None)
    if not module or not qualname:
        raise IdentityResolutionError(f"Cannot resolve a name for {handler!r}")

    namespace = module.rsplit(".", 1)[-1]
    parts = [p for p in qualname.split(".") if p and p != _CLOSURE_MARKER]

    if not parts:
        raise IdentityResolutionError(f"{module}.{qualname} has no handler name")

    for part in [namespace, *parts]:
        if not _IDENTIFIER.fullmatch(part):
            raise IdentityResolutionError(f"{module}.{qualname}: {part!r} is not a valid name segment")

    return namespace, "_".join(parts)


def _handler_types(handler: Callable[..., Any]) -> tuple[Any, Any]:
    """Return the annotated ``(input, output)`` types of ``handler(ctx, params)``."""
    try:
        signature = inspect.signature(handler, eval_str=True)
    except (NameError, TypeError, ValueError) as e:
        raise RegistrationError(f"Cannot inspect handler {handler!r}: {e}") from e

    params = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(params) != 2:
        raise RegistrationError(f"Handler {handler!r} must take (ctx, params), got {len(params)} arguments")

    return params[1].annotation, signature.return_annotation


class Forja:
    """Handler registry for one server.

    Holds every registered handler, in registration order, plus the router
    the handlers are mounted on. Registration must finish before the client
    is generated; once generated the registry is sealed.
    """

    def __init__(self, router: Router, config: Config | None = None) -> None:
        config = config or Config()
        if not config.path:
            config = replace(config, path="/")

        self.router = router
        self.config = config
        self.handlers: dict[str, HandlerDescriptor] = {}
        self._reflector = Reflector()
        self._sealed = False

    def __len__(self) -> int:
        return len(self.handlers)

    def __iter__(self):
        return iter(self.handlers.values())

    def route(self, namespace: str, name: str) -> str:
        return f"{self.config.path.rstrip('/')}/{namespace}.{name}"

    def register(
        self,
        handler: Callable[..., Any],
        *,
        namespace: str | None = None,
        name: str | None = None,
        input_type: Any = inspect.Parameter.empty,
        output_type: Any = inspect.Parameter.empty,
    ) -> str:
        """Register a handler and mount it on the router.

        Args:
            handler: A callable taking ``(ctx, params)``.
            namespace: Route namespace; derived from the handler if omitted.
            name: Route name; derived from the handler if omitted.
            input_type: Python type or descriptor overriding the params annotation.
            output_type: Python type or descriptor overriding the return annotation.

        Returns:
            The mounted route path.
        """
        if self._sealed:
            raise RegistrationError("Cannot add handlers after the client has been generated")

        if namespace is None or name is None:
            derived_namespace, derived_name = resolve_identity(handler)
            namespace = derived_namespace if namespace is None else namespace
            name = derived_name if name is None else name

        for part in (namespace, name):
            if not _IDENTIFIER.fullmatch(part):
                raise IdentityResolutionError(f"{part!r} is not a valid route segment")

        key = f"{namespace}.{name}"
        if key in self.handlers:
            raise DuplicateHandlerError(f"A handler is already registered as {key}")

        if input_type is inspect.Parameter.empty or output_type is inspect.Parameter.empty:
            annotated_input, annotated_output = _handler_types(handler)
            if input_type is inspect.Parameter.empty:
                input_type = annotated_input
            if output_type is inspect.Parameter.empty:
                output_type = annotated_output

        if input_type is inspect.Parameter.empty:
            raise RegistrationError(f"Handler {key} has no input type annotation")
        if output_type is inspect.Parameter.empty:
            raise RegistrationError(f"Handler {key} has no return type annotation")

        input_descriptor = self._describe(input_type)
        descriptor = HandlerDescriptor(
            namespace=namespace,
            name=name,
            input_type=input_descriptor,
            output_type=self._describe(output_type),
            input_is_empty=td.is_empty_composite(input_descriptor),
        )
        self.handlers[key] = descriptor

        path = self.route(namespace, name)
        decode_as = input_type
        if td.is_descriptor(input_type):
            # No Python class to build; pass the decoded JSON through
            decode_as = None if descriptor.input_is_empty else object
        self.router.post(path, self._adapter(key, handler, decode_as))
        logger.debug("Mounted %s at %s", key, path)
        return path

    def _describe(self, tp: Any) -> td.TypeDescriptor:
        if td.is_descriptor(tp):
            return tp
        return self._reflector.describe(tp)

    def _adapter(self, key: str, handler: Callable[..., Any], input_type: Any) -> Callable[[Request], Response]:
        on_error = self.config.on_error

        def handle(request: Request) -> Response:
            try:
                params = codec.decode(request.body, input_type)
            except codec.DecodeError as e:
                logger.debug("Rejected request for %s: %s", key, e)
                return Response(400, codec.encode({"message": str(e)}))

            try:
                result = handler(request, params)
            except Exception as e:
                logger.info("Handler %s failed: %s", key, e)
                if on_error is not None:
                    on_error(e)
                return Response(400, codec.encode({"message": str(e)}))

            try:
                body = codec.encode(result)
            except (TypeError, ValueError) as e:
                logger.exception("Cannot encode the result of %s", key)
                return Response(500, codec.encode({"message": str(e)}))

            return Response(200, body)

        return handle

    def seal(self) -> None:
        """Refuse further registrations."""
        self._sealed = True

    def generate_client(self) -> str:
        """Generate the TypeScript client for every registered handler."""
        self.seal()
        return generate(self)

    def write_client(self, path: str | Path) -> None:
        """Generate the TypeScript client and write it to ``path``."""
        generated = self.generate_client()
        Path(path).write_text(generated, encoding="utf-8")


def add_handler(forja: Forja, handler: Callable[..., Any], **kwargs: Any) -> str:
    """Register ``handler`` on ``forja``. See ``Forja.register``."""
    return forja.register(handler, **kwargs)
