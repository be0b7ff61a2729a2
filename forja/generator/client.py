"""TypeScript client generator for registered handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jinja2 import Environment, PackageLoader

from .typegen import GenerationError, TypeCompiler

if TYPE_CHECKING:
    from forja.runtime.registry import HandlerDescriptor

logger = logging.getLogger(__name__)

env = Environment(
    loader=PackageLoader("forja.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("client.ts.j2")


def to_pascal_case(*names: str) -> str:
    """Join names, upper-casing the first letter of each."""
    return "".join(name[:1].upper() + name[1:] for name in names)


@dataclass(frozen=True)
class _HandlerView:
    """What the template needs to know about one handler."""

    namespace: str
    name: str
    input_type: str
    output_type: str
    input_is_empty: bool

    @property
    def key(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def input_alias(self) -> str:
        return to_pascal_case(self.namespace, self.name, "Input")

    @property
    def output_alias(self) -> str:
        return to_pascal_case(self.namespace, self.name, "Output")

    @property
    def handler_alias(self) -> str:
        return to_pascal_case(self.namespace, self.name, "Handler")


def generate(handlers: Iterable[HandlerDescriptor]) -> str:
    """Render the TypeScript client for handlers, in iteration order."""
    compiler = TypeCompiler()

    views = []
    for handler in handlers:
        views.append(
            _HandlerView(
                namespace=handler.namespace,
                name=handler.name,
                input_type=compiler.compile(handler.input_type),
                output_type=compiler.compile(handler.output_type),
                input_is_empty=handler.input_is_empty,
            )
        )

    aliases: dict[str, str] = {}
    for view in views:
        for alias in (view.input_alias, view.output_alias, view.handler_alias):
            owner = aliases.setdefault(alias, view.key)
            if owner != view.key:
                raise GenerationError(f"Handlers {owner} and {view.key} both produce the type alias {alias}")

    namespaces: dict[str, list[_HandlerView]] = {}
    for view in views:
        namespaces.setdefault(view.namespace, []).append(view)

    logger.debug("Generating client for %d handlers, %d named types", len(views), len(compiler))

    return template.render(
        definitions=compiler.definitions,
        handlers=views,
        namespaces=namespaces,
    )
