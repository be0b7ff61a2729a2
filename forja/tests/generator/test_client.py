"""Tests for TypeScript client generation."""

import pytest

from forja.generator.client import generate, to_pascal_case
from forja.generator.typegen import GenerationError
from forja.generator.types import (
    NUMBER,
    STRING,
    Anonymous,
    Field,
    Named,
    Optional,
    Sequence,
    SpecialWire,
    WireKind,
)
from forja.runtime.registry import Forja
from forja.runtime.router import MemoryRouter

GREETING = Named("pkg.Greeting", (Field("name", STRING),))
REPLY = Named("pkg.Reply", (Field("text", STRING), Field("seen", Optional(NUMBER))))
QUERY = Named("admin.Query", (Field("since", SpecialWire(WireKind.TIMESTAMP)),))


def _noop(ctx, params):
    return None


def build_registry() -> Forja:
    forja = Forja(MemoryRouter())
    forja.register(_noop, namespace="pkg", name="Foo", input_type=GREETING, output_type=REPLY)
    forja.register(_noop, namespace="pkg", name="Ping", input_type=Anonymous(), output_type=REPLY)
    forja.register(_noop, namespace="admin", name="Stats", input_type=QUERY, output_type=Sequence(NUMBER))
    return forja


def describe_generate():
    def starts_with_the_envelope_types(expect):
        text = generate(build_registry())

        expect("export interface ApiError {\n  message: string\n  statusCode?: number\n}" in text) == True
        expect("export type ApiResponse<T> =" in text) == True
        expect("  | { data: T; error: null }" in text) == True
        expect("  | { data: null; error: ApiError }" in text) == True

    def emits_named_types_in_first_seen_order(expect):
        text = generate(build_registry())

        greeting = text.index("export type pkg_Greeting = {\n  name: string\n}")
        reply = text.index("export type pkg_Reply = {\n  text: string\n  seen?: number\n}")
        query = text.index("export type admin_Query = {\n  since: string\n}")

        expect(greeting < reply < query) == True
        expect(text.count("export type pkg_Reply =")) == 1

    def emits_handler_aliases(expect):
        text = generate(build_registry())

        expect("export type PkgFooInput = pkg_Greeting\n" in text) == True
        expect("export type PkgFooOutput = pkg_Reply\n" in text) == True
        expect(
            "export type PkgFooHandler = (params?: PkgFooInput) => Promise<ApiResponse<PkgFooOutput>>\n" in text
        ) == True
        expect("export type AdminStatsOutput = (number[] | null)\n" in text) == True

    def elides_empty_inputs(expect):
        text = generate(build_registry())

        expect("PkgPingInput" in text) == False
        expect("export type PkgPingHandler = () => Promise<ApiResponse<PkgPingOutput>>\n" in text) == True
        expect('      Ping: () => doFetch("pkg.Ping"),\n' in text) == True

    def groups_the_client_interface_by_namespace(expect):
        text = generate(build_registry())

        interface = text.index("export interface ApiClient {")
        pkg = text.index("  pkg: {\n", interface)
        foo = text.index("    Foo: PkgFooHandler\n", interface)
        ping = text.index("    Ping: PkgPingHandler\n", interface)
        admin = text.index("  admin: {\n", interface)
        stats = text.index("    Stats: AdminStatsHandler\n", interface)

        expect(pkg < foo < ping < admin < stats) == True

    def builds_client_methods_keyed_by_route(expect):
        text = generate(build_registry())

        expect("export function createClient(" in text) == True
        expect('      Foo: (params) => doFetch("pkg.Foo", params),\n' in text) == True
        expect('      Stats: (params) => doFetch("admin.Stats", params),\n' in text) == True
        expect("await fetch(`${baseUrl}/${path}`, requestConfig)" in text) == True
        expect("await config.beforeRequest(requestConfig)" in text) == True
        expect("body: JSON.stringify(params ?? {})," in text) == True

    def renders_sections_in_order(expect):
        text = generate(build_registry())

        sections = [
            text.index("export interface ApiError"),
            text.index("export type pkg_Greeting"),
            text.index("export type PkgFooInput"),
            text.index("export interface ApiClient"),
            text.index("export function createClient"),
        ]
        expect(sections) == sorted(sections)

    def is_deterministic(expect):
        first = generate(build_registry())
        second = generate(build_registry())

        expect(first) == second

    def renders_an_empty_registry(expect):
        text = generate(Forja(MemoryRouter()))

        expect("export interface ApiClient {\n}" in text) == True

    def refuses_colliding_handler_aliases():
        forja = Forja(MemoryRouter())
        forja.register(_noop, namespace="pkg", name="Greeter_hello", input_type=GREETING, output_type=REPLY)
        forja.register(_noop, namespace="pkg", name="greeter_hello", input_type=GREETING, output_type=REPLY)

        with pytest.raises(GenerationError, match="PkgGreeter_helloInput"):
            generate(forja)


def describe_to_pascal_case():
    def upper_cases_each_part(expect):
        expect(to_pascal_case("pkg", "getUser", "Handler")) == "PkgGetUserHandler"
        expect(to_pascal_case("pkg", "Greeter_hello", "Input")) == "PkgGreeter_helloInput"
