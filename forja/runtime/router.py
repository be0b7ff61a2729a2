"""Routers that serve registered handlers.

A router only needs to accept a path plus a callback, call the callback with
the inbound request and write back the response it returns. ``MemoryRouter``
dispatches in-process; ``CherryPyRouter`` mounts the routes on a CherryPy
application tree.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import cherrypy


@dataclass(frozen=True)
class Request:
    """An inbound request as seen by a handler."""

    path: str
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes
    content_type: str = "application/json"


Callback = Callable[[Request], Response]


class Router(Protocol):
    def post(self, path: str, callback: Callback) -> None: ...


class MemoryRouter:
    """Keep routes in a dict and dispatch requests without a network."""

    def __init__(self) -> None:
        self.routes: dict[str, Callback] = {}

    def post(self, path: str, callback: Callback) -> None:
        self.routes[path] = callback

    def dispatch(self, path: str, body: bytes = b"", headers: dict[str, str] | None = None) -> Response:
        callback = self.routes.get(path)
        if callback is None:
            return Response(404, b'{"message": "Not Found"}')
        return callback(Request(path=path, body=body, headers=dict(headers or {})))


class CherryPyRouter:
    """Serve POST routes from a CherryPy application.

    Mount the router itself on the tree:

        router = CherryPyRouter()
        forja = Forja(router)
        ...
        cherrypy.tree.mount(router, "/")
    """

    def __init__(self) -> None:
        self.routes: dict[str, Callback] = {}

    def post(self, path: str, callback: Callback) -> None:
        self.routes[path] = callback

    @cherrypy.expose
    def default(self, *vpath: str, **_params: Any) -> bytes:
        path = "/" + "/".join(s for s in vpath if s)
        callback = self.routes.get(path)
        if callback is None:
            raise cherrypy.HTTPError(404, "No matching handler")

        if cherrypy.request.method.upper() != "POST":
            raise cherrypy.HTTPError(405)

        raw = cherrypy.request.body.read() if cherrypy.request.body else b""
        request = Request(path=path, body=raw or b"", headers=dict(cherrypy.request.headers))
        response = callback(request)

        cherrypy.response.status = response.status
        cherrypy.response.headers["Content-Type"] = response.content_type
        return response.body
