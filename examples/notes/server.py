"""Notes API served by CherryPy, with a generated TypeScript client.

Run from the repository root:

    python examples/notes/server.py --client web/apiclient.ts
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone

import cherrypy
from dataclasses_json import DataClassJsonMixin

from forja.runtime.option import Option, option_field
from forja.runtime.registry import Config, Forja, add_handler
from forja.runtime.router import CherryPyRouter, Request

logger = logging.getLogger("notes")


@dataclass
class Note(DataClassJsonMixin):
    id: int
    title: str
    body: str
    created_at: datetime
    replies: list[Note] = field(default_factory=list)


@dataclass
class NewNote(DataClassJsonMixin):
    title: str
    body: str = ""
    parent_id: Option[int] = option_field()


@dataclass
class NoteList(DataClassJsonMixin):
    notes: list[Note]


class Notes:
    def __init__(self) -> None:
        self._notes: dict[int, Note] = {}

    def list(self, ctx: Request, params: None) -> NoteList:
        return NoteList(notes=list(self._notes.values()))

    def create(self, ctx: Request, params: NewNote) -> Note:
        if not params.title.strip():
            raise ValueError("title is required")

        note = Note(
            id=len(self._notes) + 1,
            title=params.title,
            body=params.body,
            created_at=datetime.now(timezone.utc),
        )
        if params.parent_id.valid():
            parent = self._notes.get(params.parent_id.value)
            if parent is None:
                raise LookupError(f"note {params.parent_id.value} not found")
            parent.replies.append(note)
        else:
            self._notes[note.id] = note
        return note


def create_app(router: CherryPyRouter | None = None) -> Forja:
    app = Forja(router or CherryPyRouter(), Config(path="/api", on_error=lambda e: logger.warning("%s", e)))
    notes = Notes()
    add_handler(app, notes.list, namespace="notes", name="list")
    add_handler(app, notes.create, namespace="notes", name="create")
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--client", help="Write the TypeScript client here before serving")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if os.getenv("APP_ENV") == "dev" else logging.INFO)

    router = CherryPyRouter()
    app = create_app(router)
    if args.client:
        app.write_client(args.client)

    cherrypy.config.update({
        "server.socket_host": "0.0.0.0",
        "server.socket_port": int(os.getenv("APP_PORT", "8080")),
        "tools.trailing_slash.on": False,
    })
    cherrypy.tree.mount(router, "/")
    cherrypy.engine.start()
    cherrypy.engine.block()


if __name__ == "__main__":
    main()
