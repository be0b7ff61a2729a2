"""Forja - typed request handlers with a generated TypeScript client."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("forja")
except PackageNotFoundError:
    __version__ = "(local)"
