"""Forja TypeScript client generator."""

from .client import generate as generate
from .reflect import Reflector as Reflector
from .reflect import describe as describe
from .typegen import GenerationError as GenerationError
from .typegen import TypeCompiler as TypeCompiler
from .types import *
