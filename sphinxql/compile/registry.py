"""Compiler registry.

``CompilerFactory`` is the central registry for
:class:`~sphinxql.compile.base.SQLCompiler` implementations.  Register a new
compiler once; :class:`~sphinxql.connection.Connection` looks it up by name.

Usage::

    from sphinxql.compile.registry import CompilerFactory

    @CompilerFactory.register("sphinx3")
    class Sphinx3Compiler(SQLCompiler):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from sphinxql.compile.base import SQLCompiler
from sphinxql.errors import CompilationError


class CompilerFactory:
    """Registry mapping dialect target names to :class:`SQLCompiler` classes.

    Example::

        compiler = CompilerFactory.create("manticore")
    """

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Decorator that registers a compiler class under ``name``.

        Args:
            name: The dialect target name (e.g. ``"sphinx"``).

        Returns:
            A decorator that registers and returns the compiler class.
        """

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls._compilers[name] = compiler_cls
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, compiler_cls: type[SQLCompiler]) -> None:
        """Register a compiler class without using the decorator form."""
        cls._compilers[name] = compiler_cls

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Instantiate the compiler registered for ``name``.

        Raises:
            CompilationError: If no compiler is registered for ``name``.
        """
        compiler_cls = cls._compilers.get(name)
        if compiler_cls is None:
            registered = sorted(cls._compilers)
            raise CompilationError(
                f"Unsupported dialect target: '{name}'. Registered targets: {registered}."
            )
        return compiler_cls()

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered dialect target names."""
        return sorted(cls._compilers)
