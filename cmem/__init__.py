"""cmem — a console evaluator for a small C-like language.

Statements are evaluated one at a time against a typed global scope and a
simulated, byte-addressable heap.

Submodules
----------
errors
    Classified exceptions (``Syntax``/``Type``/``Runtime``/``Internal``
    error) and ``CMEM-NNNN`` error codes.

values
    ``Literal``, ``TypeTag``, ``RuntimeValue``, ``VOID`` and native
    function signatures.

coerce, operators
    The coercion matrix and ``+ - * /`` promotion rules.

memory
    ``Heap``, first-fit ``Allocator`` and the pointer load/store rules.

builtins
    ``malloc``, ``clear``, ``setDisplayBase``, ``sizeof``, ``reset``.

engine
    ``Engine.evaluate`` over the statement AST in ``ast_nodes``.

grammar, console, main
    Parsimonious statement grammar, the console session, and the CLI.

Usage
-----
Command-line::

    python -m cmem repl
    python -m cmem run session.cm --dump-heap

Programmatic::

    from cmem.console import Console

    console = Console()
    console.execute("int* p = malloc(4)")
    console.execute("*p = 300")

"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "errors",
    "values",
    "engine",
    "console",
]
