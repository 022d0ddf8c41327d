"""
Script Compiler - Turns card effect-script text into callables.

Card designers attach Python source to cards. A script is either:
- A single expression evaluating to a callable, e.g.
      lambda api: api.deal_damage_to_player(api.get_all_players()[1], 3)
- A block of statements defining a function named `effect`, e.g.
      async def effect(api):
          targets = await api.select_targets(target_type="creature")
          for t in targets:
              api.destroy_creature(t.player_id, t.instance_id)

The callable receives a capability object and may return False to mark
the effect as failed. Anything else (including None) is success.

Scripts are cooperative author content, not adversarial code. The
sandbox is by capability: scripts only see the api object, a small
builtins table, and the targeting types. Imports and access to
underscore-prefixed attributes are rejected at compile time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import ast
import builtins
import hashlib

from .targeting import Target, TargetSelector, TargetType


SAFE_BUILTINS = {
    name: getattr(builtins, name)
    for name in (
        "abs", "all", "any", "bool", "dict", "enumerate", "filter", "int",
        "isinstance", "len", "list", "map", "max", "min", "range", "reversed",
        "set", "sorted", "str", "sum", "tuple", "zip",
        "Exception", "ValueError",
    )
}

ENTRY_POINT = "effect"


class ScriptError(Exception):
    """Raised when an effect script cannot be compiled."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)


@dataclass
class CompiledScript:
    """A compiled effect script, ready to be bound to an api object."""
    source: str
    function: Callable[..., Any]
    digest: str

    def __call__(self, *args: Any) -> Any:
        return self.function(*args)


class _ScriptChecker(ast.NodeVisitor):
    """Rejects constructs that step outside the capability sandbox."""

    def __init__(self):
        self.errors: list[str] = []

    def visit_Import(self, node: ast.Import):
        self.errors.append(f"line {node.lineno}: imports are not allowed")

    def visit_ImportFrom(self, node: ast.ImportFrom):
        self.errors.append(f"line {node.lineno}: imports are not allowed")

    def visit_Attribute(self, node: ast.Attribute):
        if node.attr.startswith("_"):
            self.errors.append(
                f"line {node.lineno}: access to '{node.attr}' is not allowed"
            )
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name):
        if node.id.startswith("__"):
            self.errors.append(f"line {node.lineno}: name '{node.id}' is not allowed")

    def visit_Global(self, node: ast.Global):
        self.errors.append(f"line {node.lineno}: global statements are not allowed")


@dataclass
class ScriptCompiler:
    """
    Compiles effect scripts with a small per-source cache.

    The cache holds checked code objects keyed by source digest. Every
    compile() runs the code in a fresh namespace, so module-level names
    a script defines are never shared between casts.
    """
    extra_globals: dict[str, Any] = field(default_factory=dict)
    _cache: dict[str, tuple[Any, bool]] = field(default_factory=dict)

    def compile(self, source: str) -> CompiledScript:
        """
        Compile a script.

        Raises:
            ScriptError: if the source is empty, malformed, uses a
                forbidden construct, or does not produce a callable.
        """
        if not source or not source.strip():
            raise ScriptError("Effect script is empty", source)

        digest = hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]
        cached = self._cache.get(digest)
        if cached is None:
            cached = self._compile_code(source)
            self._cache[digest] = cached
        code, is_expression = cached

        namespace = self._namespace()
        try:
            if is_expression:
                function = eval(code, namespace)
            else:
                exec(code, namespace)
                function = namespace.get(ENTRY_POINT)
        except Exception as e:
            raise ScriptError(f"Effect script failed to load: {e}", source) from e

        if not callable(function):
            raise ScriptError(
                f"Effect script must evaluate to a callable or define '{ENTRY_POINT}'",
                source,
            )

        return CompiledScript(source=source, function=function, digest=digest)

    def _compile_code(self, source: str) -> tuple[Any, bool]:
        try:
            tree = ast.parse(source.strip(), mode="exec")
        except SyntaxError as e:
            raise ScriptError(f"Syntax error in effect script: {e.msg} (line {e.lineno})", source)

        checker = _ScriptChecker()
        checker.visit(tree)
        if checker.errors:
            raise ScriptError("; ".join(checker.errors), source)

        try:
            if len(tree.body) == 1 and isinstance(tree.body[0], ast.Expr):
                expression = ast.Expression(body=tree.body[0].value)
                return compile(expression, "<effect>", "eval"), True
            return compile(tree, "<effect>", "exec"), False
        except (SyntaxError, ValueError) as e:
            raise ScriptError(f"Effect script failed to load: {e}", source) from e

    def check(self, source: str) -> str | None:
        """Return an error message if the source does not compile."""
        try:
            self.compile(source)
        except ScriptError as e:
            return str(e)
        return None

    def _namespace(self) -> dict[str, Any]:
        namespace: dict[str, Any] = {
            "__builtins__": dict(SAFE_BUILTINS),
            "Target": Target,
            "TargetSelector": TargetSelector,
            "TargetType": TargetType,
        }
        namespace.update(self.extra_globals)
        return namespace


_default_compiler = ScriptCompiler()


def compile_script(source: str) -> CompiledScript:
    """Compile a script with the shared module-level compiler."""
    return _default_compiler.compile(source)
