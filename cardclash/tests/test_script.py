"""
Tests for the effect script compiler.
"""

import asyncio

import pytest

from ..engine_core.script import ScriptCompiler, ScriptError, compile_script


class Recorder:
    """Stand-in capability object."""

    def __init__(self):
        self.calls = []

    def hit(self, amount):
        self.calls.append(amount)


class TestScriptShapes:
    """Expression scripts and `effect` blocks."""

    def test_lambda_expression(self):
        script = compile_script("lambda api: api.hit(3)")
        api = Recorder()
        script(api)
        assert api.calls == [3]

    def test_effect_block(self):
        script = compile_script("""
def effect(api):
    for amount in range(3):
        api.hit(amount)
""")
        api = Recorder()
        script(api)
        assert api.calls == [0, 1, 2]

    def test_async_effect_block(self):
        script = compile_script("""
async def effect(api):
    api.hit(len([1, 2]))
    return False
""")
        api = Recorder()
        assert asyncio.run(script(api)) is False
        assert api.calls == [2]

    def test_helper_functions_allowed(self):
        script = compile_script("""
def double(x):
    return x * 2

def effect(api):
    api.hit(double(4))
""")
        api = Recorder()
        script(api)
        assert api.calls == [8]


class TestScriptSandbox:
    """Constructs the compiler rejects."""

    @pytest.mark.parametrize("source", [
        "import os",
        "from os import path",
        "lambda api: api.__class__",
        "lambda api: api._snapshot",
        "lambda api: __import__('os')",
    ])
    def test_forbidden_constructs(self, source):
        with pytest.raises(ScriptError):
            ScriptCompiler().compile(source)

    def test_global_statement_rejected(self):
        with pytest.raises(ScriptError, match="global"):
            ScriptCompiler().compile("def effect(api):\n    global x\n    x = 1")

    def test_builtins_are_restricted(self):
        script = compile_script("lambda api: open('secrets.txt')")
        with pytest.raises(NameError):
            script(Recorder())


class TestCompilerErrors:
    """Malformed scripts."""

    def test_empty_script(self):
        with pytest.raises(ScriptError, match="empty"):
            ScriptCompiler().compile("   ")

    def test_syntax_error(self):
        with pytest.raises(ScriptError, match="Syntax error"):
            ScriptCompiler().compile("lambda api: (")

    def test_block_without_effect(self):
        with pytest.raises(ScriptError, match="effect"):
            ScriptCompiler().compile("x = 1\ny = 2")

    def test_expression_not_callable(self):
        with pytest.raises(ScriptError):
            ScriptCompiler().compile("42")

    def test_check_returns_message(self):
        compiler = ScriptCompiler()
        assert compiler.check("lambda api: None") is None
        assert "imports" in compiler.check("import sys")


class TestCompilerCache:

    def test_same_source_is_cached(self):
        compiler = ScriptCompiler()
        source = "lambda api: api.hit(1)"
        first = compiler.compile(source)
        second = compiler.compile(source)
        assert first.digest == second.digest
        assert len(compiler._cache) == 1

    def test_module_state_not_shared_between_compiles(self):
        """Top-level names a block script defines start fresh every time."""
        compiler = ScriptCompiler()
        source = "hits = []\ndef effect(api):\n    hits.append(1)\n    api.hit(len(hits))"

        for _ in range(3):
            api = Recorder()
            compiler.compile(source)(api)
            assert api.calls == [1]

    def test_default_compiler_does_not_leak_state(self):
        source = "seen = {}\ndef effect(api):\n    seen['n'] = seen.get('n', 0) + 1\n    api.hit(seen['n'])"
        first, second = Recorder(), Recorder()

        compile_script(source)(first)
        compile_script(source)(second)

        assert first.calls == second.calls == [1]

    def test_top_level_return_rejected(self):
        with pytest.raises(ScriptError):
            ScriptCompiler().compile("return 1")

    def test_extra_globals_visible(self):
        compiler = ScriptCompiler(extra_globals={"BONUS": 5})
        api = Recorder()
        compiler.compile("lambda api: api.hit(BONUS)")(api)
        assert api.calls == [5]
