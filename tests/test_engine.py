# tests/test_engine.py
"""
Tests for Engine.evaluate over hand-built statement trees.
"""

import logging

import pytest

from cmem.engine import Engine, EngineConfig
from cmem.errors import (
    CmemErrorCodes,
    ErrorKind,
    InternalError,
    RuntimeError as CmemRuntimeError,
    TypeError as CmemTypeError,
)
from cmem.values import VOID, RuntimeValue, TypeTag
from tests.conftest import (
    assign,
    c,
    call,
    cast,
    d,
    decl,
    deref,
    i,
    ident,
    lit,
    op,
    paren,
    rv,
    s,
    typ,
)


def ptr(tag, address):
    return RuntimeValue(TypeTag(tag), i(address))


class TestConfig:

    def test_defaults(self, engine):
        assert engine.display_base == 16
        assert len(engine.heap_bytes()) == 256

    def test_validate(self):
        assert EngineConfig().validate() == []
        assert len(EngineConfig(memory_size=0, display_base=2).validate()) == 2

    def test_invalid_config_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cmem.engine"):
            engine = Engine(EngineConfig(memory_size=-1, display_base=8))
        assert len(engine.heap_bytes()) == 256
        assert engine.display_base == 16
        assert "memory_size must be positive" in caplog.text

    def test_fallback_leaves_caller_config_untouched(self):
        config = EngineConfig(memory_size=0, display_base=2)
        engine = Engine(config)
        assert config.memory_size == 0
        assert config.display_base == 2
        assert engine.config == EngineConfig()

    def test_engines_do_not_share_state(self):
        a, b = Engine(), Engine()
        a.evaluate(decl("int", "x"))
        assert "x" in a.scope
        assert "x" not in b.scope


class TestLiteralsAndOperators:

    def test_literal(self, engine):
        assert engine.evaluate(lit(d(2.5))) == rv(d(2.5))

    def test_operator(self, engine):
        assert engine.evaluate(op("*", lit(i(6)), lit(i(7)))) == rv(i(42))

    def test_nested_and_parenthesised(self, engine):
        tree = op("*", paren(op("+", lit(i(1)), lit(i(2)))), lit(i(3)))
        assert engine.evaluate(tree) == rv(i(9))

    def test_int_plus_string(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(op("+", lit(i(1)), lit(s("a"))))

    def test_void_operand(self, engine):
        with pytest.raises(CmemRuntimeError) as exc_info:
            engine.evaluate(op("+", decl("int", "x"), lit(i(1))))
        assert exc_info.value.code == CmemErrorCodes.VOID_VALUE

    def test_native_function_operand(self, engine):
        with pytest.raises(CmemRuntimeError) as exc_info:
            engine.evaluate(op("+", ident("malloc"), lit(i(1))))
        assert exc_info.value.code == CmemErrorCodes.INVALID_OPERANDS

    def test_unknown_node(self, engine):
        with pytest.raises(InternalError):
            engine.evaluate(typ("int"))


class TestCast:

    def test_int_to_char(self, engine):
        assert engine.evaluate(cast("char", lit(i(65)))) == rv(c("A"))

    def test_int_to_pointer(self, engine):
        assert engine.evaluate(cast("int*", lit(i(8)))) == ptr("int*", 8)

    def test_void_cannot_be_cast(self, engine):
        with pytest.raises(CmemRuntimeError) as exc_info:
            engine.evaluate(cast("int", call("reset")))
        assert exc_info.value.message == 'Type "void" cannot be cast to int.'

    def test_string_to_int(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(cast("int", lit(s("5"))))


class TestDeclarations:

    @pytest.mark.parametrize("type_name, expected", [
        ("int", rv(i(0))),
        ("double", rv(d(0.0))),
        ("char", rv(c(0))),
        ("string", rv(s(""))),
        ("int*", RuntimeValue(TypeTag.INT_PTR, i(0))),
    ])
    def test_zero_values(self, engine, type_name, expected):
        assert engine.evaluate(decl(type_name, "v")) is VOID
        assert engine.scope["v"] == expected

    def test_void_declaration(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(decl("void", "v"))
        assert exc_info.value.kind is ErrorKind.TYPE
        assert "v" not in engine.scope

    def test_redeclaration_overwrites(self, engine):
        engine.evaluate(assign(decl("int", "x"), lit(i(5))))
        engine.evaluate(decl("char", "x"))
        assert engine.scope["x"] == rv(c(0))

    def test_shadowing_builtin(self, engine):
        engine.evaluate(decl("int", "malloc"))
        with pytest.raises(CmemTypeError):
            engine.evaluate(call("malloc", lit(i(4))))


class TestAssignment:

    def test_declare_assign_read(self, engine):
        engine.evaluate(decl("int", "x"))
        assert engine.evaluate(assign(ident("x"), lit(i(5)))) == rv(i(5))
        assert engine.evaluate(ident("x")) == rv(i(5))

    def test_coerces_to_declared_type(self, engine):
        assert engine.evaluate(assign(decl("int", "x"), lit(d(3.9)))) == rv(i(3))
        assert engine.evaluate(assign(decl("char", "ch"), lit(i(321)))) == rv(c(65))

    def test_undeclared_target(self, engine):
        with pytest.raises(CmemRuntimeError) as exc_info:
            engine.evaluate(assign(ident("y"), lit(i(1))))
        assert exc_info.value.message == "Identifier y is not defined."

    def test_failed_coercion_keeps_declaration(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(assign(decl("int", "x"), lit(s("oops"))))
        assert engine.scope["x"] == rv(i(0))

    def test_assign_void(self, engine):
        engine.evaluate(decl("int", "x"))
        with pytest.raises(CmemRuntimeError) as exc_info:
            engine.evaluate(assign(ident("x"), call("reset")))
        assert exc_info.value.code == CmemErrorCodes.VOID_VALUE

    def test_pointer_from_malloc(self, engine):
        result = engine.evaluate(assign(decl("int*", "p"), call("malloc", lit(i(4)))))
        assert result == ptr("int*", 0)


class TestPointers:

    def _setup_pointer(self, engine, type_name="int*"):
        engine.evaluate(assign(decl(type_name, "p"), call("malloc", lit(i(4)))))

    def test_store_through_pointer(self, engine):
        self._setup_pointer(engine)
        assert engine.evaluate(assign(deref(ident("p")), lit(i(300)))) == rv(i(300))
        assert engine.heap_bytes()[0] == 44
        assert engine.evaluate(deref(ident("p"))) == rv(i(44))

    def test_negative_store(self, engine):
        self._setup_pointer(engine)
        engine.evaluate(assign(deref(ident("p")), lit(i(-1))))
        assert engine.heap_bytes()[0] == 255

    def test_char_pointer_reads_char(self, engine):
        self._setup_pointer(engine, "char*")
        engine.evaluate(assign(deref(ident("p")), lit(c("z"))))
        assert engine.evaluate(deref(ident("p"))) == rv(c("z"))

    def test_pointer_arithmetic_via_int(self, engine):
        self._setup_pointer(engine)
        target = deref(cast("int*", op("+", cast("int", ident("p")), lit(i(2)))))
        engine.evaluate(assign(target, lit(i(7))))
        assert engine.heap_bytes()[2] == 7

    def test_deref_literal_pointer(self, engine):
        engine.evaluate(assign(deref(cast("char*", lit(i(10)))), lit(i(65))))
        assert engine.evaluate(deref(cast("char*", lit(i(10))))) == rv(c("A"))

    @pytest.mark.parametrize("address", [-1, 16, 1000])
    def test_out_of_range_read(self, small_engine, address):
        with pytest.raises(CmemRuntimeError) as exc_info:
            small_engine.evaluate(deref(cast("int*", lit(i(address)))))
        assert exc_info.value.code == CmemErrorCodes.ADDRESS_OUT_OF_RANGE

    def test_out_of_range_write_skips_rhs(self, small_engine):
        small_engine.evaluate(decl("int", "x"))
        target = deref(cast("int*", lit(i(99))))
        with pytest.raises(CmemRuntimeError):
            small_engine.evaluate(assign(target, assign(ident("x"), lit(i(5)))))
        assert small_engine.scope["x"] == rv(i(0))

    def test_deref_non_pointer(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(deref(lit(i(0))))
        assert exc_info.value.code == CmemErrorCodes.NOT_A_POINTER

    def test_deref_native_function(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(deref(ident("malloc")))
        assert exc_info.value.message == "Cannot dereference native function."

    def test_deref_void(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(deref(call("reset")))

    def test_store_string_through_pointer(self, engine):
        self._setup_pointer(engine)
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(assign(deref(ident("p")), lit(s("ab"))))


class TestFunctionCalls:

    def test_malloc_sequence(self, engine):
        assert engine.evaluate(call("malloc", lit(i(4)))) == rv(i(0))
        assert engine.evaluate(call("malloc", lit(i(4)))) == rv(i(4))

    def test_malloc_sizeof(self, engine):
        engine.evaluate(call("malloc", call("sizeof", typ("int"))))
        assert engine.evaluate(call("malloc", lit(i(1)))) == rv(i(4))

    def test_sizeof(self, engine):
        assert engine.evaluate(call("sizeof", typ("int"))) == rv(i(4))
        assert engine.evaluate(call("sizeof", typ("char"))) == rv(i(1))

    def test_sizeof_void(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(call("sizeof", typ("void")))

    def test_sizeof_value(self, engine):
        with pytest.raises(CmemTypeError):
            engine.evaluate(call("sizeof", lit(i(4))))

    def test_malloc_with_type(self, engine):
        with pytest.raises(CmemTypeError):
            engine.evaluate(call("malloc", typ("int")))

    def test_set_display_base(self, engine):
        assert engine.evaluate(call("setDisplayBase", lit(i(10)))) is VOID
        assert engine.display_base == 10
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(call("setDisplayBase", lit(i(2))))
        assert engine.display_base == 10

    def test_arity_mismatch(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(call("malloc"))
        assert exc_info.value.message == (
            "Expected 1 argument for function malloc, but got 0."
        )
        assert exc_info.value.code == CmemErrorCodes.ARITY_MISMATCH

    def test_void_argument_counts_as_missing(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(call("malloc", call("reset")))
        assert exc_info.value.code == CmemErrorCodes.ARITY_MISMATCH

    def test_argument_types_must_match_exactly(self, engine):
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(call("malloc", lit(c("a"))))
        assert exc_info.value.message == (
            "malloc: Expected argument 0 to be of type int, but got char."
        )

    def test_not_a_function(self, engine):
        engine.evaluate(decl("int", "x"))
        with pytest.raises(CmemTypeError) as exc_info:
            engine.evaluate(call("x"))
        assert exc_info.value.code == CmemErrorCodes.NOT_CALLABLE

    def test_undefined_function(self, engine):
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(call("free", lit(i(0))))

    def test_builtin_identifier_value(self, engine):
        assert engine.evaluate(ident("sizeof")).is_native_function

    def test_reset(self, engine):
        engine.evaluate(assign(deref(cast("int*", call("malloc", lit(i(1))))), lit(i(9))))
        engine.evaluate(call("reset"))
        assert engine.heap_bytes() == bytes(256)
        assert engine.evaluate(call("malloc", lit(i(1)))) == rv(i(0))

    def test_clear_hook(self):
        cleared = []
        engine = Engine(on_clear=lambda: cleared.append(True))
        assert engine.evaluate(call("clear")) is VOID
        assert cleared == [True]


class TestPartialSideEffects:

    def test_malloc_before_failure_is_kept(self, engine):
        tree = op("+", call("malloc", lit(i(4))), lit(s("x")))
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(tree)
        assert engine.evaluate(call("malloc", lit(i(1)))) == rv(i(4))

    def test_nested_assignment_before_failure_is_kept(self, engine):
        engine.evaluate(decl("int", "x"))
        tree = op("/", assign(ident("x"), lit(i(3))), lit(i(0)))
        with pytest.raises(CmemRuntimeError):
            engine.evaluate(tree)
        assert engine.scope["x"] == rv(i(3))
