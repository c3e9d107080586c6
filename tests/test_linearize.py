import ast, textwrap
from stepwise.hoist import hoist
from stepwise.linearize import ConditionalJump, Execute, build_program, linearize
from stepwise.syntax import Syntax


def statements(src):
    return ast.parse(textwrap.dedent(src)).body


def shape(instructions):
    out = []
    for ins in instructions:
        if isinstance(ins, ConditionalJump):
            out.append(("test", ins.on_false, ins.on_true))
        else:
            out.append(("exec", ins.jump))
    return out


def test_plain_statements_become_one_step_each():
    ins = linearize(statements("""
        a = 1
        b = a + 1
        print(b)
    """))
    assert shape(ins) == [("exec", 0)] * 3
    assert [i.lineno for i in ins] == [2, 3, 4]


def test_if_else_branches_converge():
    ins = linearize(statements("""
        if c:
            a = 1
            b = 2
        else:
            a = 3
        d = 4
    """))
    assert shape(ins) == [("test", 2, 0), ("exec", 0), ("exec", 1), ("exec", 0), ("exec", 0)]
    # falsy: 0 -> 3, truthy: 0 -> 1 -> 2 -> 4
    assert 0 + 1 + ins[0].on_false == 3
    assert 2 + 1 + ins[2].jump == 4


def test_if_without_else():
    ins = linearize(statements("""
        if c:
            a = 1
        d = 2
    """))
    assert shape(ins) == [("test", 1, 0), ("exec", 0), ("exec", 0)]


def test_empty_consequent_jumps_alternate_when_truthy():
    node = ast.If(test=ast.Name(id="c", ctx=ast.Load()), body=[],
                  orelse=statements("a = 1\nb = 2"), lineno=1)
    ins = linearize([node])
    assert shape(ins) == [("test", 0, 2), ("exec", 0), ("exec", 0)]


def test_elif_is_a_single_alternate_step():
    ins = linearize(statements("""
        if a:
            x = 1
        elif b:
            x = 2
        else:
            x = 3
    """))
    assert shape(ins) == [("test", 1, 0), ("exec", 1), ("exec", 0)]
    assert isinstance(ins[2].statement, ast.If)


def test_loops_are_not_decomposed():
    ins = linearize(statements("""
        for i in range(3):
            total = i
        while False:
            pass
    """))
    assert shape(ins) == [("exec", 0), ("exec", 0)]


def test_calls_are_recorded():
    ins = linearize(statements("""
        process()
        x = g(1) + h(2)
        print(f(x))
        if check(x):
            pass
    """))
    assert ins[0].calls == ("process",)
    assert ins[1].calls == ("g", "h")
    assert ins[2].calls == ("print",)
    assert ins[3].calls == ("check",)


def test_returns_flag():
    ins = linearize(statements("x = 1\nreturn x"))
    assert [i.returns for i in ins] == [False, True]


def test_build_program_skips_preamble():
    syntax = Syntax().load(ast.parse(textwrap.dedent("""
        "use strict"
        def helper():
            pass
        a = 1
        if a:
            a = 2
    """)))
    program = build_program(syntax, hoist(syntax))
    assert program.offset == 3
    assert len(program) == 3
    assert isinstance(program[0], Execute)
    assert isinstance(program[1], ConditionalJump)
