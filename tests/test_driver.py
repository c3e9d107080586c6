import ast
import pytest
from stepwise.driver import Stepper
from stepwise.errors import SourceError, StepBoundsError, StepperStateError


def stepped(src, *args, globals=None, **kwargs):
    stepper = Stepper()
    stepper.parse(src, globals=globals)
    stepper.call(None, *args, **kwargs)
    return stepper


# ---------- State errors ----------
def test_call_before_parse():
    with pytest.raises(StepperStateError):
        Stepper().call(None)


@pytest.mark.parametrize("op", ["step", "back", "forward", "step_in", "run", "locals"])
def test_stepping_before_call(op):
    stepper = Stepper()
    stepper.parse("def f():\n    a = 1\n")
    with pytest.raises(StepperStateError):
        getattr(stepper, op)()


def test_evaluate_before_call():
    stepper = Stepper()
    stepper.parse("def f():\n    a = 1\n")
    with pytest.raises(StepperStateError):
        stepper.evaluate("1")


# ---------- Bounds ----------
def test_step_past_the_end_raises():
    stepper = stepped("def f():\n    a = 1\n")
    stepper.step()
    assert stepper.finished
    with pytest.raises(StepBoundsError):
        stepper.step()
    assert stepper.position == 1


def test_back_at_start_raises():
    stepper = stepped("def f():\n    a = 1\n")
    with pytest.raises(StepBoundsError):
        stepper.back()
    assert stepper.position == 0


def test_forward_past_end_raises():
    stepper = stepped("def f():\n    a = 1\n    b = 2\n")
    stepper.forward(2)
    assert stepper.finished
    with pytest.raises(StepBoundsError):
        stepper.forward()


def test_bounds_error_is_an_index_error():
    stepper = stepped("def f():\n    pass\n")
    with pytest.raises(IndexError):
        stepper.back()


def test_empty_function_has_no_steps():
    stepper = stepped("def f():\n    'only a docstring'\n")
    assert len(stepper) == 0
    assert stepper.finished
    assert stepper.run() is None


# ---------- Returns ----------
@pytest.mark.parametrize("x, expected", [(2, "big"), (0, "small")])
def test_return_finishes_the_session(x, expected):
    src = """
def f(x):
    if x > 1:
        return "big"
    return "small"
"""
    stepper = stepped(src, x)
    assert stepper.run() == expected
    assert stepper.returned == expected
    assert stepper.position == len(stepper)


# ---------- Environment ----------
def test_defaults_and_keyword_only_parameters():
    stepper = stepped("def f(a, b=2, *rest, c=3, **kw):\n    a = a + b + c\n", 1, 9, d=4)
    assert stepper.evaluate("(a, b, rest, c, kw)") == (1, 9, (), 3, {"d": 4})
    stepper.step()
    assert stepper.evaluate("a") == 13


def test_globals_are_written_through():
    ns = {"counter": 0}
    stepper = stepped("def f():\n    global counter\n    counter = 5\n    counter += 1\n", globals=ns)
    stepper.step()
    assert ns["counter"] == 5
    stepper.step()
    assert ns["counter"] == 6
    assert stepper.evaluate("counter") == 6
    assert "counter" not in stepper.locals()


def test_deleted_locals_are_unbound():
    stepper = stepped("def f():\n    a = 1\n    del a\n")
    stepper.step()
    assert stepper.locals() == {"a": 1}
    stepper.step()
    assert "a" not in stepper.locals()
    with pytest.raises(NameError):
        stepper.evaluate("a")


def test_annotations_inside_branches():
    stepper = stepped("def f():\n    if True:\n        x: int = 5\n")
    stepper.run()
    assert stepper.evaluate("x") == 5


def test_evaluate_sees_locals_inside_comprehensions():
    stepper = stepped("def f(n):\n    base = 10\n", 3)
    stepper.step()
    assert stepper.evaluate("[base + i for i in range(n)]") == [10, 11, 12]


def test_evaluate_does_not_rebind_locals():
    stepper = stepped("def f():\n    a = 1\n")
    stepper.step()
    assert stepper.evaluate("(a := 99)") == 99
    assert stepper.evaluate("a") == 1


@pytest.mark.parametrize("expression, error", [("missing_name", NameError), ("1 / 0", ZeroDivisionError), ("a +", SyntaxError)])
def test_evaluate_propagates_errors(expression, error):
    stepper = stepped("def f():\n    a = 1\n")
    with pytest.raises(error):
        stepper.evaluate(expression)


def test_errors_from_steps_propagate_and_keep_position():
    stepper = stepped("def f():\n    a = 1 / 0\n")
    with pytest.raises(ZeroDivisionError):
        stepper.step()
    assert stepper.position == 0


def test_tracebacks_point_at_rendered_source():
    import traceback
    stepper = stepped("def broken():\n    a = {}['missing']\n")
    try:
        stepper.step()
    except KeyError as e:
        frames = traceback.extract_tb(e.__traceback__)
    assert frames[-1].filename == "<stepwise:broken>"
    assert "missing" in frames[-1].line


# ---------- Parse ----------
def test_parse_returns_the_transformed_source():
    text = Stepper().parse("def f(data):\n    a = 1\n    data['a'] = a\n")
    assert text.startswith("def f(data):")
    assert "a = None" in text
    assert "nonlocal a" in text
    assert "def __scope__():" in text


def test_parse_picks_function_by_name():
    stepper = Stepper()
    stepper.parse("def one():\n    x = 1\n\ndef two():\n    y = 2\n", name="two")
    assert stepper.source.name == "two"


def test_parse_resets_a_previous_session():
    stepper = stepped("def f():\n    a = 1\n")
    stepper.step()
    stepper.parse("def g():\n    b = 1\n")
    assert stepper.position == 0
    assert stepper.artifact is None


@pytest.mark.parametrize("src", ["x = 1\n", "async def f():\n    pass\n"])
def test_parse_rejects_non_functions(src):
    with pytest.raises(SourceError):
        Stepper().parse(src)


def test_parse_unknown_name():
    with pytest.raises(SourceError):
        Stepper().parse("def f():\n    pass\n", name="g")


def test_listing_marks_the_position():
    stepper = stepped("def f():\n    a = 1\n    if a:\n        a = 2\n")
    lines = stepper.listing().splitlines()
    assert lines[0].startswith("func f()")
    assert lines[1].startswith(">  0  exec")
    assert "false +1" in lines[2]
    stepper.run()
    assert stepper.listing().splitlines()[-1].startswith(">")


def test_return_inside_a_loop_finishes_the_session():
    src = """
def f(items):
    found = None
    for item in items:
        if item > 2:
            return item
    found = "none"
"""
    stepper = stepped(src, [1, 3])
    stepper.step()
    assert stepper.step() == 3
    assert stepper.returned == 3
    assert stepper.finished
    assert stepper.evaluate("found") is None


def test_statement_steps_yield_none():
    stepper = stepped("def f():\n    a = 1\n")
    assert stepper.step() is None


def test_stepping_leaves_the_program_tree_untouched():
    stepper = stepped("def f():\n    for i in range(2):\n        total: int = i\n    return total\n")
    loop = stepper.program[0].statement
    assert "total: int = i" in ast.unparse(loop)
    assert stepper.run() == 1
    assert "total: int = i" in ast.unparse(loop)


# ---------- Context ----------
def test_context_binds_the_first_parameter():
    stepper = Stepper()
    stepper.parse("def f(self, n):\n    total = self['base'] + n\n")
    stepper.call({"base": 10}, 5)
    stepper.step()
    assert stepper.evaluate("total") == 15


def test_context_needs_a_positional_parameter():
    stepper = Stepper()
    stepper.parse("def f(*, n=1):\n    a = n\n")
    with pytest.raises(StepperStateError):
        stepper.call(object())
    assert stepper.artifact is None
