"""Turns a linearized step program back into an executable function.

The processed region of the body becomes one ``def __step_<i>__()`` per
instruction, followed by ``__scope__`` (never called; its closure cells are
the live locals) and a terminal ``return (__scope__, (steps...))``.
A statement step ends with ``return __scope__``, so any other value it
produces came from a ``return`` in the stepped statement.
"""
import ast, builtins, copy, linecache, logging, textwrap, types
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from .bindings import bound_names
from .linearize import ConditionalJump, Instruction, StepProgram
from .source import FunctionSource
from .syntax import Syntax

LOG = logging.getLogger(__name__)

SCOPE_NAME = "__scope__"

def step_name(index: int) -> str:
    return f"__step_{index}__"

class StripAnnotations(ast.NodeTransformer):
    """``x: T = v`` -> ``x = v`` and ``x: T`` -> ``pass`` for simple names,
    since annotated names cannot be declared nonlocal."""

    def visit_AnnAssign(self, node: ast.AnnAssign):
        if not isinstance(node.target, ast.Name):
            return node
        if node.value is None:
            return ast.copy_location(ast.Pass(), node)
        return ast.copy_location(ast.Assign(targets=[node.target], value=node.value), node)

    def _skip(self, node):
        return node

    visit_FunctionDef = visit_AsyncFunctionDef = visit_ClassDef = visit_Lambda = _skip

def _empty_def(name: str) -> ast.FunctionDef:
    return ast.parse(f"def {name}():\n    pass").body[0]

def step_function(index: int, instruction: Instruction, global_names: List[str]) -> ast.FunctionDef:
    fn = _empty_def(step_name(index))
    if isinstance(instruction, ConditionalJump):
        body: List[ast.stmt] = [ast.Return(value=instruction.test)]
        bound = bound_names([instruction.test])
    else:
        statement = StripAnnotations().visit(copy.deepcopy(instruction.statement))
        body = [statement, ast.Return(value=ast.Name(id=SCOPE_NAME, ctx=ast.Load()))]
        bound = bound_names([statement])
    head: List[ast.stmt] = []
    globals_here = [n for n in bound if n in global_names]
    locals_here = [n for n in bound if n not in global_names]
    if globals_here:
        head.append(ast.Global(names=globals_here))
    if locals_here:
        head.append(ast.Nonlocal(names=locals_here))
    fn.body = head + body
    return fn

def scope_function(names: List[str]) -> ast.FunctionDef:
    fn = _empty_def(SCOPE_NAME)
    elts = [ast.Name(id=n, ctx=ast.Load()) for n in names]
    fn.body = [ast.Return(value=ast.Tuple(elts=elts, ctx=ast.Load()))]
    return fn

def scope_names(params: List[str], program: StepProgram) -> List[str]:
    out: List[str] = []
    for n in params + program.hoisted.declared + program.hoisted.functions:
        if n not in out:
            out.append(n)
    return out

def synthesize(syntax: Syntax, program: StepProgram, params: List[str]):
    """Replace the steppable region of ``syntax`` with step closures."""
    globals_ = program.hoisted.globals
    steps = [step_function(i, ins, globals_) for i, ins in enumerate(program)]
    step_refs = [ast.Name(id=step_name(i), ctx=ast.Load()) for i in range(len(steps))]
    terminal = ast.Return(value=ast.Tuple(elts=[
        ast.Name(id=SCOPE_NAME, ctx=ast.Load()),
        ast.Tuple(elts=step_refs, ctx=ast.Load()),
    ], ctx=ast.Load()))
    syntax.tree.body = (syntax.body[:program.offset] + steps
                        + [scope_function(scope_names(params, program)), terminal])

# ---------- Compilation ----------
def render_function(source: FunctionSource, syntax: Syntax) -> str:
    return f"def {source.name}({source.params}):\n" + textwrap.indent(syntax.generate(), "    ")

def compile_function(source: FunctionSource, syntax: Syntax,
                     globals_: Optional[Dict[str, Any]] = None) -> Tuple[types.FunctionType, str]:
    text = render_function(source, syntax)
    filename = f"<stepwise:{source.name}>"
    # keeps tracebacks from stepped statements readable
    linecache.cache[filename] = (len(text), None, text.splitlines(True), filename)

    if globals_ is None:
        globals_ = {"__name__": "__stepwise__"}
    globals_.setdefault("__builtins__", builtins)
    scratch = dict(globals_)
    exec(compile(text, filename, "exec"), scratch)
    template = scratch[source.name]
    fn = types.FunctionType(template.__code__, globals_, template.__name__,
                            template.__defaults__, template.__closure__)
    fn.__kwdefaults__ = template.__kwdefaults__
    LOG.debug("compiled %s (%d lines)", filename, text.count("\n") + 1)
    return fn, text

# ---------- Execution artifact ----------
class Evaluator:
    """Evaluates expressions against the live locals of one stepped call."""

    def __init__(self, scope: Callable, globals_: Dict[str, Any]):
        self.scope = scope
        self.globals = globals_

    def names(self) -> Dict[str, Any]:
        out = {}
        cells = self.scope.__closure__ or ()
        for name, cell in zip(self.scope.__code__.co_freevars, cells):
            try:
                out[name] = cell.cell_contents
            except ValueError:
                continue  # deleted local
        return out

    def __call__(self, expression: str) -> Any:
        namespace = dict(self.globals)
        namespace.update(self.names())
        return eval(expression, namespace)

@dataclass
class ExecutionArtifact:
    evaluator: Evaluator
    steps: Tuple[Callable[[], Any], ...]

    @classmethod
    def from_result(cls, result, globals_: Dict[str, Any]) -> "ExecutionArtifact":
        scope, steps = result
        return cls(Evaluator(scope, globals_), tuple(steps))

    def fell_through(self, value) -> bool:
        return value is self.evaluator.scope
