import ast, logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Set
from .bindings import bound_names, global_names
from .syntax import Syntax

LOG = logging.getLogger(__name__)

FUNCTION_KINDS = (ast.FunctionDef, ast.AsyncFunctionDef)
# expression kinds that can run code or rebind names while a def executes
EFFECT_KINDS = (ast.Call, ast.NamedExpr, ast.Await, ast.Yield, ast.YieldFrom)

@dataclass
class Hoisted:
    declared: List[str] = field(default_factory=list)    # hoisted locals, first-appearance order
    globals: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)   # defs moved ahead of the statements
    offset: int = 0                                       # index of the first steppable statement

def declaration(names: List[str]) -> ast.Assign:
    # a = b = None
    return ast.Assign(targets=[ast.Name(id=n, ctx=ast.Store()) for n in names],
                      value=ast.Constant(value=None))

def def_time_nodes(fn) -> List[ast.AST]:
    """Parts of a def evaluated when the def statement itself runs."""
    a = fn.args
    out: List[ast.AST] = list(fn.decorator_list) + list(a.defaults)
    out += [d for d in a.kw_defaults if d is not None]
    for arg in a.posonlyargs + a.args + a.kwonlyargs + [a.vararg, a.kwarg]:
        if arg is not None and arg.annotation is not None:
            out.append(arg.annotation)
    if fn.returns is not None:
        out.append(fn.returns)
    return out

def can_hoist(fn, counts: Counter, local_names: Set[str]) -> bool:
    """A def can move ahead of the statements when doing so is unobservable."""
    if fn.decorator_list or counts[fn.name] != 1 or fn.name not in local_names:
        return False
    for part in def_time_nodes(fn):
        for node in ast.walk(part):
            if isinstance(node, EFFECT_KINDS):
                return False
            if isinstance(node, ast.Name) and node.id in local_names:
                return False
    return True

def hoist(syntax: Syntax, params: Iterable[str] = ()) -> Hoisted:
    body = syntax.body
    head = body[:1] if syntax.leading_pragma() else []
    rest = body[len(head):]
    params = list(params)

    globals_ = global_names(rest)
    counts: Counter = Counter()
    for node in rest:
        counts.update(bound_names([node]))
    local_names = (set(params) | set(counts)) - set(globals_)

    movable = [n for n in rest if isinstance(n, FUNCTION_KINDS) and can_hoist(n, counts, local_names)]
    function_names = [n.name for n in movable]
    skip = set(params) | set(globals_) | set(function_names)

    declared: List[str] = []
    statements: List[ast.stmt] = []

    def declare(names):
        for n in names:
            if n not in skip and n not in declared:
                declared.append(n)

    for node in rest:
        if any(node is m for m in movable):
            continue
        elif isinstance(node, ast.Global):
            continue
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            name = node.target.id
            declare([name])
            if node.value is not None:
                init = ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=node.value)
                statements.append(ast.copy_location(init, node))
        else:
            # includes defs that must run in place
            declare(bound_names([node]))
            statements.append(node)

    preamble = list(head)
    if globals_:
        preamble.append(ast.Global(names=list(globals_)))
    if declared:
        preamble.append(declaration(declared))
    preamble += movable

    syntax.tree.body = preamble + statements
    ast.fix_missing_locations(syntax.tree)
    LOG.debug("hoisted %d local(s), %d global(s), %d function(s)",
              len(declared), len(globals_), len(movable))
    return Hoisted(declared=declared, globals=list(globals_),
                   functions=function_names, offset=len(preamble))
