import ast, logging
from dataclasses import dataclass, field
from typing import List, Tuple, Union
from .hoist import Hoisted
from .syntax import Syntax

LOG = logging.getLogger(__name__)

# ---------- Instruction set ----------
@dataclass(frozen=True)
class Execute:
    statement: ast.stmt
    jump: int = 0                # extra positions skipped after executing
    lineno: int = 0
    calls: Tuple[str, ...] = ()

    @property
    def returns(self) -> bool:
        return isinstance(self.statement, ast.Return)

@dataclass(frozen=True)
class ConditionalJump:
    test: ast.expr
    on_false: int                # extra positions skipped when the test is falsy
    on_true: int = 0
    lineno: int = 0
    calls: Tuple[str, ...] = ()

    returns = False

Instruction = Union[Execute, ConditionalJump]

@dataclass(frozen=True)
class StepProgram:
    instructions: Tuple[Instruction, ...]
    hoisted: Hoisted = field(default_factory=Hoisted)

    @property
    def offset(self) -> int:
        return self.hoisted.offset

    def __len__(self):
        return len(self.instructions)

    def __getitem__(self, i) -> Instruction:
        return self.instructions[i]

    def __iter__(self):
        return iter(self.instructions)

# ---------- Linearizer ----------
def called_names(node: ast.AST) -> Tuple[str, ...]:
    names: List[str] = []
    def record(call, _parents):
        f = call.func
        name = f.id if isinstance(f, ast.Name) else getattr(f, "attr", None)
        if name and name not in names:
            names.append(name)
    Syntax().find(ast.Call, record, root=node)
    return tuple(names)

def execute(statement: ast.stmt, jump: int = 0) -> Execute:
    return Execute(statement, jump=jump, lineno=getattr(statement, "lineno", 0),
                   calls=called_names(statement))

def linearize_if(node: ast.If) -> List[Instruction]:
    consequent, alternate = node.body, node.orelse
    c, a = len(consequent), len(alternate)
    out: List[Instruction] = [ConditionalJump(
        node.test, on_false=c, on_true=a if c == 0 else 0,
        lineno=node.lineno, calls=called_names(node.test))]
    for i, stmt in enumerate(consequent):
        # the last consequent step jumps over the alternate
        out.append(execute(stmt, jump=a if i == c - 1 else 0))
    out += [execute(stmt) for stmt in alternate]
    return out

def linearize(statements: List[ast.stmt]) -> List[Instruction]:
    out: List[Instruction] = []
    for stmt in statements:
        if isinstance(stmt, ast.If):
            out += linearize_if(stmt)
        else:
            out.append(execute(stmt))
    return out

def build_program(syntax: Syntax, hoisted: Hoisted) -> StepProgram:
    instructions = linearize(syntax.body[hoisted.offset:])
    LOG.debug("linearized %d statement(s) into %d step(s)",
              len(syntax.body) - hoisted.offset, len(instructions))
    return StepProgram(tuple(instructions), hoisted)
