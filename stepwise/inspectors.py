from __future__ import annotations
import ast
from typing import Any, Dict, List, Optional
from .linearize import ConditionalJump, Instruction, StepProgram

# --------- Step listing ----------
def describe(ins: Instruction) -> Dict[str, Any]:
    if isinstance(ins, ConditionalJump):
        return {"kind": "test", "code": ast.unparse(ins.test), "line": ins.lineno,
                "on_false": ins.on_false, "on_true": ins.on_true, "calls": list(ins.calls)}
    return {"kind": "return" if ins.returns else "exec",
            "code": ast.unparse(ins.statement).splitlines()[0],
            "line": ins.lineno, "jump": ins.jump, "calls": list(ins.calls)}

def _jumps(ins: Instruction) -> str:
    if isinstance(ins, ConditionalJump):
        parts = [f"false +{ins.on_false}"] if ins.on_false else []
        if ins.on_true:
            parts.append(f"true +{ins.on_true}")
        return ", ".join(parts)
    return f"then +{ins.jump}" if ins.jump else ""

def pretty_steps(func_name: str, program: StepProgram, position: Optional[int] = None) -> str:
    lines = [f"func {func_name}()  [{len(program)} steps]"]
    for i, ins in enumerate(program):
        d = describe(ins)
        mark = ">" if i == position else " "
        row = f"{mark}{i:>3}  {d['kind']:<6} {d['code']}"
        extra = _jumps(ins)
        if extra:
            row = f"{row:<48} ; {extra}"
        lines.append(row.rstrip())
    if position is not None and position >= len(program):
        lines.append(">  -  (end)")
    return "\n".join(lines)

# --------- Tree outline ----------
def _tree_lines(node: ast.AST, prefix: str = "", is_last: bool = True) -> List[str]:
    name = type(node).__name__
    if isinstance(node, ast.Name):
        name += f" {node.id}"
    elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        name += f" {node.name}"
    elif isinstance(node, ast.Constant):
        name += f" {node.value!r}"
    lines = [f"{prefix}{'└─' if is_last else '├─'}{name}"]
    new_prefix = f"{prefix}{'  ' if is_last else '│ '}"
    children = [c for c in ast.iter_child_nodes(node)
                if not isinstance(c, (ast.expr_context, ast.operator, ast.cmpop, ast.unaryop, ast.boolop))]
    for i, child in enumerate(children):
        lines.extend(_tree_lines(child, new_prefix, i == len(children) - 1))
    return lines

def ast_ascii_tree(root: ast.AST) -> str:
    return "\n".join(_tree_lines(root, "", True))
