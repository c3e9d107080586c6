import ast
from typing import Callable, Dict, List, Optional, Tuple, Type
from .errors import SyntaxShapeError
from .pragma import Pragma, PragmaList

# ---------- Traversal registry ----------
# node kind -> child fields `find` descends into; other kinds are not entered
CHILD_FIELDS: Dict[Type[ast.AST], Tuple[str, ...]] = {
    ast.Expr: ("value",),
    ast.Assign: ("targets", "value"),
    ast.AugAssign: ("target", "value"),
    ast.BinOp: ("left", "right"),
    ast.Call: ("args", "func"),
}

def is_string_statement(node: ast.AST) -> bool:
    return (isinstance(node, ast.Expr)
            and isinstance(node.value, ast.Constant)
            and isinstance(node.value.value, str))

class Syntax:
    """Holds the module tree of a function body while it is transformed."""

    def __init__(self, generator: Callable[[ast.AST], str] = ast.unparse):
        self.generator = generator
        self.tree: Optional[ast.Module] = None

    def load(self, tree) -> "Syntax":
        if tree is None or not isinstance(tree, ast.Module):
            kind = type(tree).__name__ if tree is not None else "nothing"
            raise SyntaxShapeError(f"expected an ast.Module at the root, got {kind}")
        self.tree = tree
        return self

    @property
    def body(self) -> List[ast.stmt]:
        return self.tree.body

    def generate(self) -> str:
        ast.fix_missing_locations(self.tree)
        return self.generator(self.tree)

    def find(self, kind: Type[ast.AST], callback: Callable[[ast.AST, List[ast.AST]], None], root=None):
        """Call ``callback(node, parents)`` for every ``kind`` node reachable
        through lists and the kinds registered in CHILD_FIELDS."""
        def check(node, parents):
            nodes = [node] + parents
            if isinstance(node, kind):
                callback(node, nodes)
            elif isinstance(node, list):
                for sub in node:
                    check(sub, nodes)
            elif type(node) in CHILD_FIELDS:
                for field in CHILD_FIELDS[type(node)]:
                    child = getattr(node, field, None)
                    if child is not None:
                        check(child, nodes)

        check(self.body if root is None else root, [])

    # ---------- Pragmas ----------
    def pragmas(self) -> PragmaList:
        out = PragmaList()
        for node in self.body:
            if not is_string_statement(node):
                break
            out.add(Pragma.from_text(node.value.value))
        return out

    def strict_pragma(self) -> Optional[Pragma]:
        return self.pragmas().find(r"^use strict$").first()

    def leading_pragma(self) -> Optional[Pragma]:
        return self.pragmas().first()
