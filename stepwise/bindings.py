import ast
from typing import Iterable, List

class BindingCollector(ast.NodeVisitor):
    """Names a statement binds in the enclosing function scope.

    Nested function, class, lambda and comprehension bodies are separate
    scopes and are not entered; a def or class contributes only its name.
    """

    def __init__(self):
        self.bound: List[str] = []
        self.globals: List[str] = []

    def _add(self, name: str):
        if name not in self.bound:
            self.bound.append(name)

    def visit_Name(self, node: ast.Name):
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self._add(node.id)

    def visit_FunctionDef(self, node):
        for d in node.decorator_list:
            self.visit(d)
        for d in node.args.defaults + [d for d in node.args.kw_defaults if d is not None]:
            self.visit(d)
        self._add(node.name)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef):
        for n in node.decorator_list + node.bases + [k.value for k in node.keywords]:
            self.visit(n)
        self._add(node.name)

    def visit_Lambda(self, node: ast.Lambda):
        for d in node.args.defaults:
            self.visit(d)

    def _visit_comprehension(self, node):
        # the first iterable is evaluated in the enclosing scope
        self.visit(node.generators[0].iter)
        for named in (n for n in ast.walk(node) if isinstance(n, ast.NamedExpr)):
            self.visit(named.target)

    visit_ListComp = visit_SetComp = visit_GeneratorExp = visit_DictComp = _visit_comprehension

    def visit_Import(self, node):
        for alias in node.names:
            self._add(alias.asname or alias.name.split(".")[0])

    visit_ImportFrom = visit_Import

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if node.name:
            self._add(node.name)
        self.generic_visit(node)

    def visit_Global(self, node: ast.Global):
        for n in node.names:
            if n not in self.globals:
                self.globals.append(n)

    def visit_MatchAs(self, node):
        if node.name:
            self._add(node.name)
        self.generic_visit(node)

    def visit_MatchStar(self, node):
        if node.name:
            self._add(node.name)

    def visit_MatchMapping(self, node):
        if node.rest:
            self._add(node.rest)
        self.generic_visit(node)

def bound_names(nodes: Iterable[ast.AST]) -> List[str]:
    c = BindingCollector()
    for n in nodes:
        c.visit(n)
    return c.bound

def global_names(nodes: Iterable[ast.AST]) -> List[str]:
    c = BindingCollector()
    for n in nodes:
        c.visit(n)
    return c.globals
