# stepbench/viz.py
from graphviz import Digraph
import ast

# ---------- Python AST -> Graphviz ----------
def py_ast_graphviz(tree: ast.AST) -> Digraph:
    g = Digraph("pyAST", node_attr={"shape": "box", "fontname": "Inter"})
    counter = 0

    def add(n):
        nonlocal counter
        counter += 1
        nid = f"n{counter}"
        label = type(n).__name__
        if isinstance(n, ast.Name):
            label += f"\\n{n.id}"
        elif isinstance(n, (ast.FunctionDef, ast.AsyncFunctionDef)):
            label += f"\\n{n.name}"
        g.node(nid, label)
        for child in ast.iter_child_nodes(n):
            if isinstance(child, ast.expr_context):
                continue
            cid = add(child)
            g.edge(nid, cid)
        return nid

    add(tree)
    return g
