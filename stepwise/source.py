import ast, inspect, textwrap
from dataclasses import dataclass
from typing import Any, List, Optional
from .errors import SourceError

@dataclass
class FunctionSource:
    name: str
    params: str                 # verbatim parameter list, e.g. "data, n=2, *rest"
    arguments: ast.arguments
    body: List[ast.stmt]
    lineno: int = 1

    def param_names(self) -> List[str]:
        a = self.arguments
        names = [x.arg for x in a.posonlyargs + a.args]
        if a.vararg: names.append(a.vararg.arg)
        names += [x.arg for x in a.kwonlyargs]
        if a.kwarg: names.append(a.kwarg.arg)
        return names

    def takes_receiver(self) -> bool:
        a = self.arguments
        return bool(a.posonlyargs or a.args or a.vararg)

def source_text(obj: Any) -> str:
    if isinstance(obj, str):
        return textwrap.dedent(obj)
    target = getattr(obj, "__func__", obj)   # bound methods
    try:
        return textwrap.dedent(inspect.getsource(target))
    except (OSError, TypeError) as e:
        raise SourceError(f"cannot read source of {obj!r}: {e}") from e

def read_function(obj: Any, name: Optional[str] = None) -> FunctionSource:
    """Locate a ``def`` in a function object or source text.

    With ``name`` the first top-level def of that name is used, otherwise the
    first def. Decorators are dropped: only the parameters and the body are
    carried over to the stepped version.
    """
    text = source_text(obj)
    tree = ast.parse(text)
    for node in tree.body:
        if name is not None and getattr(node, "name", None) != name:
            continue
        if isinstance(node, ast.AsyncFunctionDef):
            raise SourceError(f"async function {node.name!r} cannot be stepped")
        if isinstance(node, ast.FunctionDef):
            return FunctionSource(
                name=node.name,
                params=ast.unparse(node.args),
                arguments=node.args,
                body=list(node.body),
                lineno=node.lineno,
            )
    if name is not None:
        raise SourceError(f"no function named {name!r} in source")
    raise SourceError("source does not contain a function definition")
