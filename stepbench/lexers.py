from pygments import highlight, lex
from pygments.formatters import TerminalFormatter
from pygments.lexers import PythonLexer

def pygments_tokens(code:str):
    rows = []
    for ttype, value in lex(code, PythonLexer()):
        if not value.strip():
            continue
        rows.append({"kind": str(ttype), "lexeme": value})
    return rows

def highlight_python(code:str) -> str:
    return highlight(code, PythonLexer(), TerminalFormatter()).rstrip("\n")
