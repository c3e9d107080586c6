# streamlit_app.py
import re, time, ast, traceback
import streamlit as st
from streamlit_ace import st_ace

from stepwise.driver import Stepper
from stepwise.cli import parse_args_literal
from stepwise.inspectors import ast_ascii_tree
from stepbench.lexers import pygments_tokens
from stepbench.viz import py_ast_graphviz
from stepbench.viz_steps import steps_graphviz

# ---------- Session state init (must be BEFORE UI renders) ----------
st.session_state.setdefault("ace_annotations", [])
st.session_state.setdefault("evaluations", [])

# ---------- Tab indices ----------
TAB_TOKENS = 0
TAB_AST    = 1
TAB_XFORM  = 2
TAB_STEPS  = 3
TAB_DEBUG  = 4

DEFAULT_SOURCE = '''def sample(data):
    a = "to begin"
    if data["n"] > 1:
        a = "big"
    else:
        a = "small"
    data["seen"] = a
    return a
'''

# ---------- Helpers ----------
def timeit(fn):
    t0 = time.perf_counter()
    out = fn()
    return out, (time.perf_counter() - t0) * 1000.0  # ms


TRACE_LINE_RE = re.compile(r'line\s+(\d+)')

def annotate(e):
    ln = getattr(e, "lineno", None)
    if ln is None:
        m = TRACE_LINE_RE.search(str(e))
        ln = int(m.group(1)) if m else None
    st.session_state["ace_annotations"] = [{
        "row": (ln - 1) if ln else 0,
        "column": max(0, (getattr(e, "offset", None) or 1) - 1),
        "text": str(e),
        "type": "error",
    }]


perf = {}  # collected timings

def perf_badge(*pairs):
    if not pairs:
        return
    cols = st.columns(len(pairs))
    for c, (label, ms) in zip(cols, pairs):
        with c:
            st.metric(label, f"{ms:.1f} ms")

def new_session(code, args_text):
    stepper = Stepper()
    stepper.parse(code)
    stepper.call(None, *parse_args_literal(args_text))
    st.session_state.stepper = stepper
    st.session_state.session_key = (code, args_text)
    st.session_state.evaluations = []

# ---------- Page ----------
st.set_page_config(page_title="Stepwise Workbench", layout="wide")
st.title("🪜 Stepwise Workbench")
st.caption("Source → hoisted & linearized steps → step / back / skip / evaluate")

# ---------- Sidebar (Ace editor) ----------
with st.sidebar:
    st.header("Function")
    code = st_ace(
        value=DEFAULT_SOURCE,
        language="python",
        theme="tomorrow_night_eighties",
        min_lines=16,
        max_lines=32,
        annotations=st.session_state["ace_annotations"],
        auto_update=True,
        key="ace_python",
    )
    args_text = st.text_input("Call arguments (Python literals)", value='{"n": 2}')
    reset_btn = st.button("Parse / Reset")

if st.session_state["ace_annotations"]:
    last_err = st.session_state["ace_annotations"][-1]["text"]
    st.error(f"Last error: {last_err}")

tabs = st.tabs(["Tokens", "AST", "Transformed", "Steps", "Debug"])

# ---------- TOKENS ----------
with tabs[TAB_TOKENS]:
    st.subheader("Tokens")
    st.session_state["ace_annotations"] = []  # clear previous errors
    try:
        toks, t_tok = timeit(lambda: pygments_tokens(code))
        perf["tokens_ms"] = t_tok
        st.dataframe(toks, hide_index=True, use_container_width=True)
    except Exception as e:
        st.error(f"Tokenization error: {e}")
        st.code(traceback.format_exc())
    perf_badge(("Tokens", perf.get("tokens_ms", 0.0)))

# ---------- AST ----------
with tabs[TAB_AST]:
    st.subheader("Parser / AST")
    try:
        tree, t_parse = timeit(lambda: ast.parse(code, mode="exec"))
        perf["parse_ms"] = t_parse
        st.markdown("**AST — Graphviz**")
        st.graphviz_chart(py_ast_graphviz(tree).source)
        with st.expander("AST (outline)"):
            st.code(ast_ascii_tree(tree), language="text")
    except SyntaxError as e:
        st.error(f"AST error: {e}")
        annotate(e)
    perf_badge(("Parse", perf.get("parse_ms", 0.0)))

# ---------- Session ----------
stepper = None
try:
    if reset_btn or st.session_state.get("session_key") != (code, args_text):
        _, t_xform = timeit(lambda: new_session(code, args_text))
        perf["transform_ms"] = t_xform
    stepper = st.session_state.stepper
except Exception as e:
    st.session_state.pop("stepper", None)
    st.session_state.pop("session_key", None)
    st.error(f"Transform error: {type(e).__name__}: {e}")
    annotate(e)

# ---------- TRANSFORMED ----------
with tabs[TAB_XFORM]:
    st.subheader("Transformed function")
    if stepper is not None:
        st.code(stepper.text, language="python")
        perf_badge(("Transform", perf.get("transform_ms", 0.0)))

# ---------- STEPS ----------
with tabs[TAB_STEPS]:
    st.subheader("Step sequence")
    if stepper is not None:
        st.graphviz_chart(steps_graphviz(stepper.program, stepper.position).source)
        st.code(stepper.listing(), language="text")

# ---------- DEBUG ----------
with tabs[TAB_DEBUG]:
    st.subheader("Stepper")
    if stepper is not None:
        cols = st.columns(5)
        try:
            if cols[0].button("Step"):
                stepper.step()
            if cols[1].button("Back"):
                stepper.back()
            if cols[2].button("Skip"):
                stepper.forward()
            if cols[3].button("Step in"):
                stepper.step_in()
                st.info("Stepping into calls is not supported yet.")
            if cols[4].button("Run to end"):
                stepper.run()
        except Exception as e:
            st.error(f"{type(e).__name__}: {e}")

        ins = stepper.current
        if stepper.finished:
            st.success(f"Finished. Returned {stepper.returned!r}")
        elif ins is not None:
            st.markdown(f"**Position {stepper.position}** · line {ins.lineno}")
        st.code(stepper.listing(), language="text")

        expr = st.text_input("Evaluate in scope", value="")
        if st.button("Evaluate") and expr.strip():
            try:
                st.session_state.evaluations.append((expr, repr(stepper.evaluate(expr))))
            except Exception as e:
                st.session_state.evaluations.append((expr, f"{type(e).__name__}: {e}"))
        for e, v in reversed(st.session_state.evaluations):
            st.code(f">>> {e}\n{v}", language="python")

        st.markdown("**Locals**")
        st.write({k: repr(v) for k, v in stepper.locals().items()})
