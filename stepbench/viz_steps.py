# stepbench/viz_steps.py
from typing import Optional
from graphviz import Digraph
from stepwise.inspectors import describe
from stepwise.linearize import ConditionalJump, StepProgram

def steps_graphviz(program: StepProgram, position: Optional[int] = None) -> Digraph:
    g = Digraph("Steps", node_attr={"shape": "box", "fontname": "Inter"})
    end = len(program)

    def name(i):
        return f"S{i}" if i < end else "end"

    for i, ins in enumerate(program):
        d = describe(ins)
        attrs = {"style": "filled", "fillcolor": "gold"} if i == position else {}
        g.node(name(i), f"{i}: {d['kind']}\\n{d['code']}", **attrs)
    g.node("end", "end", shape="oval",
           **({"style": "filled", "fillcolor": "gold"} if position == end else {}))

    for i, ins in enumerate(program):
        if isinstance(ins, ConditionalJump):
            g.edge(name(i), name(i + 1 + ins.on_true), label="true")
            g.edge(name(i), name(i + 1 + ins.on_false), label="false")
        elif ins.returns:
            g.edge(name(i), "end", label="return")
        else:
            g.edge(name(i), name(i + 1 + ins.jump), label=f"+{ins.jump}" if ins.jump else "")
    return g
