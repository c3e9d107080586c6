import ast, logging, types
from typing import Any, Dict, Optional
from .errors import StepBoundsError, StepperStateError
from .hoist import hoist
from .inspectors import pretty_steps
from .linearize import ConditionalJump, Instruction, StepProgram, build_program
from .source import FunctionSource, read_function
from .synthesize import ExecutionArtifact, compile_function, synthesize
from .syntax import Syntax

LOG = logging.getLogger(__name__)

class Stepper:
    """Drives one stepped call of a transformed function.

    ``parse`` -> ``call`` -> any mix of ``step``/``back``/``forward``/``evaluate``.
    ``back`` only repositions: side effects of executed steps are not undone.
    """

    def __init__(self, syntax: Optional[Syntax] = None):
        self.syntax = syntax or Syntax()
        self.source: Optional[FunctionSource] = None
        self.program: Optional[StepProgram] = None
        self.fn: Optional[types.FunctionType] = None
        self.text: str = ""
        self.artifact: Optional[ExecutionArtifact] = None
        self.context: Any = None
        self.position = 0
        self.returned: Any = None

    # ---------- Transformation ----------
    def parse(self, source: Any, name: Optional[str] = None,
              globals: Optional[Dict[str, Any]] = None) -> str:
        fs = read_function(source, name)
        if globals is None:
            globals = getattr(getattr(source, "__func__", source), "__globals__", None)

        tree = self.syntax.load(ast.Module(body=fs.body, type_ignores=[]))
        params = fs.param_names()
        hoisted = hoist(tree, params)
        program = build_program(tree, hoisted)
        synthesize(tree, program, params)
        self.fn, self.text = compile_function(fs, tree, globals)

        self.source, self.program = fs, program
        self.artifact, self.position, self.returned = None, 0, None
        LOG.debug("parsed %s: %d step(s)", fs.name, len(program))
        return self.text

    def call(self, context: Any = None, *args, **kwargs):
        """Run the transformed function up to its step closures.

        A non-None ``context`` is the receiver of a method: it is bound to the
        first positional parameter and ``args`` fill the rest.
        """
        if self.fn is None:
            raise StepperStateError("parse() must succeed before call()")
        if context is not None and not self.source.takes_receiver():
            raise StepperStateError(f"{self.source.name}() has no positional parameter to bind a context to")
        self.context = context
        fn = types.MethodType(self.fn, context) if context is not None else self.fn
        self.artifact = ExecutionArtifact.from_result(fn(*args, **kwargs), self.fn.__globals__)
        self.position = 0
        self.returned = None
        LOG.debug("called %s with %d arg(s)", self.source.name, len(args) + len(kwargs))
        return self.artifact

    # ---------- Stepping ----------
    def _require_artifact(self, op: str) -> ExecutionArtifact:
        if self.artifact is None:
            raise StepperStateError(f"call() must succeed before {op}()")
        return self.artifact

    def __len__(self):
        return len(self.program) if self.program is not None else 0

    @property
    def finished(self) -> bool:
        return self.artifact is not None and self.position >= len(self)

    @property
    def current(self) -> Optional[Instruction]:
        if self.program is None or not 0 <= self.position < len(self):
            return None
        return self.program[self.position]

    def step(self) -> Any:
        artifact = self._require_artifact("step")
        pos = self.position
        if not 0 <= pos < len(artifact.steps):
            raise StepBoundsError(f"no step at position {pos} (0..{len(artifact.steps) - 1})")
        instruction = self.program[pos]
        value = artifact.steps[pos]()
        self.forward()

        if isinstance(instruction, ConditionalJump):
            jump = instruction.on_true if value else instruction.on_false
            LOG.debug("step %d: test is %s", pos, bool(value))
        elif artifact.fell_through(value):
            jump = instruction.jump
            value = None
        else:
            # a return anywhere inside the statement ends the call
            self.returned = value
            jump = len(self) - self.position
        if jump:
            LOG.debug("step %d: jump +%d", pos, jump)
            self.forward(jump)
        return value

    def back(self):
        self._require_artifact("back")
        if self.position <= 0:
            raise StepBoundsError("already at the first step")
        self.position -= 1

    def forward(self, count: int = 1):
        self._require_artifact("forward")
        if not 0 <= self.position + count <= len(self):
            raise StepBoundsError(f"cannot move {count:+d} from position {self.position}")
        self.position += count

    def step_in(self):
        # descending into callees needs a frame stack of (artifact, position); not built yet
        self._require_artifact("step_in")
        ins = self.current
        if ins is not None and ins.calls:
            LOG.debug("step_in: stepping into %s is not supported, position unchanged",
                      ", ".join(ins.calls))

    def run(self) -> Any:
        while not self.finished:
            self.step()
        return self.returned

    # ---------- Inspection ----------
    def evaluate(self, expression: str) -> Any:
        return self._require_artifact("evaluate").evaluator(expression)

    def locals(self) -> Dict[str, Any]:
        return self._require_artifact("locals").evaluator.names()

    def listing(self) -> str:
        if self.program is None:
            raise StepperStateError("parse() must succeed before listing()")
        return pretty_steps(self.source.name, self.program,
                            self.position if self.artifact is not None else None)
