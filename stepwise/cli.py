import argparse, ast, logging, pathlib, runpy, sys
from typing import List, Optional, TextIO
from .driver import Stepper
from .errors import StepperError

LOG = logging.getLogger(__name__)

HELP = """commands:
  s | step          execute the current step
  b | back          move back one step (no undo)
  f | forward [n]   skip n steps without executing
  i | in            step into a call (not supported yet)
  r | run           run to the end
  e | eval EXPR     evaluate EXPR in the stepped scope
  l | list          show the step listing
  v | vars          show bound locals
  q | quit
"""

def parse_args_literal(text: str) -> tuple:
    if not text.strip():
        return ()
    return ast.literal_eval(f"({text},)")

def load(path: str, function: Optional[str]):
    src = pathlib.Path(path).read_text(encoding="utf-8")
    namespace = runpy.run_path(path, run_name="__stepwise__")
    stepper = Stepper()
    stepper.parse(src, name=function, globals=namespace)
    LOG.debug("loaded %s from %s:%d", stepper.source.name, path, stepper.source.lineno)
    return stepper

def repl(stepper: Stepper, inp: TextIO, out: TextIO) -> int:
    def show(s):
        print(s, file=out)

    show(stepper.listing())
    for raw in inp:
        cmd, _, rest = raw.strip().partition(" ")
        try:
            if cmd in ("q", "quit"):
                break
            elif cmd in ("s", "step"):
                stepper.step()
                show(stepper.listing())
            elif cmd in ("b", "back"):
                stepper.back()
                show(stepper.listing())
            elif cmd in ("f", "forward"):
                stepper.forward(int(rest) if rest else 1)
                show(stepper.listing())
            elif cmd in ("i", "in"):
                stepper.step_in()
            elif cmd in ("r", "run"):
                show(f"returned {stepper.run()!r}")
            elif cmd in ("e", "eval"):
                show(repr(stepper.evaluate(rest)))
            elif cmd in ("l", "list"):
                show(stepper.listing())
            elif cmd in ("v", "vars"):
                for k, v in stepper.locals().items():
                    show(f"{k} = {v!r}")
            elif cmd:
                show(HELP)
        except StepperError as e:
            show(f"error: {e}")
        except Exception as e:
            # errors raised by the stepped code itself
            show(f"{type(e).__name__}: {e}")
    return 0

def main(argv: Optional[List[str]] = None, inp: TextIO = sys.stdin, out: TextIO = sys.stdout) -> int:
    ap = argparse.ArgumentParser(prog='stepwise', description='Statement-level stepping for Python functions')
    ap.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    sub = ap.add_subparsers(dest='cmd', required=True)

    showp = sub.add_parser('show', help='Print the transformed function and its steps')
    showp.add_argument('file')
    showp.add_argument('-f', '--function', help='function name (default: first def)')
    showp.add_argument('--no-color', action='store_true')

    dbg = sub.add_parser('debug', help='Step through a function interactively')
    dbg.add_argument('file')
    dbg.add_argument('-f', '--function', help='function name (default: first def)')
    dbg.add_argument('-a', '--args', default='', help='call arguments as Python literals, e.g. "1, [2, 3]"')

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        stepper = load(args.file, args.function)
    except (StepperError, SyntaxError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.cmd == 'show':
        if args.no_color:
            print(stepper.text, file=out)
        else:
            from stepbench.lexers import highlight_python
            print(highlight_python(stepper.text), file=out)
        print(stepper.listing(), file=out)
        return 0

    stepper.call(None, *parse_args_literal(args.args))
    return repl(stepper, inp, out)

if __name__ == '__main__':
    sys.exit(main())
