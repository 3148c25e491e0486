from __future__ import annotations

import logging
import sys
import threading
import traceback
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO, TypeVar, Union

from .evaluator import StatementOutcome, eval_program
from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError, parse_tokens
from .runtime import Frame, LoxNil, LoxRuntimeError, new_global_frame
from .tree import tree_label
from .utils import debug_py_trace_enabled, log_level_from_env, render

logger = logging.getLogger(__name__)

USAGE = "Usage: lox-ref [script]"

# One Lox call nests about a dozen Python frames.
RECURSION_LIMIT = 100_000
EVAL_STACK_SIZE = 512 * 1024 * 1024

T = TypeVar("T")

ReportedError = Union[LexError, ParseError, LoxRuntimeError]

def format_error(exc: ReportedError) -> str:
    """One-line report: `[line N] Error: message`, without the prefix when no line is known."""
    line: Optional[int]
    message: str

    match exc:
        case ParseError(token=tok):
            line = tok.line if tok is not None else None
            message = exc.message
        case LexError() | LoxRuntimeError():
            line = exc.line or None
            message = exc.message
        case _:
            line, message = None, str(exc)

    if line is None:
        return f"Error: {message}"

    return f"[line {line}] Error: {message}"

def report_error(exc: ReportedError, err: Optional[TextIO]=None) -> None:
    err = err or sys.stderr
    print(format_error(exc), file=err)

    if debug_py_trace_enabled() and isinstance(exc, LoxRuntimeError) and exc.__traceback__ is not None:
        print("\nPython traceback:", file=err)
        print("".join(traceback.format_tb(exc.__traceback__)), file=err, end="")

def call_with_deep_stack(fn: Callable[[], T]) -> T:
    """
    Call `fn` on a worker thread with a large stack and a raised recursion
    limit, re-raising whatever it raised. Only recursion past these limits
    still ends the run with `RecursionError`.
    """
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)

    box: Dict[str, object] = {}

    def target() -> None:
        try:
            box["value"] = fn()
        except BaseException as exc:
            box["error"] = exc

    previous = threading.stack_size(EVAL_STACK_SIZE)
    try:
        worker = threading.Thread(target=target, name="lox-eval", daemon=True)
        worker.start()
    finally:
        threading.stack_size(previous)

    worker.join()

    if "error" in box:
        raise box["error"]
    return box["value"]

def run(src: str, frame: Optional[Frame]=None, out: Optional[TextIO]=None, err: Optional[TextIO]=None, echo: bool=False) -> List[StatementOutcome]:
    """
    Scan, parse and evaluate `src`.

    Lex and parse errors are reported and the statements that did parse still
    run; each runtime error is reported and ends only its own statement.
    With `echo`, the value of every expression statement other than nil is
    written to the output sink, as the REPL does.
    """
    if frame is None:
        frame = new_global_frame(out=out)

    try:
        tokens = tokenize(src)
    except LexError as exc:
        logger.debug("lex error: %s", exc)
        report_error(exc, err)
        return []

    program, parse_errors = parse_tokens(tokens)
    for perr in parse_errors:
        report_error(perr, err)

    def on_outcome(outcome: StatementOutcome) -> None:
        if outcome.error is not None:
            report_error(outcome.error, err)
        elif echo and tree_label(outcome.stmt) == 'exprstmt' and not isinstance(outcome.value, LoxNil):
            frame.out.write(render(outcome.value) + "\n")

    return call_with_deep_stack(lambda: eval_program(program, frame, on_outcome))

def had_errors(outcomes: List[StatementOutcome]) -> bool:
    return any(not o.ok for o in outcomes)

def run_file(path: str) -> List[StatementOutcome]:
    source = Path(path).read_text(encoding="utf-8")
    return run(source)

def main() -> None:
    logging.basicConfig(level=log_level_from_env(), format="%(levelname)s %(name)s: %(message)s")

    args = sys.argv[1:]

    if len(args) > 1:
        raise SystemExit(USAGE)

    if not args:
        from .repl import repl

        repl()
        return

    path = args[0]
    if not Path(path).is_file():
        raise SystemExit(f"Cannot read script: {path}")

    outcomes = run_file(path)
    if had_errors(outcomes):
        raise SystemExit(1)

if __name__ == "__main__":
    main()
