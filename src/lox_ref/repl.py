"""Interactive REPL for Lox, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .repl_highlight import LoxLexer
from .runner import run
from .runtime import Frame, new_global_frame
from .token_types import TT
from .utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

_DEPTH_OPEN = {TT.LPAR, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAR, TT.RBRACE}


def needs_continuation(text: str) -> bool:
    """True while *text* has an open string, paren or brace."""
    try:
        tokens = tokenize(text)
    except LexError as exc:
        return exc.message == "Unterminated string"

    depth = 0
    for tok in tokens:
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth = max(depth - 1, 0)

    return depth > 0


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display=f"{cmd} {hint}" if hint else cmd,
                    display_meta=desc,
                )


def handle_slash(line: str, frame_box: list[Frame]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ[DEBUG_PY_TRACE_ENV] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop(DEBUG_PY_TRACE_ENV, None)
        elif arg == "":
            # Toggle.
            if debug_py_trace_enabled():
                os.environ.pop(DEBUG_PY_TRACE_ENV, None)
            else:
                os.environ[DEBUG_PY_TRACE_ENV] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    if cmd == "/reset":
        frame_box[0] = new_global_frame()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def eval_and_echo(text: str, frame: Frame) -> None:
    """Run one submission, echoing expression values other than nil."""
    run(text, frame, echo=True)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    # Use a mutable box so /reset can swap the frame.
    frame_box: list[Frame] = [new_global_frame()]

    history = InMemoryHistory()
    lexer = LoxLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer

        if buf.text.startswith("/") or not needs_continuation(buf.text):
            buf.validate_and_handle()
            return

        buf.insert_text("\n")

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("lox repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        # Slash command?
        if handle_slash(text, frame_box):
            continue

        eval_and_echo(text, frame_box[0])
