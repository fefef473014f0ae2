"""Command-line interface for acroscript."""

import json
import logging
import signal
import sys
import argparse
from pathlib import Path

from . import __version__
from .conditions import PREFIX_MATCH_MAX_LEN
from .context import ScriptContext
from .core import ValidationError, defang_value, get_document_script, process

logger = logging.getLogger("acroscript")


def _read_script(args: argparse.Namespace) -> str:
    """Read the document script from a PDF, or from a plain text file with --text."""
    if not args.text:
        return get_document_script(args.file)

    path = Path(args.file)
    if not path.is_file():
        raise ValidationError(f"File not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def _run(args: argparse.Namespace) -> dict:
    """Build the JSON document the selected mode prints."""
    if args.toggle is None and args.messages is None and not args.text:
        return process(args.file)

    script = _read_script(args)
    with ScriptContext(script, prefix_max_len=args.prefix_len) as context:
        if args.toggle is not None:
            mutations = context.toggle_mutations(args.toggle, args.value)
            result = {"mutations": [mutation.as_dict() for mutation in mutations]}
        elif args.messages is not None:
            result = {"messages": context.validation_messages(args.messages)}
        else:
            result = {
                "script_length": len(script),
                "constants": dict(context.constants),
                "functions": sorted(context.functions),
            }
    logger.info("Analyzed script of %s (%d chars)", args.file, len(script))
    return defang_value(result)


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="acroscript",
        description=(
            "Report what the form scripts of a PDF do, without running them. "
            "Output is JSON."
        ),
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging to stderr",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=0,
        metavar="SECONDS",
        help="Abort processing after SECONDS (0 = disabled)",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat FILE as plain document script text instead of a PDF",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--toggle",
        metavar="ACTION",
        help="Print the field mutations of a checkbox/radio ACTION",
    )
    mode.add_argument(
        "--messages",
        metavar="ACTION",
        help="Print the validation messages of a blur/validate ACTION",
    )
    parser.add_argument(
        "--value",
        default=None,
        help="Export value of the toggled control for --toggle (default: unchecked)",
    )
    parser.add_argument(
        "--prefix-len",
        type=int,
        default=PREFIX_MATCH_MAX_LEN,
        metavar="N",
        help="Longest export code that matches as a value prefix (default: %(default)s)",
    )
    parser.add_argument(
        "file",
        metavar="FILE",
        help="Path to a PDF file (or a script file with --text)",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(name)s: %(message)s",
        )

    if args.timeout > 0:
        if not hasattr(signal, "SIGALRM"):
            print(
                "Warning: --timeout is not supported on this platform",
                file=sys.stderr,
            )
        else:
            def _timeout_handler(signum, frame):
                raise TimeoutError(
                    f"Processing timed out after {args.timeout} seconds"
                )

            signal.signal(signal.SIGALRM, _timeout_handler)
            signal.alarm(args.timeout)

    try:
        print(json.dumps(_run(args), indent=2))
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except TimeoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    finally:
        if args.timeout > 0 and hasattr(signal, "SIGALRM"):
            signal.alarm(0)
