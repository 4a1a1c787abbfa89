from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import DEFAULT_MODEL, history_path, load_settings
from .errors import HeyGptError
from .session import Session
from .terminal import BOLD, FG_RED, LineEditor, style

LOG_LEVEL_ENV = "HEYGPT_LOG"


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heygpt",
        description="Chat with an OpenAI-compatible completion API from the terminal.",
    )
    parser.add_argument("--no-stream", action="store_true", help="Wait for the whole reply instead of streaming it")
    parser.add_argument("--model", default=DEFAULT_MODEL, help=f"The model to query (default: {DEFAULT_MODEL})")
    parser.add_argument(
        "--temperature",
        type=float,
        default=None,
        help="Sampling temperature between 0 and 2. Higher values like 0.8 give more random output, "
        "lower values like 0.2 more focused output. Alter this or --top-p, not both.",
    )
    parser.add_argument(
        "--top-p",
        dest="top_p",
        type=float,
        default=None,
        help="Nucleus sampling: only tokens within the top_p probability mass are considered, "
        "so 0.1 means the top 10%%. Alter this or --temperature, not both.",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Socket timeout in seconds (default: none)")
    parser.add_argument(
        "prompt",
        nargs=argparse.REMAINDER,
        help="The prompt to ask. Leave it empty to start interactive mode",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    _configure_logging()
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            model=args.model,
            stream=not args.no_stream,
            temperature=args.temperature,
            top_p=args.top_p,
            timeout=args.timeout,
        )
        session = Session(settings)
        if args.prompt:
            session.run_one_shot(args.prompt)
        else:
            session.run_interactive(LineEditor(history_path()))
    except HeyGptError as exc:
        print(f"{style('error', BOLD, FG_RED, stream=sys.stderr)}: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # Interrupted mid-request; there is no reply to keep.
        print("CTRL-C", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
