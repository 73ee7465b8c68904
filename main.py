"""CLI entry point for the walkthrough assembler.

Usage::

    python main.py walkthrough.md [--config overlay.yaml] \\
        [-a sectnums] [-a user-name=developer] [--json] [-v]
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

from walkthrough.assembler import parse_walkthrough
from walkthrough.config import WalkthroughConfig
from walkthrough.models import StructuralError

logger = logging.getLogger("walkthrough")


def _build_argument_parser() -> argparse.ArgumentParser:
    """Create and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="walkthrough",
        description="Assemble a Markdown walkthrough into tasks, steps and resources.",
    )

    parser.add_argument(
        "input",
        help="Path to the walkthrough Markdown file.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration overlay.",
    )
    parser.add_argument(
        "-a", "--attribute",
        action="append",
        default=[],
        metavar="NAME[=VALUE]",
        help="Set a parser attribute (repeatable), e.g. -a sectnums.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the assembled walkthrough as JSON instead of a summary.",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable verbose (DEBUG) logging output.",
    )

    return parser


def _setup_logging(verbose: bool) -> None:
    """Configure the root logger for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stderr),
        logging.FileHandler(log_dir / "walkthrough.log", encoding="utf-8"),
    ]

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _parse_attributes(pairs: list[str]) -> dict:
    """Turn ``NAME`` / ``NAME=VALUE`` arguments into an attribute mapping.

    A bare ``NAME`` sets the attribute to the empty string; ``NAME!`` unsets
    a configured default.
    """
    attributes: dict = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not name:
            raise ValueError(f"Invalid attribute: {pair!r}")
        if not sep and name.endswith("!"):
            attributes[name[:-1]] = None
        else:
            attributes[name] = value
    return attributes


def _print_summary(title: str, summary: dict) -> None:
    """Print a human-readable walkthrough summary to stdout."""
    print(f"\n--- {title or 'Untitled walkthrough'} ---")
    print(f"  Tasks          : {summary.get('tasks', 0)}")
    print(f"  Steps          : {summary.get('steps', 0)}")
    print(f"  Text blocks    : {summary.get('text_blocks', 0)}")
    print(f"  Verifications  : {summary.get('verifications', 0)}")
    print(f"  Resources      : {summary.get('resources', 0)}")
    print(f"  Time (minutes) : {summary.get('time', 0)}")
    print("------------------------------\n")


def main() -> None:
    """Run the walkthrough assembly pipeline."""
    parser = _build_argument_parser()
    args = parser.parse_args()

    # -- Logging -----------------------------------------------------------
    _setup_logging(args.verbose)

    # -- Validate input ----------------------------------------------------
    input_path = args.input
    if not os.path.isfile(input_path):
        logger.error("Input file not found: %s", input_path)
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    try:
        config = WalkthroughConfig(overlay_path=args.config)
        attributes = _parse_attributes(args.attribute)

        logger.info("Assembling walkthrough from %s", input_path)
        source = Path(input_path).read_text(encoding="utf-8")
        walkthrough = parse_walkthrough(source, attributes, config=config)

        if args.json:
            print(json.dumps(dataclasses.asdict(walkthrough), indent=2))
        else:
            _print_summary(walkthrough.title, walkthrough.summary())
        logger.info("Assembly complete: %s", input_path)

    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except StructuralError as exc:
        logger.error("Invalid walkthrough: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Unexpected error during assembly.")
        print(
            f"Error: An unexpected error occurred: {exc}\n"
            "Run with -v for detailed debug output.",
            file=sys.stderr,
        )
        sys.exit(2)


if __name__ == "__main__":
    main()
