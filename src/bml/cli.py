"""
CLI interface for BML.

Validate a document, dump its tree, or query values by path.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .dom import Duplicates, Node
from .errors import ParseError
from .parser import parse


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="bml",
        description="Parse BML markup and query its tree",
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="Input file (reads from stdin if not provided)",
    )

    parser.add_argument(
        "--get",
        "-g",
        type=str,
        dest="path",
        help="Slash-separated path of names (e.g., server/proxy/port); prints every matching value",
    )

    parser.add_argument(
        "--duplicates",
        "-d",
        choices=[member.value for member in Duplicates],
        help="How entries sharing a name are stored (default: from config, else preserve-all)",
    )

    parser.add_argument(
        "--json",
        "-j",
        action="store_true",
        help="Dump the tree as JSON instead of an outline",
    )

    parser.add_argument(
        "--check",
        "-c",
        action="store_true",
        help="Only validate; print nothing on success",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(args)


def read_input(filepath: str | None) -> tuple[str, str | None]:
    """Read from file or stdin, return (content, filename)."""
    if filepath:
        with open(filepath, encoding="utf-8") as f:
            return f.read(), filepath

    return sys.stdin.read(), None


def to_dict(node: Node) -> dict:
    """JSON-friendly view of a node and its entries."""
    result: dict = {"name": node.name, "values": list(node.values()), "entries": []}
    stack = [(node, result)]
    while stack:
        current, out = stack.pop()
        for _, child in current.entries():
            converted = {"name": child.name, "values": list(child.values()), "entries": []}
            out["entries"].append(converted)
            stack.append((child, converted))
    return result


def format_outline(root: Node) -> str:
    """One line per entry: indentation by depth, then name and first value."""
    lines = []
    for path, node in root.depth_first():
        prefix = "  " * (len(path) - 1)
        name = path[-1]
        extra = len(node.lines) - 1
        suffix = f" (+{extra} line{'s' if extra > 1 else ''})" if extra > 0 else ""
        if node.lines:
            lines.append(f"{prefix}{name}: {node.value()}{suffix}")
        else:
            lines.append(f"{prefix}{name}")
    return "\n".join(lines)


def format_error(error: ParseError, filename: str | None) -> str:
    where = filename or "<stdin>"
    return f"{where}:{error.line}:{error.column}: {error}"


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # Read content
    try:
        content, filename = read_input(parsed.file)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    try:
        root = parse(content, parsed.duplicates)
    except ParseError as e:
        print(format_error(e, filename), file=sys.stderr)
        return 1

    if parsed.check:
        return 0

    if parsed.path:
        matches = root.find(parsed.path)
        if not matches:
            print(f"Error: No entry at {parsed.path}", file=sys.stderr)
            return 1
        for node in matches:
            for line in node.values():
                print(line)
        return 0

    if parsed.json:
        print(json.dumps(to_dict(root)["entries"], indent=2))
    else:
        output = format_outline(root)
        if output:
            print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
