"""luajs CLI — transpile a Lua file to a JavaScript file."""

from __future__ import annotations

import json
import os
import sys

from .parse import ParseError, Parser
from .pipeline import TranspileError, transpile
from .serialize import program_to_list, tokens_to_list
from .tokens import LexError, tokenize

PHASES: list[str] = ["lex", "parse"]

USAGE: str = """\
luajs [OPTIONS] INPUT OUTPUT

Transpile the Lua program in INPUT to JavaScript and write it to OUTPUT.
Missing directories in OUTPUT's path are created.

Options:
  --stop-at PHASE     Stop after phase and write it as JSON: lex, parse
  --help              Show this help message
"""


def parse_args(args: list[str]) -> tuple[str | None, list[str]]:
    """Parse command-line arguments. Returns (stop_at, paths); exits on bad usage."""
    stop_at: str | None = None
    paths: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("error: --stop-at requires an argument", file=sys.stderr)
                sys.exit(2)
            stop_at = args[i + 1]
            i += 2
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            paths.append(arg)
            i += 1
    if stop_at is not None and stop_at not in PHASES:
        print("error: unknown phase '" + stop_at + "'", file=sys.stderr)
        sys.exit(2)
    if len(paths) != 2:
        print("error: expected INPUT and OUTPUT paths", file=sys.stderr)
        print(USAGE, end="", file=sys.stderr)
        sys.exit(2)
    return stop_at, paths


def read_source(input_file: str) -> tuple[str, int]:
    """Read source from file. Returns (source, exit_code) where exit_code 0 means OK."""
    try:
        with open(input_file, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("error: " + input_file + ": No such file or directory", file=sys.stderr)
        return ("", 1)
    except OSError as e:
        print("error: cannot open '" + input_file + "': " + str(e), file=sys.stderr)
        return ("", 1)
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("error: " + input_file + ": invalid utf-8", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str) -> int:
    """Write output to file, creating parent directories. Returns 0 on success, 1 on error."""
    directory = os.path.dirname(output_file)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(output)
    except OSError as e:
        print("error: cannot write '" + output_file + "': " + str(e), file=sys.stderr)
        return 1
    return 0


def run_phases(source: str, stop_at: str) -> str:
    """Run the pipeline up to stop_at and return its result as JSON."""
    try:
        tokens = tokenize(source)
        if stop_at == "lex":
            return json.dumps(tokens_to_list(tokens), indent=2)
        statements = Parser(tokens).parse_program()
    except (LexError, ParseError) as e:
        raise TranspileError(e) from e
    return json.dumps(program_to_list(statements), indent=2)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    stop_at, paths = parse_args(argv if argv is not None else sys.argv[1:])
    input_file, output_file = paths
    source, err = read_source(input_file)
    if err != 0:
        return err
    try:
        if stop_at is not None:
            output = run_phases(source, stop_at)
        else:
            output = transpile(source)
    except TranspileError as e:
        print("error: " + str(e), file=sys.stderr)
        return 1
    err = write_output(output, output_file)
    if err != 0:
        return err
    print("transpiled " + input_file + " -> " + output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
