"""Command-line entry point: re-format a JSON document."""

from __future__ import annotations

import logging
import sys

from .context import NameCase, SerializationContext, apply_case
from .parse import parse
from .serialize import Serializer
from .tokens import JsonError

CASES: list[str] = [c.value for c in NameCase]

USAGE: str = """\
shapejson [OPTIONS] [INPUT] [-o OUTPUT]

Options:
  --pretty            Indent output, one member per line
  --case CASE         Rename object keys: none, camel, pascal, snake
  --escape-unicode    Escape non-ASCII characters as \\uXXXX
  -o, --output FILE   Write output to FILE instead of stdout
  -v, --verbose       Log debug messages to stderr
  --help              Show this help message
"""


class Options:
    """Parsed command-line options."""

    def __init__(self) -> None:
        self.pretty: bool = False
        self.case: NameCase = NameCase.NONE
        self.escape_unicode: bool = False
        self.verbose: bool = False
        self.input_file: str | None = None
        self.output_file: str | None = None


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(output + "\n")
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output)
    return 0


def _rename_keys(tree: object, case: NameCase) -> object:
    """Apply a name case to every object key of a parsed tree."""
    if isinstance(tree, dict):
        return {apply_case(k, case): _rename_keys(v, case) for k, v in tree.items()}
    if isinstance(tree, list):
        return [_rename_keys(v, case) for v in tree]
    return tree


def reformat(source: str, options: Options) -> tuple[int, str]:
    """Parse and re-serialize a document. Returns (exit_code, output)."""
    if source.strip() == "":
        return (0, "")
    try:
        tree = parse(source)
    except JsonError as e:
        print("error:" + str(e.line) + ":" + str(e.col) + ": " + e.msg, file=sys.stderr)
        return (1, "")
    if options.case is not NameCase.NONE:
        tree = _rename_keys(tree, options.case)
    context = SerializationContext(pretty=options.pretty, escape_unicode=options.escape_unicode)
    return (0, Serializer(context).serialize(tree))


def parse_args(args: list[str]) -> Options:
    """Parse command-line arguments."""
    options = Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--pretty":
            options.pretty = True
            i += 1
        elif arg == "--escape-unicode":
            options.escape_unicode = True
            i += 1
        elif arg == "--verbose" or arg == "-v":
            options.verbose = True
            i += 1
        elif arg == "--case":
            if i + 1 >= len(args):
                print("error: --case requires an argument", file=sys.stderr)
                sys.exit(2)
            if args[i + 1] not in CASES:
                print("error: unknown case '" + args[i + 1] + "'", file=sys.stderr)
                sys.exit(2)
            options.case = NameCase(args[i + 1])
            i += 2
        elif arg == "-o" or arg == "--output":
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                sys.exit(2)
            options.output_file = args[i + 1]
            i += 2
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if options.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            options.input_file = None if arg == "-" else arg
            i += 1
    return options


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    options = parse_args(sys.argv[1:] if argv is None else argv)
    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    source, err = read_source(options.input_file)
    if err != 0:
        return err
    exit_code, output = reformat(source, options)
    if exit_code != 0:
        return exit_code
    if len(output) > 0:
        return write_output(output, options.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
