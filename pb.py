#!/usr/bin/env python3
"""pb - Protocol Buffers utility.

Usage:
  pb [-v] [-I <dir>]... [-F <file>]... ls [<descriptor_type>...]
  pb [-v] [-I <dir>]... [-F <file>]... decode [--in=<type>] [<message>]
  pb -h | --help
  pb --version

Commands:
  ls                        List loaded top-level descriptors.
                                Types: files, messages (msg), services (svc).
  decode                    Decode a message read from stdin as a JSON string.

Options:
  -h --help                 Show this screen.
  --version                 Show version.
  -I <dir>, --proto_path=<dir>
                            Import path. Repeatable, or comma-separated.
  -F <file>, --proto_file=<file>
                            Proto file to load. Repeatable, or comma-separated.
  --in=<type>               Input type, "bin" or "base64" [default: bin].
  -v --verbose              Log diagnostics to stderr.

"""

__version__ = "0.1.0"

import logging
import sys

from docopt import DocoptExit, docopt

import decoder
import lister
import loader
from errors import PbError, UsageError


logger = logging.getLogger("pb")

LOG_FORMAT = "pb: %(levelname)s: %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> logging.Handler:
    """Attach a stderr handler to the root logger, DEBUG when verbose and WARNING otherwise."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler


def run_ls(schema: loader.Schema, args: dict) -> None:
    for name in lister.list_descriptors(schema, args["<descriptor_type>"]):
        print(name)


def run_decode(schema: loader.Schema, args: dict) -> None:
    if not args["<message>"]:
        raise UsageError("specify fully-qualified message name")

    output = decoder.decode(schema.registry, args["<message>"], sys.stdin.buffer, args["--in"])
    print(output)


def cli_main(argv: list[str] | None = None) -> int:
    try:
        args = docopt(__doc__, argv=argv, version=f"pb {__version__}")
    except DocoptExit as e:
        print(f"pb: {e}", file=sys.stderr)
        return 1

    handler = setup_logging(args["--verbose"])

    try:
        schema = loader.load(args["--proto_path"], args["--proto_file"])

        if args["ls"]:
            logger.debug("listing %s", ", ".join(args["<descriptor_type>"]) or "nothing")
            run_ls(schema, args)
        elif args["decode"]:
            logger.debug("decoding %s from %s input", args["<message>"], args["--in"])
            run_decode(schema, args)
    except PbError as e:
        print(f"pb: {e}", file=sys.stderr)
        return 1
    finally:
        logging.getLogger().removeHandler(handler)

    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(cli_main())
