"""
Schema dump entry point.
Imports entity modules, which compiles their entities, and prints the
generated naming tables and update statements as JSON.

    python main.py app.schemas --entity User
"""

import argparse
import importlib
import json
import logging
import sys

from config import LOG_CONFIG
from schema_compiler import COMPILER, SchemaError


# Configure logging
logging.basicConfig(
    level=LOG_CONFIG["level"],
    format=LOG_CONFIG["format"],
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Dump compiled PostgreSQL entity schemas"
    )
    parser.add_argument("modules", nargs="+", help="Modules declaring entities")
    parser.add_argument(
        "--entity",
        action="append",
        default=[],
        help="Only dump this entity (repeatable)"
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation")
    return parser


def dump_schemas(modules, entities=None) -> dict:
    """Import modules and describe the requested (or all) entities."""
    for module in modules:
        importlib.import_module(module)
        logger.debug(f"Imported {module}")

    names = entities or sorted(COMPILER.schemas)
    return {name: COMPILER.describe(name) for name in names}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        schemas = dump_schemas(args.modules, args.entity)
    except (ImportError, ValueError, SchemaError) as e:
        logger.error(f"Schema dump failed: {e}")
        return 1

    print(json.dumps(schemas, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
