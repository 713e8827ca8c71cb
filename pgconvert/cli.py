"""Command line interface for pgconvert."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from pgconvert.config import (
    apply_logging_overrides,
    configure_logging,
    load_config,
    validate_config,
)
from pgconvert.converter import ConversionOrchestrator, get_model_identifier
from pgconvert.llm import (
    ChatModelFactory,
    check_connection,
    model_factory_from_config,
)
from pgconvert.models import ConversionKind
from pgconvert.session import ConversionSession, default_output_name, describe_failure

logger = logging.getLogger("pgconvert")

KIND_CHOICES = {
    "mybatis": ConversionKind.MYBATIS_MAPPER,
    "function": ConversionKind.FUNCTION_OR_PROCEDURE,
    "sql": ConversionKind.SQL_QUERY,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgconvert",
        description="Convert Oracle SQL, PL/SQL routines and MyBatis mappers to PostgreSQL.",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", help="Override logging level (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", help="Write logs to this file as well")

    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert one or more files (or stdin)")
    convert.add_argument(
        "inputs",
        nargs="*",
        metavar="INPUT",
        help="Files to convert; '-' or nothing reads stdin",
    )
    convert.add_argument(
        "-k",
        "--kind",
        choices=sorted(KIND_CHOICES),
        default="sql",
        help="What the input contains (default: sql)",
    )
    destination = convert.add_mutually_exclusive_group()
    destination.add_argument("-o", "--output", help="Output file (single input only)")
    destination.add_argument("--output-dir", help="Directory for converted files")

    sub.add_parser("model", help="Print the model identifier used for conversions")
    sub.add_parser("check", help="Test the connection to the model API")
    return parser


def _read_inputs(paths: List[str]) -> List[tuple]:
    if not paths or paths == ["-"]:
        return [(None, sys.stdin.read())]
    return [(path, Path(path).read_text(encoding="utf-8")) for path in paths]


async def _run_convert(args, config: dict, model_factory: ChatModelFactory) -> int:
    kind = KIND_CHOICES[args.kind]
    inputs = _read_inputs(args.inputs)
    if args.output and len(inputs) > 1:
        print("--output accepts a single input; use --output-dir instead", file=sys.stderr)
        return 2

    output_dir = args.output_dir or config["output"]["dir"]
    session = ConversionSession(
        ConversionOrchestrator(model_factory),
        timeout=config["llm"]["timeout_seconds"],
    )

    failures = 0
    written = set()
    total = len(inputs)
    for idx, (path, content) in enumerate(inputs, start=1):
        source_name = Path(path).name if path else None
        logger.info("[%d/%d] Converting %s as %s", idx, total, path or "<stdin>", kind.value)
        outcome = await session.submit(kind, content, source_name=source_name)
        if not outcome.ok:
            failures += 1
            print(f"{path or '<stdin>'}: {describe_failure(outcome)}", file=sys.stderr)
            continue

        if args.output:
            target = Path(args.output)
        elif output_dir:
            target = Path(output_dir) / default_output_name(kind, source_name)
        else:
            print(outcome.text)
            continue
        if target.resolve() in written:
            failures += 1
            print(
                f"{path or '<stdin>'}: {target} was already written in this run; not overwriting",
                file=sys.stderr,
            )
            continue
        written.add(target.resolve())
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(outcome.text + "\n", encoding="utf-8")
        logger.info("[%d/%d] Written %s", idx, total, target)

    logger.info("Converted %d of %d input(s)", len(session.history), total)
    return 1 if failures else 0


async def _run_check(config: dict, model_factory: Optional[ChatModelFactory]) -> int:
    status = await check_connection(config, model_factory)
    if status.ok:
        print("Connection OK")
        return 0
    print(f"Connection failed: {status.message}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None, model_factory: Optional[ChatModelFactory] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = validate_config(apply_logging_overrides(load_config(args.config), args))
    except (ValueError, OSError, yaml.YAMLError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    configure_logging(config)

    if args.command == "model":
        print(get_model_identifier())
        return 0
    if args.command == "check":
        return asyncio.run(_run_check(config, model_factory))
    return asyncio.run(
        _run_convert(args, config, model_factory or model_factory_from_config(config))
    )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
