"""Entry point: python -m oasbridge

  generate CONTRACT [-o DIR]           contract -> DIR/client.py
  enrich CONTRACT SYMBOLS [-o FILE]    symbol manifest -> examples in the contract

CONTRACT is a JSON/YAML file or an http(s) URL. Diagnostics are logged;
the exit status is 1 when any error diagnostic was reported and 2 when
the contract or the symbol manifest cannot be read.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .codegen import generate
from .config import MappingConfig
from .diagnostics import DiagnosticAccumulator
from .driver import build_fragments, enrich_contract
from .loader import ContractLoadError, load_contract, save_contract
from .symbols import SymbolLoadError, load_symbols

logger = logging.getLogger("oasbridge")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oasbridge", description="Map OpenAPI contracts to Python types and back.")
    parser.add_argument("--log-level", help="logging level (default from OASBRIDGE_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="generate a typed client from a contract")
    gen.add_argument("contract")
    gen.add_argument("-o", "--output", type=Path, default=Path("generated"))
    gen.add_argument("--client-name", help="class name of the generated client")
    gen.add_argument(
        "--nilable-optional", action="store_true", default=None,
        help="treat nilable parameters as optional",
    )

    enrich = sub.add_parser("enrich", help="copy source examples into a contract")
    enrich.add_argument("contract")
    enrich.add_argument("symbols", type=Path)
    enrich.add_argument("-o", "--output", type=Path, help="output file (default: overwrite CONTRACT)")
    return parser


def _config(args: argparse.Namespace) -> MappingConfig:
    config = MappingConfig.from_env()
    if args.log_level:
        config = replace(config, log_level=args.log_level.upper())
    if getattr(args, "client_name", None):
        config = replace(config, client_name=args.client_name)
    if getattr(args, "nilable_optional", None):
        config = replace(config, treat_nilable_as_optional=True)
    return config


def _finish(diagnostics: DiagnosticAccumulator) -> int:
    diagnostics.report(logger)
    return 1 if diagnostics.has_errors() else 0


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    config = _config(args)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        document = load_contract(args.contract)
    except ContractLoadError as exc:
        logger.error("%s", exc)
        return 2

    if args.command == "generate":
        fragments, diagnostics = build_fragments(document, config)
        generate(fragments, args.output, config)
        return _finish(diagnostics)

    if args.contract.startswith(("http://", "https://")) and args.output is None:
        logger.error("enrich needs --output when the contract is a URL")
        return 2
    try:
        symbols = load_symbols(args.symbols)
    except SymbolLoadError as exc:
        logger.error("%s", exc)
        return 2
    diagnostics = enrich_contract(document, symbols)
    save_contract(document, args.output or Path(args.contract))
    return _finish(diagnostics)


if __name__ == "__main__":
    sys.exit(main())
