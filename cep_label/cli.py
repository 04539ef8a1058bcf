"""Command line interface for postal-code lookups and label generation."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

import orjson

from cep_label.clients.viacep import ViaCEPAsyncClient
from cep_label.config import Config, initialize_environment
from cep_label.errors import (
    CepLabelError,
    InvalidCodeError,
    InvalidRangeError,
    LookupConnectionError,
    MissingParameterError,
    NotFoundError,
)
from cep_label.labels import PartyForm, build_party, label_filename, render_label
from cep_label.logging_setup import configure_logging
from cep_label.rendering import JsonLinesBackend, PdfBackend, save_document
from cep_label.resolver import AddressResolver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_INPUT = 2
EXIT_NOT_FOUND = 3
EXIT_CONNECTION = 4

PARTY_FIELDS = (
    ("name", "name", "Full name"),
    ("cep", "postal_code", "Postal code (CEP); blank address fields are looked up"),
    ("street", "street", "Street (logradouro)"),
    ("number", "number", "House number"),
    ("complement", "complement", "Complement"),
    ("neighborhood", "neighborhood", "Neighborhood (bairro)"),
    ("city", "city", "City"),
    ("uf", "region", "State code (UF)"),
)


def _add_party_args(p: argparse.ArgumentParser, role: str) -> None:
    for flag, _, help_text in PARTY_FIELDS:
        p.add_argument(f"--{role}-{flag}", default=None, help=f"{role.title()}: {help_text}")


def _party_form(args: argparse.Namespace, role: str) -> PartyForm:
    return PartyForm(**{
        attr: getattr(args, f"{role}_{flag}") for flag, attr, _ in PARTY_FIELDS
    })


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the command line interface."""
    p = argparse.ArgumentParser(
        description="Brazilian postal-code (CEP) lookup and shipping-label generator")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Defaults to $LOG_LEVEL or INFO.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    cep = sub.add_parser("cep", help="Look up one postal code")
    cep.add_argument("code", help="Postal code, with or without separator")

    street = sub.add_parser("street", help="Look up postal codes by street")
    street.add_argument("uf", help="State code, e.g. SP")
    street.add_argument("city", help="City name")
    street.add_argument("street", help="Street name (at least 3 characters)")

    rng = sub.add_parser("range", help="Look up consecutive postal codes")
    rng.add_argument("start", help="First postal code")
    rng.add_argument("end", help="Last postal code")
    rng.add_argument("--max", type=int, default=None,
                     help="Maximum codes to look up (capped at $CEP_RANGE_LIMIT, default 10)")
    rng.add_argument("--detailed", action="store_true",
                     help="Report every looked-up code, including failures")

    label = sub.add_parser("label", help="Render a sender/recipient label")
    _add_party_args(label, "sender")
    _add_party_args(label, "recipient")
    label.add_argument("--format", choices=["pdf", "jsonl"], default="pdf",
                       help="Output format (default: pdf)")
    label.add_argument("--out", type=Path, default=None,
                       help="Output file (default: $CEP_OUT_DIR/rotulo-<ms>.<format>)")
    label.add_argument("--no-autocomplete", action="store_true",
                       help="Do not fill blank fields from the registry")

    return p


def _emit(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode() + "\n")


def exit_code_for(exc: CepLabelError) -> int:
    """Map an error kind to the process exit status."""
    if isinstance(exc, (InvalidCodeError, MissingParameterError, InvalidRangeError)):
        return EXIT_BAD_INPUT
    if isinstance(exc, NotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(exc, LookupConnectionError):
        return EXIT_CONNECTION
    return 1


async def run_command(args: argparse.Namespace, config: Config, resolver: AddressResolver) -> int:
    """Execute one sub-command against ``resolver``; return the exit status."""
    if args.cmd == "cep":
        address = await resolver.resolve_by_code(args.code)
        _emit(address.to_dict())

    elif args.cmd == "street":
        addresses = await resolver.resolve_by_street(args.uf, args.city, args.street)
        if not addresses:
            logger.warning("No addresses found")
        _emit([a.to_dict() for a in addresses])

    elif args.cmd == "range":
        if args.detailed:
            outcomes = await resolver.resolve_range_detailed(args.start, args.end, args.max)
            _emit([
                {"code": o.code,
                 "address": o.address.to_dict() if o.address else None,
                 "error": o.error}
                for o in outcomes
            ])
        else:
            addresses = await resolver.resolve_range(args.start, args.end, args.max)
            if not addresses:
                logger.warning("No postal code in the range was found")
            _emit([a.to_dict() for a in addresses])

    elif args.cmd == "label":
        lookup = None if args.no_autocomplete else resolver
        sender = await build_party(_party_form(args, "sender"), lookup)
        recipient = await build_party(_party_form(args, "recipient"), lookup)
        backend = PdfBackend() if args.format == "pdf" else JsonLinesBackend()
        data = render_label(sender, recipient, backend, config.page)
        out = args.out or config.out_dir / label_filename(extension=backend.extension)
        await save_document(out, data)
        _emit({"path": str(out), "bytes": len(data)})

    else:
        raise SystemExit(f"Unknown command: {args.cmd}")

    return EXIT_OK


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the command and return the exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    config = await initialize_environment()

    async with ViaCEPAsyncClient(
        api_url=config.api_url,
        request_timeout=config.req_timeout,
        max_retries=config.max_retries,
        backoff_factor=config.backoff_factor,
        max_connections=config.http_max,
    ) as client:
        resolver = AddressResolver(
            client,
            cache_config=config.cache,
            # the resolver bound covers every client retry
            timeout=config.req_timeout * (config.max_retries + 1),
            range_limit=config.range_limit,
        )
        try:
            status = await run_command(args, config, resolver)
        except CepLabelError as exc:
            logger.error("%s", exc)
            status = exit_code_for(exc)

    txt, _ = resolver.metrics.summary()
    logger.debug("\n%s", txt)
    return status


def run(argv: Optional[List[str]] = None) -> None:
    """Console-script entry point."""
    try:
        sys.exit(asyncio.run(main(argv)))
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        sys.exit(130)
