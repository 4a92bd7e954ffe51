from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from hexsync.core.diagnostics import diagnostics_from_validation
from hexsync.core.document import (
    Decoder,
    DecoderLoadError,
    InputError,
    SnapshotDecoder,
    load_decoder,
    missing_decoder,
    prepare_input,
)
from hexsync.core.nodes import NodeFormatError
from hexsync.core.settings import SettingsError, load_settings_file


def _read(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hexsync", description="Hex/structure highlight sync viewer (Textual)")
    parser.add_argument("path", help="Text file holding hex or base64 input")
    parser.add_argument("--annotations", help="Decoder JSON output for the input")
    parser.add_argument("--decoder", help="Decoder callable as module:function")
    parser.add_argument("--diagnostics", help="Validator JSON output")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for label, p in (
        ("file", args.path),
        ("annotations", args.annotations),
        ("diagnostics", args.diagnostics),
        ("config", args.config),
    ):
        if p is not None and not os.path.exists(p):
            print(f"hexsync: {label} not found: {p}", file=sys.stderr)
            return 2

    try:
        settings = load_settings_file(args.config) if args.config else None
    except SettingsError as e:
        for err in e.errors:
            print(f"hexsync: config: {err}", file=sys.stderr)
        return 2

    text = _read(args.path)
    decoder: Decoder = missing_decoder
    try:
        if args.decoder:
            decoder = load_decoder(args.decoder)
        elif args.annotations:
            decoder = SnapshotDecoder.from_json(prepare_input(text).hex, _read(args.annotations))
    except (DecoderLoadError, NodeFormatError, InputError) as e:
        print(f"hexsync: {e}", file=sys.stderr)
        return 1

    diagnostics = []
    if args.diagnostics:
        try:
            diagnostics = diagnostics_from_validation(json.loads(_read(args.diagnostics)))
        except json.JSONDecodeError as e:
            print(f"hexsync: diagnostics: {e}", file=sys.stderr)
            return 1

    from hexsync.app import HexSyncApp

    app = HexSyncApp(
        text.strip(),
        decoder,
        settings=settings,
        diagnostics=diagnostics,
        title=f"hexsync — {os.path.basename(args.path)}",
    )
    app.run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
