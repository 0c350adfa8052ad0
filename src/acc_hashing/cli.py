"""Command-line utilities for acc_hashing."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path

from .digest import to_hex
from .hashing import (
    hash_access_control_conditions,
    hash_conditions,
    hash_evm_contract_conditions,
    hash_resource_id,
    hash_sol_rpc_conditions,
    hash_unified_access_control_conditions,
)
from .logging_pipeline import configure_logging
from .settings import get_settings

HASHERS: dict[str, Callable[[object], bytes]] = {
    "auto": hash_conditions,  # type: ignore[dict-item]
    "acc": hash_access_control_conditions,
    "evm-contract": hash_evm_contract_conditions,
    "sol-rpc": hash_sol_rpc_conditions,
    "unified": hash_unified_access_control_conditions,
    "resource-id": hash_resource_id,
}


def _read_stdin() -> str | None:
    """Read JSON payload from stdin if available."""
    try:
        if sys.stdin and not sys.stdin.isatty():
            return sys.stdin.read()
    except OSError as e:
        print(f"Error reading stdin: {e}", file=sys.stderr)
    return None


def _load_json(path: str | None, stdin_payload: str | None) -> object:
    """Load JSON data from file or stdin."""
    if path:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    if stdin_payload:
        return json.loads(stdin_payload)
    raise ValueError("No input provided. Use --input or pipe JSON via stdin.")


def main(argv: list[str] | None = None) -> int:
    """Hash access control conditions or a resource id."""
    parser = argparse.ArgumentParser(
        description="Hash access control conditions or a signing resource id."
    )
    parser.add_argument(
        "--input",
        "-i",
        help="Path to a JSON file. If omitted, reads from stdin.",
    )
    parser.add_argument(
        "--kind",
        "-k",
        choices=sorted(HASHERS),
        default="auto",
        help=(
            "Shape of the input. 'auto' expects an object holding one of "
            "accessControlConditions, evmContractConditions, solRpcConditions "
            "or unifiedAccessControlConditions."
        ),
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Quiet mode: suppress output, just return exit code.",
    )

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    teardown = None
    try:
        teardown = configure_logging(get_settings())
        stdin_payload = None if args.input else _read_stdin()
        data = _load_json(args.input, stdin_payload)
        digest = HASHERS[args.kind](data)

        if not args.quiet:
            print(
                json.dumps(
                    {"kind": args.kind, "hash": to_hex(digest)},
                    separators=(",", ":"),
                )
            )
        return 0

    except Exception as exc:
        if not args.quiet:
            print(str(exc), file=sys.stderr)
        return 1
    finally:
        if teardown is not None:
            teardown()


if __name__ == "__main__":
    raise SystemExit(main())
