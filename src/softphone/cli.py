from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

import httpx

from softphone.backend_client import BackendRequestError, VoiceBackendClient


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Command-line client for the voice gateway")
    parser.add_argument(
        "--base-url",
        default=os.getenv("VOICE_GATEWAY_URL", "http://localhost:3001"),
        help="Gateway base URL (env: VOICE_GATEWAY_URL).",
    )
    parser.add_argument("--timeout", type=float, default=30.0)
    sub = parser.add_subparsers(dest="command", required=True)

    token = sub.add_parser("token", help="Request a voice access token.")
    token.add_argument("--identity", required=True)

    sub.add_parser("calls", help="List recent calls.")

    verify = sub.add_parser("verify", help="Request caller-ID verification for a number.")
    verify.add_argument("number")

    events = sub.add_parser("events", help="Show recorded status events.")
    events.add_argument("call_sid", nargs="?")

    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> Any:
    client = VoiceBackendClient(args.base_url, timeout=args.timeout)
    if args.command == "token":
        grant = await client.fetch_token(args.identity)
        return {"identity": grant.identity, "token": grant.token}
    if args.command == "calls":
        return await client.list_calls()
    if args.command == "verify":
        return await client.verify_number(args.number)
    return await client.call_events(args.call_sid)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING"))
    args = _parse_args(argv)
    try:
        result = asyncio.run(_run(args))
    except (BackendRequestError, httpx.HTTPError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
