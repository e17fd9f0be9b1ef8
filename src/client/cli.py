"""Command-line client for the time server's JSON tool endpoint."""

from __future__ import annotations

import argparse
import json

import httpx

# CLI flag -> tool argument name, per tool.
TOOL_ARGS: dict[str, tuple[str, ...]] = {
    "get_time": ("timezone", "format"),
    "format_time": ("timestamp", "format", "timezone"),
    "parse_time": ("time_string", "format", "timezone"),
    "timezone_info": ("timezone", "reference_time"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Call the MCP time server tools")
    parser.add_argument("tool", choices=sorted(TOOL_ARGS), help="Tool name")
    parser.add_argument("--server-url", default="http://localhost:8080", help="Time server base URL")
    parser.add_argument("--timeout", type=float, default=10.0, help="Request timeout seconds")
    parser.add_argument("--timezone", help="IANA timezone name")
    parser.add_argument("--format", help="Time format, e.g. RFC3339 or Unix")
    parser.add_argument("--timestamp", help="Timestamp for format_time (epoch seconds or date-time string)")
    parser.add_argument("--time-string", dest="time_string", help="Time string for parse_time")
    parser.add_argument("--reference-time", dest="reference_time", help="Reference instant for timezone_info")
    parser.add_argument("--verbose", action="store_true", help="Print the full response with trace id")
    return parser


def build_payload(args: argparse.Namespace) -> dict[str, object]:
    payload: dict[str, object] = {}
    for name in TOOL_ARGS[args.tool]:
        value = getattr(args, name)
        if value is None:
            continue
        if name == "timestamp":
            value = _maybe_number(value)
        payload[name] = value
    return payload


def _maybe_number(value: str) -> object:
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def main(argv: list[str] | None = None, client: httpx.Client | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    url = f"{args.server_url}/tools/{args.tool}"
    payload = build_payload(args)

    # Avoid inheriting system proxy settings that can break localhost calls.
    try:
        if client is None:
            with httpx.Client(timeout=args.timeout, trust_env=False) as http:
                resp = http.post(url, json=payload)
        else:
            resp = client.post(url, json=payload)
    except httpx.RequestError as exc:
        print(f"Request failed: {exc}")
        return 1
    if resp.status_code >= 400:
        print(f"Request failed: {resp.status_code}")
        print(resp.text)
        return 1

    data = resp.json()
    if args.verbose:
        print(json.dumps(data, ensure_ascii=False, indent=2))
    elif data.get("ok"):
        print(json.dumps(data.get("data"), ensure_ascii=False, indent=2))
    else:
        error = data.get("error") or {}
        print(f"{error.get('code')}: {error.get('message')}")

    return 0 if data.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
