#!/usr/bin/env python3

import argparse
import json
import sys

import httpx

from app.config import settings


def build_request(args: argparse.Namespace) -> tuple[str, str, dict | None]:
    base = f"{settings.base_url}/api/triggers"
    if args.command == "list":
        return "get", base, None
    if args.command == "whitelist":
        return "post", f"{base}/{args.project}/whitelist", {"user": args.user}
    return "post", f"{base}/{args.project}/{args.command}", None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Operate project build triggers")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List active project triggers")
    for command, help_text in (
        ("check", "Check a project's repository now"),
        ("reload", "Restart a project's trigger from stored configuration"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("project")

    whitelist = subparsers.add_parser("whitelist", help="Whitelist a user")
    whitelist.add_argument("project")
    whitelist.add_argument("user")

    args = parser.parse_args(argv)
    method, url, payload = build_request(args)
    headers = {"Authorization": f"Bearer {settings.admin_token}"}

    try:
        with httpx.Client(timeout=180.0) as client:
            response = client.request(method, url, headers=headers, json=payload)
            response.raise_for_status()

        print(json.dumps(response.json(), indent=2))
    except httpx.HTTPStatusError as e:
        print(
            f"HTTP Error {e.response.status_code}: {e.response.text}", file=sys.stderr
        )
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
