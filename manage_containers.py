#!/usr/bin/env python3
"""Manage Atlas network containers and private IP mode from the shell.

Each sub-command performs exactly one Atlas API call through
``atlas_containers.py`` and prints the decoded result as JSON.  A failed
call prints the Atlas error and exits non-zero; nothing is retried.

Usage
-----
::

    python manage_containers.py list --provider AWS
    python manage_containers.py get 5b8f1a...
    python manage_containers.py create --provider AWS --cidr 10.8.0.0/21 --region US_EAST_1
    python manage_containers.py update 5b8f1a... --cidr 10.8.8.0/21
    python manage_containers.py delete 5b8f1a...
    python manage_containers.py private-ip status
    python manage_containers.py private-ip enable
    python manage_containers.py --project 5a0a1e... private-ip disable

Environment Variables (in .env)
-------------------------------
Credentials (one pair required; the service account wins if both are set):
    atlas_organization_Client_ID, atlas_organization_Client_Secret
    atlas_public_key, atlas_private_key

Optional:
    atlas_group_id          Project to operate on (or pass --project)
    atlas_base_url          API root (default: Atlas v1.0)
    LOG_LEVEL               Logging level for the API modules (default: WARNING)
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from atlas_api import BASE, AtlasAPI, AtlasOrgAPI
from atlas_containers import AWS, AZURE, GCP, AtlasClient, Container, PrivateIPMode

BASE_DIR = Path(__file__).resolve().parent


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _banner(msg: str) -> None:
    """Print a section banner to stderr, keeping stdout pure JSON."""
    line = "=" * 60
    print(f"\n{line}\n  {msg}\n{line}", file=sys.stderr)


def _get_api():
    """Build a transport from environment variables.

    Returns:
        AtlasOrgAPI when service account credentials are present,
        otherwise AtlasAPI.
    """
    base_url = os.environ.get("atlas_base_url", "").strip() or BASE
    client_id = os.environ.get("atlas_organization_Client_ID", "").strip()
    client_secret = os.environ.get("atlas_organization_Client_Secret", "").strip()
    if client_id and client_secret:
        return AtlasOrgAPI(client_id, client_secret, base_url=base_url)

    public_key = os.environ.get("atlas_public_key", "").strip()
    private_key = os.environ.get("atlas_private_key", "").strip()
    if public_key and private_key:
        return AtlasAPI(public_key, private_key, base_url=base_url)

    sys.exit("Missing Atlas credentials: set atlas_organization_Client_ID/"
             "atlas_organization_Client_Secret or atlas_public_key/"
             "atlas_private_key in .env")


def _to_json(value):
    """Render a decoded value with Atlas wire keys."""
    if value is None:
        return None
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    if isinstance(value, PrivateIPMode):
        # to_dict() drops a False flag; status output always shows it.
        return {"enabled": value.enabled}
    return value.to_dict()


def _report(result) -> int:
    """Print a call result.  Returns the process exit code."""
    if not result.ok:
        print(f"  [error] {result.error}", file=sys.stderr)
        return 1
    value = _to_json(result.value)
    if value is None:
        print("  OK", file=sys.stderr)
    else:
        print(json.dumps(value, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Atlas network containers and private IP mode")
    parser.add_argument("--project", default="",
                        help="Project (group) ID (default: atlas_group_id)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List containers for one provider")
    p.add_argument("--provider", default=AWS, choices=[AWS, GCP, AZURE])

    p = sub.add_parser("get", help="Show one container")
    p.add_argument("container_id")

    p = sub.add_parser("create", help="Create a container")
    p.add_argument("--provider", default=AWS, choices=[AWS, GCP, AZURE])
    p.add_argument("--cidr", required=True, help="Atlas CIDR block")
    p.add_argument("--region", default="", help="Region name (AWS/Azure)")

    p = sub.add_parser("update", help="Change fields of a container")
    p.add_argument("container_id")
    p.add_argument("--provider", default="", choices=["", AWS, GCP, AZURE])
    p.add_argument("--cidr", default="")
    p.add_argument("--region", default="")

    p = sub.add_parser("delete", help="Delete a container")
    p.add_argument("container_id")

    p = sub.add_parser("private-ip", help="Private IP mode of the project")
    p.add_argument("action", choices=["status", "enable", "disable"])
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one Atlas call and print the outcome."""
    args = _build_parser().parse_args(argv)

    load_dotenv(BASE_DIR / ".env")
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
    )

    group_id = args.project or os.environ.get("atlas_group_id", "").strip()
    if not group_id:
        sys.exit("Missing project: pass --project or set atlas_group_id in .env")

    client = AtlasClient(_get_api())
    containers = client.containers

    if args.command == "list":
        _banner(f"{args.provider} containers in project {group_id}")
        result = containers.list(group_id, args.provider)
    elif args.command == "get":
        result = containers.get(group_id, args.container_id)
    elif args.command == "create":
        result = containers.create(group_id, Container(
            provider_name=args.provider,
            atlas_cidr_block=args.cidr,
            region_name=args.region,
        ))
    elif args.command == "update":
        result = containers.update(group_id, args.container_id, Container(
            provider_name=args.provider,
            atlas_cidr_block=args.cidr,
            region_name=args.region,
        ))
    elif args.command == "delete":
        result = containers.delete(group_id, args.container_id)
    else:
        mode = client.private_ip_mode
        if args.action == "enable":
            result = mode.enable_private_ip_mode(group_id)
        elif args.action == "disable":
            result = mode.disable_private_ip_mode(group_id)
        else:
            result = mode.get_private_ip_mode(group_id)

    return _report(result)


if __name__ == "__main__":
    sys.exit(main())
