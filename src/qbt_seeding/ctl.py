#!/usr/bin/env python3
"""Control utility for the qBittorrent seeding manager.

Talks to the running daemon through its web API so that every change
goes through the same in-memory tracking table the daemon persists.
"""

import argparse
import json
import os
import sys
from datetime import timedelta
from typing import Any, Dict, Optional

import requests

from .constants import DEFAULT_WEB_PORT
from .utils import format_duration, truncate_name

DEFAULT_URL = f"http://localhost:{DEFAULT_WEB_PORT}"
REQUEST_TIMEOUT = 30


class CtlError(Exception):
    """Raised when the daemon cannot be reached or rejects a request."""


def api_request(base_url: str, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
    """
    Call the daemon's web API.

    Args:
        base_url: Daemon base URL
        method: HTTP method
        path: Path below /api
        payload: Optional JSON body

    Returns:
        Decoded JSON response

    Raises:
        CtlError: On connection failure or a non-2xx response
    """
    url = f"{base_url.rstrip('/')}/api{path}"
    try:
        response = requests.request(method, url, json=payload, timeout=REQUEST_TIMEOUT)
    except requests.ConnectionError:
        raise CtlError(f"cannot connect to qbt-seeding at {base_url}")
    except requests.Timeout:
        raise CtlError(f"request to {url} timed out")
    except requests.RequestException as e:
        raise CtlError(str(e))

    if not response.ok:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        raise CtlError(f"{response.status_code}: {detail}")
    return response.json()


def _duration(seconds: Optional[float]) -> str:
    return format_duration(timedelta(seconds=seconds) if seconds is not None else None)


def format_status(status: Dict[str, Any], detailed: bool = False) -> str:
    """Render a status report for the terminal."""
    lines = [
        f"Seeding multiplier: {status['time_multiplier']:g}x "
        f"(checked every {_duration(status['check_interval'])})",
        f"Service: {'running' if status['service_running'] else 'stopped'}",
        "",
        f"Tracked torrents:  {status['tracked_torrents']}",
        f"  Downloading:     {status['downloading']}",
        f"  Seeding:         {status['active_seeding']}",
        f"  Overdue:         {status['overdue_seeding']}",
        f"  Auto-stopped:    {status['completed_seeding']}",
        f"Total download time: {_duration(status['total_download_time'])}",
        f"Total seeding time:  {_duration(status['total_seeding_time'])}",
    ]

    if detailed and status["details"]:
        lines.append("")
        lines.append(f"{'Hash':<10} {'Phase':<12} {'Seeded':<12} {'Remaining':<12} {'Name'}")
        lines.append("=" * 90)
        for detail in sorted(status["details"].values(), key=lambda d: d["name"].lower()):
            phase = "overdue" if detail["is_overdue"] else detail["phase"]
            lines.append(
                f"{detail['hash'][:8]:<10} {phase:<12} "
                f"{_duration(detail['seeding_duration']):<12} "
                f"{_duration(detail['time_remaining']):<12} "
                f"{truncate_name(detail['name'], 50)}"
            )
    return "\n".join(lines)


def cmd_status(args) -> int:
    """Show seeding status."""
    status = api_request(args.url, "GET", "/seeding/status")
    if args.json:
        print(json.dumps(status, indent=2))
    else:
        print(format_status(status, detailed=args.detailed))
    return 0


def cmd_track(args) -> int:
    """Start tracking a torrent."""
    result = api_request(args.url, "POST", "/seeding/track", {"hash": args.hash, "name": args.name})
    print(result["message"])
    return 0


def cmd_untrack(args) -> int:
    """Stop tracking a torrent."""
    result = api_request(args.url, "DELETE", f"/seeding/track/{args.hash}")
    print(result["message"])
    return 0


def cmd_force_stop(args) -> int:
    """Pause torrents immediately."""
    result = api_request(args.url, "POST", "/seeding/force-stop", {"hashes": args.hashes})
    print(result["message"])
    return 0


def cmd_check(args) -> int:
    """Run a seeding check now."""
    result = api_request(args.url, "POST", "/seeding/check")
    print(result["message"])
    stats = result.get("details") or {}
    if stats:
        print(f"  Checked: {stats['checked']} | Completed: {stats['completed']} | "
              f"Stopped: {stats['stopped']} | Failed: {stats['failed']}")
    return 0 if result["success"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='qbt-seeding-ctl',
        description='Control utility for the qBittorrent seeding manager'
    )
    parser.add_argument('--url', default=os.environ.get('QBT_SEEDING_URL', DEFAULT_URL),
                        help=f'Daemon URL (default: {DEFAULT_URL})')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    status_parser = subparsers.add_parser('status', help='Show seeding status')
    status_parser.add_argument('--detailed', action='store_true', help='List every tracked torrent')
    status_parser.add_argument('--json', action='store_true', help='Print raw JSON')

    track_parser = subparsers.add_parser('track', help='Start tracking a torrent')
    track_parser.add_argument('hash', help='Torrent hash')
    track_parser.add_argument('name', nargs='?', default='', help='Torrent name (optional)')

    untrack_parser = subparsers.add_parser('untrack', help='Stop tracking a torrent')
    untrack_parser.add_argument('hash', help='Torrent hash')

    stop_parser = subparsers.add_parser('force-stop', help='Stop seeding torrents now')
    stop_parser.add_argument('hashes', nargs='+', help='Torrent hashes')

    subparsers.add_parser('check', help='Run a seeding check now')

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Route to appropriate command
    try:
        if args.command == 'status':
            return cmd_status(args)
        elif args.command == 'track':
            return cmd_track(args)
        elif args.command == 'untrack':
            return cmd_untrack(args)
        elif args.command == 'force-stop':
            return cmd_force_stop(args)
        elif args.command == 'check':
            return cmd_check(args)
    except CtlError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
