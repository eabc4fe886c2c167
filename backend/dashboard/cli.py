"""CLI for the change detection dashboard.

Usage:
    dashboard serve --port 8080
    dashboard send-test-webhook --url http://localhost:8080/api/webhook
    dashboard watchers
    dashboard systeminfo
"""

import argparse
import asyncio
import json
import logging
import sys

import httpx

SAMPLE_WEBHOOK = [
    {
        "headers": {
            "host": "localhost:8080",
            "user-agent": "changedetection.io",
            "content-type": "application/json",
        },
        "params": {},
        "query": {},
        "body": {
            "version": "1.0",
            "title": "https://www.example.com/product/test-product-123",
            "message": (
                "<del>Old price: $99.99</del>\n"
                "**New price: $79.99** \n"
                "**20% discount applied!**\n"
                "---\n\n"
                "[[Watch URL](https://www.example.com/product/test-product-123)] "
                "[[Diff URL](https://changedetection.example.com/diff/test-uuid)] "
                "[[Edit](https://changedetection.example.com/edit/test-uuid#general)]"
            ),
            "attachments": [
                {
                    "filename": "last-screenshot.png",
                    "base64": "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg==",
                    "mimetype": "image/png",
                }
            ],
            "type": "info",
        },
    }
]


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _cmd_serve(args):
    """Run the dashboard with uvicorn."""
    import uvicorn

    from dashboard.config import settings

    uvicorn.run(
        "dashboard.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


async def _cmd_send_test_webhook(args):
    """Post the sample notification to a running dashboard."""
    print(f"Sending test webhook to {args.url}", file=sys.stderr)
    async with httpx.AsyncClient(timeout=args.timeout) as client:
        resp = await client.post(args.url, json=SAMPLE_WEBHOOK)

    if resp.is_error:
        print(f"Webhook failed: HTTP {resp.status_code} {resp.text}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(resp.json(), indent=2))


async def _cmd_watchers(args):
    """List watches from changedetection.io, as the proxy mode shows them."""
    from dashboard.config import settings
    from dashboard.services.changedetection import ChangeDetectionClient

    async with ChangeDetectionClient.from_settings(settings) as client:
        watchers = await client.list_watchers()

    if args.output == "json":
        print(json.dumps([w.model_dump(mode="json", by_alias=True) for w in watchers], indent=2))
    else:
        for w in watchers:
            updated = w.updated_at.isoformat() if w.updated_at else "never"
            state = "paused" if w.paused else "active"
            print(f"{w.id}  {state:<6}  {w.change_count:>4}  {updated}  {w.title}")


async def _cmd_systeminfo(args):
    from dashboard.config import settings
    from dashboard.services.changedetection import ChangeDetectionClient

    async with ChangeDetectionClient.from_settings(settings) as client:
        info = await client.get_system_info()
    print(json.dumps(info, indent=2))


def main():
    parser = argparse.ArgumentParser(
        prog="dashboard",
        description="Change detection dashboard: serve the UI/API and talk to changedetection.io",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-o", "--output", default="text",
        choices=["json", "text"],
        help="Output format (default: text)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # --- serve ---
    serve_parser = subparsers.add_parser("serve", help="Run the dashboard server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT setting)")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    # --- send-test-webhook ---
    hook_parser = subparsers.add_parser(
        "send-test-webhook", help="Post a sample change notification"
    )
    hook_parser.add_argument(
        "--url", default="http://localhost:8080/api/webhook", help="Webhook endpoint"
    )
    hook_parser.add_argument("--timeout", type=float, default=10.0, help="Timeout in seconds")

    # --- watchers / systeminfo ---
    subparsers.add_parser("watchers", help="List changedetection.io watches")
    subparsers.add_parser("systeminfo", help="Show changedetection.io system info")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _setup_logging(args.verbose)

    if args.command == "serve":
        _cmd_serve(args)
    elif args.command == "send-test-webhook":
        asyncio.run(_cmd_send_test_webhook(args))
    elif args.command == "watchers":
        asyncio.run(_cmd_watchers(args))
    elif args.command == "systeminfo":
        asyncio.run(_cmd_systeminfo(args))


if __name__ == "__main__":
    main()
