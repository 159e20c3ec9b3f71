# ================================================================================
# Browser Automation CLI
# ================================================================================
#
# Command line entry point for the automation engine.
#
# Usage:
#   browser-automation serve --port 3002
#   browser-automation search "bio tab" --app cv-builder --limit 5
#   browser-automation validate --app cv-builder --url http://localhost:3000 --strict
#   browser-automation sessions
#   browser-automation cleanup --days 7
#
# ================================================================================

import argparse
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from browser_automation.common import AutomationError, Settings, init_logger
from browser_automation.framework.browser_manager import BrowserManager
from browser_automation.framework.navigation import PageNavigator
from browser_automation.framework.screenshots import ScreenshotManager
from browser_automation.maps.element_map import ElementMapRepository
from browser_automation.maps.element_search import DEFAULT_THRESHOLD, search_elements
from browser_automation.maps.element_validator import DEFAULT_VALIDATION_TIMEOUT, validate_element_map


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from browser_automation.server import AutomationContext, create_app

    app = create_app(AutomationContext.from_settings(settings))
    uvicorn.run(
        app,
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
    )
    return 0


def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    app = args.app or settings.default_app
    element_map = ElementMapRepository(settings.element_maps_dir).load(app)
    results = search_elements(element_map.flatten(), args.query, threshold=args.threshold, limit=args.limit)

    if not results:
        print(f"No elements match '{args.query}' in {app}")
        return 1

    for result in results:
        element = result.element
        print(f"{result.score:.3f}  {element.path:<40} {element.selector}")
        print(f"       {element.description}")
    return 0


async def _validate(args: argparse.Namespace, settings: Settings) -> int:
    app = args.app or settings.default_app
    element_map = ElementMapRepository(settings.element_maps_dir).load(app)

    async with BrowserManager(settings) as manager:
        page = await manager.get_page()
        await PageNavigator(page, settings.navigation_timeout).navigate(args.url)
        result = await validate_element_map(page, element_map, strict=args.strict, timeout=args.timeout)

    print("\n" + "=" * 60)
    print(f"ELEMENT MAP VALIDATION: {app}")
    print("=" * 60)
    print(f"Total Elements: {result.total_elements}")
    print(f"Passed:         {result.passed_elements} ✅")
    print(f"Warnings:       {result.warning_elements} ⚠️")
    print(f"Errors:         {result.error_elements} ❌")
    if result.timed_out:
        print("Timed out before every element was checked")
    for issue in result.issues:
        print(f"  [{issue.severity.value}] {issue.element}: {issue.message}")
    print("=" * 60 + "\n")
    return 0 if result.valid else 1


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    return asyncio.run(_validate(args, settings))


def cmd_sessions(args: argparse.Namespace, settings: Settings) -> int:
    sessions = ScreenshotManager(settings.screenshots_dir).list_sessions()
    if not sessions:
        print(f"No screenshot sessions in {settings.screenshots_dir}")
        return 0
    for session in sessions:
        manifest = "manifest" if session.has_manifest else "no manifest"
        print(f"{session.id}  {session.screenshot_count:>3} screenshot(s)  ({manifest})")
    return 0


def cmd_cleanup(args: argparse.Namespace, settings: Settings) -> int:
    days = args.days if args.days is not None else settings.screenshot_max_age_days
    removed = ScreenshotManager(settings.screenshots_dir).cleanup_old_sessions(days)
    print(f"Removed {len(removed)} session(s) older than {days} day(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="browser-automation",
        description="Browser automation engine for UI testing",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the control API")
    serve.add_argument("--host", help="Bind address (default: server.host)")
    serve.add_argument("--port", type=int, help="Port (default: server.port)")
    serve.set_defaults(handler=cmd_serve)

    search = subparsers.add_parser("search", help="Fuzzy search the element map")
    search.add_argument("query", help="Free text, e.g. 'bio tab'")
    search.add_argument("--app", help="Application name (default: maps.default_app)")
    search.add_argument("--limit", type=int, default=10, help="Maximum results (default: 10)")
    search.add_argument("--threshold", type=float, default=DEFAULT_THRESHOLD, help="Match tolerance 0-1")
    search.set_defaults(handler=cmd_search)

    validate = subparsers.add_parser("validate", help="Validate the element map against a live page")
    validate.add_argument("--app", help="Application name (default: maps.default_app)")
    validate.add_argument("--url", required=True, help="Page to validate against")
    validate.add_argument("--strict", action="store_true", help="Fail on warnings too")
    validate.add_argument(
        "--timeout", type=int, default=DEFAULT_VALIDATION_TIMEOUT, help="Total budget in ms"
    )
    validate.set_defaults(handler=cmd_validate)

    sessions = subparsers.add_parser("sessions", help="List screenshot sessions")
    sessions.set_defaults(handler=cmd_sessions)

    cleanup = subparsers.add_parser("cleanup", help="Delete old screenshot sessions")
    cleanup.add_argument("--days", type=int, help="Maximum age in days (default: screenshots.max_age_days)")
    cleanup.set_defaults(handler=cmd_cleanup)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    init_logger(level="DEBUG" if args.verbose else None)
    settings = Settings.from_config()

    try:
        return args.handler(args, settings)
    except AutomationError as e:
        logger.error(e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
