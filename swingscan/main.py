"""SwingScan — application entry point.

Boots the FastAPI server and provides the CLI entry point for one-off
scans (``scan``) and the HTTP service (``serve``).
"""

import logging

from fastapi import FastAPI

from swingscan.api.routers import router

app = FastAPI(title="SwingScan API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("swingscan")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


def build_scanner(config):
    """Wire the default collaborators from *config*.

    Returns ``(scanner, universe_resolver)``.
    """
    from swingscan.market.universe import JsonUniverseResolver
    from swingscan.market.yahoo_client import YahooChartClient
    from swingscan.scanner import Scanner

    retry = config.retry_policy()
    provider = YahooChartClient(
        base_url=config.data_base_url,
        timeout_s=config.http_timeout_s,
        retry_policy=retry,
    )
    resolver = JsonUniverseResolver(config.universe_file)
    scanner = Scanner(
        provider,
        resolver,
        settings=config.scanner_settings(),
        retry_policy=retry,
    )
    return scanner, resolver


# ── CLI ──────────────────────────────────────────────────────────────────


def _build_parser():
    import argparse

    parser = argparse.ArgumentParser(description="SwingScan equity screener")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Run a scan and print the ranked results")
    scan.add_argument("symbols", nargs="*", help="Symbols to scan, e.g. RELIANCE.NS")
    scan.add_argument("--universe", help="Universe name (default: NIFTY50)")
    scan.add_argument("--preset", choices=["quick", "deep"], help="Option preset")
    scan.add_argument("--days", type=int, help="Bars of history to fetch")
    scan.add_argument("--min-score", type=float, help="Minimum score to report")
    scan.add_argument("--max-results", type=int, help="Maximum results to report")
    scan.add_argument("--interval", help="Bar interval (default: 1d)")
    scan.add_argument(
        "--no-indicators",
        action="store_true",
        help="Omit the indicator snapshot from results",
    )
    scan.add_argument("--csv", metavar="PATH", help="Write results to a CSV file")
    scan.add_argument("--json", action="store_true", help="Print the full JSON report")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--port", type=int, help="Listen port (default: HEALTH_PORT)")
    return parser


def _options_from_args(args):
    from dataclasses import replace

    from swingscan.models.scan import ScanOptions

    if args.preset == "quick":
        options = ScanOptions.quick()
    elif args.preset == "deep":
        options = ScanOptions.deep()
    else:
        options = ScanOptions()

    overrides = {}
    if args.days is not None:
        overrides["days"] = args.days
    if args.min_score is not None:
        overrides["min_score"] = args.min_score
    if args.max_results is not None:
        overrides["max_results"] = args.max_results
    if args.interval is not None:
        overrides["interval"] = args.interval
    if args.no_indicators:
        overrides["include_indicators"] = False
    return replace(options, **overrides)


def _run_scan_command(args, config) -> int:
    import asyncio
    import json

    from swingscan.errors import SwingScanError
    from swingscan.export import errors_to_frame, report_to_frame

    scanner, _ = build_scanner(config)
    stocks = args.symbols or args.universe or "NIFTY50"
    options = _options_from_args(args)

    try:
        report = asyncio.run(scanner.scan(stocks, options))
    except SwingScanError as exc:
        logger.error("Scan aborted: %s", exc)
        return 2

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        frame = report_to_frame(report)
        if frame.empty:
            print("No stocks met the minimum score.")
        else:
            print(frame.to_string(index=False))
        print(
            f"\nScanned {report.total_scanned}: {report.successful} ok, "
            f"{report.failed} failed, {report.qualified_stocks} qualified "
            f"in {report.execution_time_s:.1f}s"
        )
        if report.errors:
            print("\nFailed symbols:")
            print(errors_to_frame(report).to_string(index=False))

    if args.csv:
        report_to_frame(report).to_csv(args.csv, index=False)
        logger.info("Results written to %s", args.csv)
    return 0


def _run_server(config, port: int) -> None:
    import uvicorn

    from swingscan.api.routers import configure_routers

    scanner, resolver = build_scanner(config)
    configure_routers(scanner=scanner, universe_resolver=resolver)
    logger.info("Starting SwingScan API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=config.log_level.lower())


def _run_cli(argv=None) -> int:
    """Parse CLI arguments and dispatch to the chosen command."""
    from swingscan.config import load_config

    args = _build_parser().parse_args(argv)
    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "serve":
        _run_server(config, args.port or config.health_port)
        return 0
    return _run_scan_command(args, config)


if __name__ == "__main__":
    raise SystemExit(_run_cli())
