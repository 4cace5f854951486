#!/usr/bin/env python3
"""
Cozylogs - Minecraft log and crash report analyzer.

Finds log links in a message, retrieves them, extracts facts and runs diagnostic rules.
"""

import argparse
import logging
import sys
from typing import List, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep cozylogs imports lazy (inside functions) so `--help` and the server mode
# don't pay for modules they never use.
#


def _file_urls(paths: List[str]) -> List[str]:
    from pathlib import Path

    return [Path(p).resolve().as_uri() for p in paths]


def analyze_from_cli(
    text: str,
    urls: List[str],
    files: List[str],
    *,
    config_file: Optional[str] = None,
    dump_json: Optional[str] = None,
    show_all: bool = False,
) -> int:
    """
    Analyze logs referenced by `text`, explicit URLs and local files.

    Returns the process exit code: 0 when no analyzed log reports problems, 1 otherwise.
    """
    import json

    from cozylogs.config.remote import ConfigSnapshot, RemoteConfigCache, load_config_file
    from cozylogs.config.settings import load_settings
    from cozylogs.core.models import AnalysisContext
    from cozylogs.dump import is_interesting, log_to_json_dict
    from cozylogs.pipeline.pipeline import analyze
    from cozylogs.report import render_log_report, render_log_title

    settings = load_settings()
    if config_file:
        config = load_config_file(config_file)
    elif settings.config_url:
        cache = RemoteConfigCache(settings.config_url, timeout=settings.fetch_timeout_seconds)
        cache.refresh()
        config = cache.snapshot()
    else:
        config = ConfigSnapshot()

    context = AnalysisContext(event={"source": "cli"}, attributes={"allow_local_files": True})
    logs = analyze(
        text,
        list(urls) + _file_urls(files),
        context,
        config=config,
        max_workers=settings.retrieval_max_workers,
    )
    if not show_all:
        logs = [log for log in logs if is_interesting(log)]

    # Optional JSON dump: emit ONLY JSON on stdout so `> file.json` produces valid JSON.
    if dump_json:
        payload = [log_to_json_dict(log, mode=dump_json) for log in logs]  # type: ignore[arg-type]
        print(json.dumps(payload, indent=2, sort_keys=False))
        return 1 if any(log.has_problems or log.aborted for log in logs) else 0

    if not logs:
        print("No analyzable logs found.")
        return 0

    for log in logs:
        print(f"## {render_log_title(log)}")
        if log.url:
            print(f"<{log.url}>")
        print()
        print(render_log_report(log))
        print()
    return 1 if any(log.has_problems or log.aborted for log in logs) else 0


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Analyze Minecraft logs and crash reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze every log link found in a message
  python main.py analyze --text "my game crashed https://mclo.gs/abc123"

  # Analyze a local crash report
  python main.py analyze --file crash-2024-01-01_00.00.00-client.txt

  # Run the HTTP server
  python main.py serve --port 8080
        """,
    )
    sub = parser.add_subparsers(dest="command")

    p_analyze = sub.add_parser("analyze", help="Analyze logs from text, URLs and local files")
    p_analyze.add_argument("--text", default="", help="Message text to scan for log links ('-' reads stdin)")
    p_analyze.add_argument("--url", action="append", default=[], help="Log URL to analyze (repeatable)")
    p_analyze.add_argument("--file", action="append", default=[], help="Local log file to analyze (repeatable)")
    p_analyze.add_argument("--config-file", help="Local YAML config document instead of the remote one")
    p_analyze.add_argument(
        "--dump-json",
        nargs="?",
        const="summary",
        choices=["summary", "full"],
        help="Print log JSON to stdout instead of the markdown report (default: summary). Use `full` for raw facts.",
    )
    p_analyze.add_argument(
        "--all", dest="show_all", action="store_true", help="Include logs with nothing worth reporting"
    )

    p_serve = sub.add_parser("serve", help="Run the HTTP analysis server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")

    args = parser.parse_args()

    try:
        if args.command == "serve":
            from cozylogs.api.webhook import run as run_server

            run_server(host=args.host, port=args.port)
            return

        if args.command == "analyze":
            text = sys.stdin.read() if args.text == "-" else args.text
            if not text.strip() and not args.url and not args.file:
                p_analyze.error("nothing to analyze: pass --text, --url or --file")
            sys.exit(
                analyze_from_cli(
                    text,
                    args.url,
                    args.file,
                    config_file=args.config_file,
                    dump_json=args.dump_json,
                    show_all=args.show_all,
                )
            )

        # No arguments provided
        parser.print_help()

    except Exception as e:
        print(f"Error during analysis: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
