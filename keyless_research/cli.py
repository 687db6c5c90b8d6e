#!/usr/bin/env python3
"""
Command-line entry point for Keyless Research.
"""

import argparse
import json
import os
import sys
import logging

from .core.config import load_env_files, setup_logging

# Load environment variables from the closest .env.local then .env
load_env_files()

# Import after loading env vars so RESEARCH_* defaults are picked up
from .web.ingest import result_to_entries
from .web.pipeline import ResearchEngine
from .web.types import InvalidTopicError, ResearchError


def _print_result(result) -> None:
    if result.not_found:
        print(f"No readable content found for: {result.topic}")
        return
    print(result.summary)
    print()
    print("Sources:")
    for i, src in enumerate(result.sources, start=1):
        print(f"  [{i}] {src}")


def _cmd_research(args) -> int:
    logger = logging.getLogger(__name__)
    engine = ResearchEngine()
    try:
        result = engine.research(
            args.topic,
            max_pages=args.max_pages,
            max_time_seconds=args.max_time,
            deep=not args.shallow,
        )
    except InvalidTopicError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except ResearchError as e:
        logger.error("research failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        engine.close()
    if args.entries:
        print(json.dumps(result_to_entries(result), ensure_ascii=False, indent=2))
    elif args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_result(result)
    return 0


def _cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "keyless_research.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyless-research",
        description="Keyless web research: search, crawl and extract readable content without API keys",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s research "python asyncio gather"             # Crawl with default budget
  %(prog)s research "react hooks" --max-pages 5 --json   # JSON output
  %(prog)s research "Lisbon" --shallow                   # Cache/dictionary only
  %(prog)s research "sqlite wal" --entries              # Knowledge entries as JSON
  %(prog)s serve --port 8080                             # Run the HTTP API
        """
    )
    parser.add_argument('--log-level',
                       default=os.getenv('LOG_LEVEL', 'INFO'),
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                       help='Set logging level')
    parser.add_argument('--version',
                       action='version',
                       version='%(prog)s 0.3.0')
    sub = parser.add_subparsers(dest='command', required=True)

    p_research = sub.add_parser('research', help='Research a topic and print the summary and sources')
    p_research.add_argument('topic', help='Free-text topic to research')
    p_research.add_argument('--max-pages',
                            type=float,
                            default=None,
                            help='Maximum pages to extract (default: RESEARCH_DEFAULT_MAX_PAGES)')
    p_research.add_argument('--max-time',
                            type=float,
                            default=None,
                            help='Wall-clock budget in seconds (default: RESEARCH_DEFAULT_MAX_TIME_S)')
    p_research.add_argument('--shallow',
                            action='store_true',
                            help='Skip the crawl; answer from cache or dictionary only')
    p_research.add_argument('--json',
                            action='store_true',
                            help='Print the full result as JSON')
    p_research.add_argument('--entries',
                            action='store_true',
                            help='Print one knowledge entry per source as JSON (title, content, tags, source)')
    p_research.set_defaults(func=_cmd_research)

    p_serve = sub.add_parser('serve', help='Run the HTTP API with uvicorn')
    p_serve.add_argument('--host', default=os.getenv('RESEARCH_API_HOST', '127.0.0.1'), help='Host to bind to')
    p_serve.add_argument('--port', type=int, default=int(os.getenv('RESEARCH_API_PORT', '8000') or 8000), help='Port to bind to')
    p_serve.add_argument('--reload', action='store_true', help='Enable auto-reload')
    p_serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv=None) -> int:
    """Main entry point for the keyless-research CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
