#!/usr/bin/env python3
"""
Design Critic command line

Usage:
    design-critic analyze --file screenshot.png
    design-critic analyze --url https://example.com
    design-critic show RESULT_ID
    design-critic serve --port 8000
"""

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from design_critic.analyzer.pipeline import build_pipeline, build_store
from design_critic.api.intake import build_request
from design_critic.config import Settings
from design_critic.exceptions import DesignCriticError


def _analyze(args, settings: Settings) -> int:
    if args.file:
        path = Path(args.file)
        if not path.is_file():
            print(f"❌ File not found: {path}", file=sys.stderr)
            return 1
        content_type = mimetypes.guess_type(path.name)[0]
        request = build_request(
            "screenshot",
            filename=path.name,
            content_type=content_type,
            data=path.read_bytes(),
            max_upload_bytes=settings.MAX_UPLOAD_BYTES,
        )
    else:
        # Local runs opt in to URL capture explicitly
        settings = settings.model_copy(update={"ALLOW_URL_INPUT": True})
        request = build_request("url", value=args.url, allow_url_input=True)

    pipeline = build_pipeline(settings)
    result_id = asyncio.run(pipeline.analyze(request))
    print(result_id)
    return 0


def _show(args, settings: Settings) -> int:
    stored = build_store(settings).get(args.result_id)
    if stored is None:
        print(f"❌ Analysis not found: {args.result_id}", file=sys.stderr)
        return 1
    print(json.dumps(stored.result.model_dump(mode="json", by_alias=True), indent=2))
    return 0


def _serve(args, settings: Settings) -> int:
    import uvicorn

    uvicorn.run("design_critic.main:app", host=args.host, port=args.port, timeout_keep_alive=60)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="design-critic",
        description="Critique website designs with a vision model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a screenshot or URL")
    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Screenshot image to analyze")
    source.add_argument("--url", help="Website URL to capture and analyze")

    show = subparsers.add_parser("show", help="Print a stored analysis")
    show.add_argument("result_id", help="Identifier returned by analyze")

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    load_dotenv()
    settings = Settings()

    handlers = {"analyze": _analyze, "show": _show, "serve": _serve}
    try:
        return handlers[args.command](args, settings)
    except DesignCriticError as e:
        print(f"❌ {e.public_message} ({str(e)})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
