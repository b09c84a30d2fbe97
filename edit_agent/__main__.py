"""Command line entry point.

Usage:
    # Run the API server
    python -m edit_agent serve --port 8000

    # Edit an image against a running server
    python -m edit_agent edit "add sunglasses" portrait.png --max-iterations 3 -o out.png
"""

import argparse
import asyncio
import sys
from pathlib import Path

from .client import EditAgentClient
from .models.events import ErrorEvent, EvaluationEvent, ImageEvent, StatusEvent
from .models.schemas import SessionView
from .utils.errors import ImageEditAgentError
from .utils.images import base64_to_bytes


def _print_event(event, view: SessionView):
    if isinstance(event, StatusEvent):
        print(f"  {event.message}")
    elif isinstance(event, ImageEvent):
        print(f"[Iteration {event.iteration + 1}] candidate received")
    elif isinstance(event, EvaluationEvent):
        verdict = "Accepted" if event.is_acceptable else "Needs refinement"
        print(f"[Iteration {event.iteration + 1}] {verdict}")
        if event.feedback:
            print(f"  Feedback: {event.feedback.strip()[:300]}")
    elif isinstance(event, ErrorEvent):
        print(f"ERROR: {event.message}")


async def _run_edit(args: argparse.Namespace) -> int:
    images = [(path.name, path.read_bytes()) for path in args.images]

    async with EditAgentClient(base_url=args.server) as client:
        view = await client.run_edit(
            args.prompt,
            images,
            max_iterations=args.max_iterations,
            on_event=_print_event,
        )

    accepted = view.accepted_iteration
    print()
    if view.error:
        print(f"Session failed: {view.error}")
    elif accepted is not None:
        print(f"Accepted at iteration {accepted + 1}")
    else:
        # Completed without any accepted candidate.
        print(f"No candidate accepted after {len(view.iterations)} iterations")

    image = view.iterations[accepted].image if accepted is not None else view.latest_image
    if image and args.output:
        args.output.write_bytes(base64_to_bytes(image))
        print(f"Image saved: {args.output}")

    return 0 if accepted is not None else 1


def main():
    parser = argparse.ArgumentParser(
        prog="edit_agent",
        description="Iterative image edit agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", "-p", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    edit_parser = subparsers.add_parser("edit", help="Edit images via a running server")
    edit_parser.add_argument("prompt", type=str, help="Edit instruction")
    edit_parser.add_argument(
        "images",
        nargs="+",
        type=Path,
        help="Images; the first is edited, the rest are references",
    )
    edit_parser.add_argument("--max-iterations", "-m", type=int, default=None)
    edit_parser.add_argument("--server", "-s", default="http://localhost:8000")
    edit_parser.add_argument("--output", "-o", type=Path, default=Path("edited.png"))

    args = parser.parse_args()

    if args.command == "serve":
        from .main import run_server
        run_server(host=args.host, port=args.port, reload=args.reload)
    elif args.command == "edit":
        try:
            sys.exit(asyncio.run(_run_edit(args)))
        except ImageEditAgentError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(2)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
