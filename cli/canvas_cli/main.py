"""Main entry point for Voice Canvas CLI."""
from __future__ import annotations

import sys

import httpx

from backend.services.command_compiler import CommandCompiler
from backend.services.orchestrator import Orchestrator
from canvas_cli import __version__
from canvas_cli.client import ApiClient, error_detail
from canvas_cli.repl import Repl
from engine.kernel.mock_llm import MockLLM


def print_help():
    """Print help message."""
    print(f"""
Voice Canvas CLI v{__version__}

Usage:
  canvas [options]                         Start the REPL
  canvas send --plugin ID <transcript>     Queue a transcript for a plugin

Options:
  --mock            Compile with golden replies instead of a live model
  --api-url URL     Compile on a running server instead of locally
  --plugin ID       Plugin id for 'send'
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  ANTHROPIC_API_KEY     Key for local compilation (COMPILER_PROVIDER=anthropic)
  OPENAI_API_KEY        Key for local compilation (COMPILER_PROVIDER=openai)

Examples:
  canvas --mock                                             # Try it offline
  canvas --api-url http://localhost:8000                    # Use a local server
  canvas send --plugin abc --api-url http://localhost:8000 "make a red square"

REPL Commands:
  /tree             Show the document tree
  /selection        Show the current selection
  /actions <json>   Execute actions directly
  /verbose          Toggle diagnostics
  /help             Show REPL help
  /quit             Exit REPL
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (send, None for REPL)
        api_url: str | None
        plugin_id: str | None
        mock: bool
        words: list[str] (transcript words for 'send')
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "api_url": None,
        "plugin_id": None,
        "mock": False,
        "words": [],
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "send" and result["command"] is None:
            result["command"] = "send"
        elif arg == "--api-url":
            if i + 1 < len(args):
                result["api_url"] = args[i + 1]
                i += 1
            else:
                print("Error: --api-url requires a URL")
                sys.exit(1)
        elif arg == "--plugin":
            if i + 1 < len(args):
                result["plugin_id"] = args[i + 1]
                i += 1
            else:
                print("Error: --plugin requires an ID")
                sys.exit(1)
        elif arg == "--mock":
            result["mock"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'canvas --help' for usage.")
            sys.exit(1)
        elif result["command"] == "send":
            result["words"].append(arg)
        else:
            print(f"Unknown command: {arg}")
            print("Run 'canvas --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def send(api_url: str | None, plugin_id: str | None, transcript: str) -> bool:
    """Queue a transcript on the server for a plugin to pick up."""
    if not api_url or not plugin_id or not transcript:
        print("Error: send needs --api-url, --plugin and a transcript")
        return False

    client = ApiClient(api_url)
    try:
        queued = client.send_command(plugin_id, transcript)
        print(f"Queued {queued['id']} for {plugin_id} ({queued['pending']} pending)")
        return True
    except httpx.HTTPStatusError as e:
        print(f"Error: {error_detail(e)}")
        return False
    except httpx.HTTPError as e:
        print(f"Error: could not reach server: {e}")
        return False
    finally:
        client.close()


def build_orchestrator(mock: bool) -> Orchestrator:
    """Orchestrator with a mock or live compiler."""
    compiler = CommandCompiler(llm=MockLLM()) if mock else CommandCompiler()
    return Orchestrator(compiler)


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle help and version first
    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"canvas-cli {__version__}")
        return

    if args["command"] == "send":
        success = send(args["api_url"], args["plugin_id"], " ".join(args["words"]))
        sys.exit(0 if success else 1)

    client = ApiClient(args["api_url"]) if args["api_url"] else None
    repl = Repl(build_orchestrator(args["mock"]), client=client)
    repl.start()


if __name__ == "__main__":
    main()
