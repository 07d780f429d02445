"""REPL for Voice Canvas CLI."""

import asyncio
import json

import httpx

from backend.services.orchestrator import Orchestrator
from canvas_cli.client import ApiClient, error_detail
from engine.kernel.memory_host import MemoryDocument
from engine.kernel.types import ExecuteResult


class Repl:
    """
    Interactive REPL against a local in-memory document.

    Transcripts compile through the orchestrator's compiler (real provider or
    mock), or on a remote server when a client is given. Actions always run
    locally.
    """

    def __init__(self, orchestrator: Orchestrator, client: ApiClient | None = None, document: MemoryDocument | None = None):
        self.orchestrator = orchestrator
        self.client = client
        self.document = document or MemoryDocument()
        self.loop = asyncio.new_event_loop()
        self.running = True
        self.verbose = False

    def start(self):
        """Start the REPL."""
        print("canvas > Say what to draw. /help for commands.")

        while self.running:
            try:
                line = input("canvas > ").strip()

                if not line:
                    continue

                if line.startswith("/"):
                    self._handle_command(line)
                else:
                    self._run_transcript(line)

            except (EOFError, KeyboardInterrupt):
                print()
                break
            except Exception as e:
                print(f"Error: {e}")

        self.loop.close()
        if self.client:
            self.client.close()

    def _handle_command(self, line: str):
        """Handle REPL commands."""
        parts = line.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else None

        if cmd == "/quit":
            self.running = False
            print("Goodbye.")
        elif cmd == "/tree":
            print(self.document.render_tree())
        elif cmd == "/selection":
            self._show_selection()
        elif cmd == "/actions":
            if arg:
                self._run_actions(arg)
            else:
                print("Usage: /actions <json>")
        elif cmd == "/verbose":
            self.verbose = not self.verbose
            print(f"  Diagnostics {'on' if self.verbose else 'off'}")
        elif cmd == "/help":
            self._show_help()
        else:
            print(f"Unknown command: {cmd}")
            print("Type /help for available commands.")

    def _run_transcript(self, text: str):
        """Compile a transcript and execute it on the local document."""
        if self.client:
            try:
                actions = self.client.compile(text)
            except httpx.HTTPStatusError as e:
                print(f"  Error: {error_detail(e)}")
                return
            except httpx.HTTPError as e:
                print(f"  Error: could not reach server: {e}")
                return
            result = self.loop.run_until_complete(self.orchestrator.execute_actions(actions, self.document))
        else:
            outcome = self.loop.run_until_complete(self.orchestrator.process_transcript(text, self.document))
            result = outcome["result"]
            if outcome["batch"] is not None and self.verbose:
                print(f"  \033[2m{json.dumps(outcome['batch'].to_dict())}\033[0m")

        self._flush_notifications()
        if result is not None and self.verbose:
            self._show_diagnostics(result)

    def _run_actions(self, raw: str):
        """Execute a literal JSON action list (or {"actions": [...]}) without compiling."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            print(f"  Invalid JSON: {e}")
            return
        actions = data.get("actions", []) if isinstance(data, dict) else data
        if not isinstance(actions, list):
            print("  Expected a list of actions")
            return

        result = self.loop.run_until_complete(self.orchestrator.execute_actions(actions, self.document))
        self._flush_notifications()
        if self.verbose:
            self._show_diagnostics(result)

    def _flush_notifications(self):
        for message in self.document.notifications:
            print(f"  \033[32mcanvas:\033[0m {message}")
        self.document.notifications.clear()

    def _show_diagnostics(self, result: ExecuteResult):
        for d in result.diagnostics:
            print(f"  \033[33m[{d.index}] {d.code}\033[0m {d.message}")

    def _show_selection(self):
        selection = self.document.get_selection()
        if not selection:
            print("  Nothing selected.")
            return
        for node in selection:
            print(f"  {node.type} {node.id} {node.name!r}")

    def _show_help(self):
        """Show help message."""
        print("""
  REPL Commands:
    /tree            - Show the document tree
    /selection       - Show the current selection
    /actions <json>  - Execute actions directly, skipping the compiler
    /verbose         - Toggle compiled actions and diagnostics output
    /help            - Show this help
    /quit            - Exit REPL
""")
