#!/usr/bin/env python3
"""
AURA CLI - Interactive Mirror

Talk to the mirror and steer the particle timeline from your terminal.

Usage:
    aura                          # Interactive mode
    aura --status                 # Print a JSON snapshot and exit
    aura --config my.yaml         # Use a specific config file
    aura --memory                 # Ephemeral session, nothing persisted
    aura serve --port 8000        # Start the HTTP API

Examples:
    $ aura
    Aura> hello, show me a bit
    Muza Aura hears you. ...
      [EMPATHIC] +1 HyperBit (a1b2c3d4)

    Aura> /rewind
      REPLAY  cursor=12:00:03.100  window=[11:59:50.000, 12:00:13.100]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from aura import __version__
from aura.chrono import TimelineState
from aura.configs import load_config
from aura.errors import AuraError
from aura.service import MirrorSession, create_session, get_updates

logger = logging.getLogger("aura.cli")


def _fmt_ms(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp / 1000).strftime("%H:%M:%S.%f")[:-3]


def format_timeline(state: TimelineState) -> str:
    mode = "LIVE  " if state.is_live else "REPLAY"
    return (
        f"  {mode}  cursor={_fmt_ms(state.cursor_time)}  "
        f"window=[{_fmt_ms(state.min_observed_time)}, {_fmt_ms(state.max_observed_time)}]"
    )


class MirrorCLI:
    """Interactive CLI over a MirrorSession."""

    def __init__(self, session: MirrorSession, name: str = "Aura"):
        self.session = session
        self.name = name
        self.running = True

    def run(self):
        """Run the interactive loop."""
        self.session.open()
        self._print_banner()

        while self.running:
            try:
                user_input = input(f"{self.name}> ").strip()
                if not user_input:
                    continue

                # No background ticker in the REPL; advance time per line
                self.session.tick()

                if user_input.startswith("/"):
                    self.handle_command(user_input)
                else:
                    self.handle_input(user_input)

            except KeyboardInterrupt:
                print("\n")
                self.handle_command("/quit")
            except EOFError:
                print()
                self.handle_command("/quit")

    def _print_banner(self):
        metrics = self.session.metrics
        print()
        print("=" * 60)
        print(f"  {self.name} {__version__} - Cognitive Mirror")
        print("=" * 60)
        print()
        link = "online" if self.session.completion.is_available else "offline (no API key)"
        print(f"  Core link: {link}")
        print(f"  HyperBits: {len(self.session.engine.registry)}")
        print(f"  Resonance: {metrics.resonance} Hz  Coherence: {metrics.coherence}")
        print()
        print("  Type /help for commands, anything else to talk.")
        print()

    def handle_command(self, command: str):
        """Handle a slash command."""
        parts = command.split()
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd in ("/quit", "/exit", "/q"):
            print("Flushing writes...")
            self.session.close()
            print("Goodbye.")
            self.running = False

        elif cmd == "/spawn":
            record = self.session.spawn()
            print(f"  +1 HyperBit ({record.id[:8]}) at {record.initial_position.as_tuple()}")

        elif cmd == "/vector":
            if len(args) != 3:
                print("  Usage: /vector X Y Z")
                return
            try:
                x, y, z = (float(a) for a in args)
            except ValueError:
                print("  Coordinates must be numbers")
                return
            vector = self.session.set_spawn_vector(x, y, z)
            print(f"  Spawn vector: {vector.as_tuple()}")

        elif cmd == "/scrub":
            if len(args) != 1:
                print("  Usage: /scrub SECONDS_AGO")
                return
            try:
                seconds_ago = float(args[0])
            except ValueError:
                print("  SECONDS_AGO must be a number")
                return
            target = self.session.timeline_state.max_observed_time - seconds_ago * 1000
            print(format_timeline(self.session.scrub(target)))

        elif cmd == "/rewind":
            print(format_timeline(self.session.rewind()))

        elif cmd == "/live":
            print(format_timeline(self.session.resume_live()))

        elif cmd == "/toggle":
            print(format_timeline(self.session.toggle_live()))

        elif cmd == "/status":
            self._show_status()

        elif cmd == "/frame":
            self._show_frame()

        elif cmd == "/dream":
            prompt = " ".join(args) or None
            image = self.session.dream(prompt)
            if image is None:
                print("  The dream did not manifest.")
            else:
                print(f"  Dream manifested ({len(image)} bytes of data URI).")

        elif cmd == "/updates":
            self._show_updates()

        elif cmd == "/json":
            print(json.dumps(self.session.snapshot(), indent=2, default=str))

        elif cmd == "/help":
            self._show_help()

        else:
            print(f"Unknown command: {cmd}")
            print("Type /help for available commands.")

    def handle_input(self, user_input: str):
        """Send a chat turn."""
        result = self.session.handle_command(user_input)
        if result is None:
            return

        print()
        print(result.reply.text)
        print()

        ribbon = [f"[{result.mode.value}]"]
        if result.spawned is not None:
            ribbon.append(f"+1 HyperBit ({result.spawned.id[:8]})")
        if result.dream_requested:
            ribbon.append("dream requested: /dream to manifest")
        print(f"  {' '.join(ribbon)}")
        if result.reply.introspection:
            print(f"  ~ {result.reply.introspection}")
        print()

    def _show_status(self):
        metrics = self.session.metrics
        topology = self.session.topology
        print()
        print(format_timeline(self.session.timeline_state))
        print()
        print(f"  HyperBits: {len(self.session.engine.registry)}")
        print(f"  Stability: {metrics.stability}  Coherence: {metrics.coherence}")
        print(f"  Entropy: {metrics.entropy}  Resonance: {metrics.resonance} Hz")
        print(f"  Active nodes: {topology.active_nodes}  Mode: {topology.dominant_mode.value}")
        if topology.shadow_context:
            print(f"  Shadow: {' | '.join(topology.shadow_context[-5:])}")
        print()

    def _show_frame(self):
        print()
        for view in self.session.frame():
            if not view.visible:
                print(f"  {view.id[:8]}  (not yet born)")
                continue
            p = view.position
            print(
                f"  {view.id[:8]}  ({p.x:8.2f}, {p.y:8.2f}, {p.z:8.2f})  "
                f"{view.freshness.value}"
            )
        print()

    def _show_updates(self):
        print()
        for update in get_updates():
            print(f"  {update.version}  {update.date}  {update.title}")
            for feature in update.features:
                print(f"    - {feature}")
        print()

    def _show_help(self):
        print()
        print("Commands:")
        print("  /spawn            - Materialise a HyperBit at the spawn vector")
        print("  /vector X Y Z     - Set the spawn vector (clamped to +-100)")
        print("  /scrub SECONDS    - Replay the instant SECONDS before now")
        print("  /rewind           - Step the cursor back")
        print("  /live             - Resume live")
        print("  /toggle           - Toggle live/replay")
        print("  /status           - Timeline and metrics")
        print("  /frame            - Particle positions at the cursor")
        print("  /dream [PROMPT]   - Manifest a dream image")
        print("  /updates          - Release notes")
        print("  /json             - Full snapshot as JSON")
        print("  /quit             - Exit (flushes writes)")
        print()


def build_session(args: argparse.Namespace) -> MirrorSession:
    config = load_config(args.config) if args.config else load_config()
    if args.memory:
        config.storage.backend = "memory"
    if args.data_dir:
        config.storage.data_dir = args.data_dir
    return create_session(config)


def serve(session: MirrorSession, host: str, port: int) -> None:
    try:
        import uvicorn
    except ImportError:
        print("The HTTP API needs the server extra: pip install aura-mirror[server]")
        sys.exit(1)

    from aura.api import create_app

    uvicorn.run(create_app(session), host=host, port=port)


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(
        description="AURA CLI - Interactive cognitive mirror",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    aura                        # Start interactive mode
    aura --status               # Show snapshot and exit
    aura serve --port 8000      # Start the HTTP API
        """
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Config file (default: search ~/.aura, ~/.config/aura, cwd)"
    )

    parser.add_argument(
        "--data-dir",
        default=None,
        help="Override storage.data_dir"
    )

    parser.add_argument(
        "--memory",
        action="store_true",
        help="Keep records in memory only"
    )

    parser.add_argument(
        "--status", "-s",
        action="store_true",
        help="Print a JSON snapshot and exit"
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from config)"
    )

    subparsers = parser.add_subparsers(dest="command")
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    try:
        session = build_session(args)
    except AuraError as e:
        print(f"Error: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=(args.log_level or session.config.log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "serve":
        serve(session, args.host, args.port)
        return

    if args.status:
        with session:
            print(json.dumps(session.snapshot(), indent=2, default=str))
        return

    MirrorCLI(session).run()


if __name__ == "__main__":
    main()
