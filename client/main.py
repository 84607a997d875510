"""
Terminal client for Connect6.

Usage:
    python -m client.main [--host HOST] [--port PORT] [--name NAME]

Prints game events as they arrive and reads commands from stdin.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from client.config import settings
from client.network.client import Connect6Client
from shared.constants import OPPONENT_DISCONNECTED
from shared.enums import Cell
from shared.protocol import (
    BoardEvent,
    CurrentTurnEvent,
    GameEvent,
    RoleEvent,
    StatusEvent,
    WinnerEvent,
)


HELP_TEXT = """
Commands:
  move <x> <y>  - Place a stone at column x, row y
  rematch       - Ask for another game
  board         - Show the board again
  help          - Show this help
  quit          - Disconnect and exit
"""


def render_board(rows: tuple[tuple[Cell, ...], ...]) -> str:
    """Text rendering with column and row indices."""
    size = len(rows)
    lines = ["    " + " ".join(f"{x:>2}" for x in range(size))]
    for y, row in enumerate(rows):
        lines.append(f"{y:>2}  " + " ".join(f"{cell.value:>2}" for cell in row))
    return "\n".join(lines)


class TerminalClient:
    """Interactive terminal front-end over Connect6Client."""

    def __init__(self, url: str, player_name: str):
        self.player_name = player_name
        self.client = Connect6Client(
            url=url,
            on_event=self._print_event,
            on_error=lambda message: print(f"  ✗ Error: {message}"),
        )
        self.running = True
        self.wins = 0
        self.losses = 0

    def _print_event(self, event: GameEvent) -> None:
        """Print a received event nicely."""
        if isinstance(event, StatusEvent):
            print(f"  → {event.text}")
        elif isinstance(event, RoleEvent):
            print(f"  → You play {event.color.value}")
        elif isinstance(event, BoardEvent):
            print(render_board(event.rows))
        elif isinstance(event, CurrentTurnEvent):
            if event.player_id == self.player_name:
                print(f"  → Your turn ({self.client.role.value if self.client.role else '?'})")
            else:
                print(f"  → {event.player_id}'s turn")
        elif isinstance(event, WinnerEvent):
            self._print_winner(event.winner)

    def _print_winner(self, winner: str) -> None:
        if self.client.role is None:
            # Not seated in this game, only watching
            print(f"  → Game over! Winner: {winner}")
            return

        if self.client.won_last_game():
            self.wins += 1
        else:
            self.losses += 1

        if winner == OPPONENT_DISCONNECTED:
            print("  → Opponent disconnected, you win. Waiting for a new game...")
        else:
            print(f"  → Game over! Winner: {winner}")
            print("  → Type 'rematch' to play again")
        print(f"  → Score: {self.wins} won, {self.losses} lost")

    async def run_interactive(self) -> None:
        """Run interactive command loop."""
        print(HELP_TEXT)

        loop = asyncio.get_running_loop()
        while self.running and self.client.is_connected:
            try:
                cmd = await loop.run_in_executor(
                    None, lambda: input(f"[{self.player_name}]> ").strip()
                )
            except EOFError:
                break

            if not cmd:
                continue

            parts = cmd.split()
            await self._handle_command(parts[0].lower(), parts[1:])

        if self.client.is_connected:
            await self.client.disconnect()

    async def _handle_command(self, command: str, args: list[str]) -> None:
        """Handle a user command."""
        if command == "quit":
            self.running = False
            await self.client.disconnect()
            print("Disconnected.")

        elif command == "move":
            if len(args) != 2 or not all(a.lstrip("-").isdigit() for a in args):
                print("Usage: move <x> <y>")
                return
            if not self.client.is_my_turn:
                print("  ✗ Not your turn")
                return
            response = await self.client.make_move(int(args[0]), int(args[1]))
            self._print_response(response)

        elif command == "rematch":
            response = await self.client.request_rematch()
            self._print_response(response)

        elif command == "board":
            if self.client.board:
                print(render_board(self.client.board))
            else:
                print("No game in progress")

        elif command == "help":
            print(HELP_TEXT)

        else:
            print(f"Unknown command: {command}")

    @staticmethod
    def _print_response(response: Optional[dict]) -> None:
        if response is None:
            return
        data = response.get("data", {})
        if data.get("success"):
            print(f"  ✓ {data.get('message')}")
        else:
            print(f"  ✗ {data.get('message')} ({data.get('code')})")


async def main_async(args: argparse.Namespace) -> int:
    player_name = args.name
    if not player_name:
        player_name = input("Enter your name: ").strip()
    if not player_name:
        print("A player name is required")
        return 1

    url = f"ws://{args.host}:{args.port}"
    print(f"Connecting to {url}...")

    terminal = TerminalClient(url, player_name)
    if not await terminal.client.connect(player_name):
        print("Failed to connect to server")
        return 1

    await terminal.run_interactive()
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Connect6 Terminal Client")
    parser.add_argument("--host", default=settings.server_host, help="Server host")
    parser.add_argument("--port", type=int, default=settings.server_port, help="Server port")
    parser.add_argument("--name", default=None, help="Player name")
    parser.add_argument("--verbose", action="store_true", help="Log network activity")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
