#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import websockets

logging.basicConfig(level=logging.INFO)

# ManualClient is the terminal stand-in for the browser table.


@dataclass
class ActContext:
    hand_id: str
    legal: list[str]
    call_amount: Optional[int]
    min_raise: Optional[int]
    max_raise: Optional[int]


class ManualClient:
    def __init__(self, name: str, url: str, mode: str, players: Optional[int]) -> None:
        self.name = name
        self.url = url
        self.mode = mode
        self.players = players
        self.websocket: Optional[Any] = None
        self.seat: Optional[int] = None

    async def run(self) -> None:
        async with websockets.connect(self.url) as ws:
            self.websocket = ws
            hello: Dict[str, Any] = {"type": "hello", "v": 1, "name": self.name, "mode": self.mode}
            if self.players:
                hello["players"] = self.players
            await self._send(hello)
            await self._loop()

    async def _loop(self) -> None:
        assert self.websocket is not None
        while True:
            raw = await self.websocket.recv()
            msg = json.loads(raw)
            msg_type = msg.get("type")
            self._print_message(msg)

            if msg_type == "act":
                await self._handle_act(msg)
            elif msg_type == "session_end":
                break

    async def _handle_act(self, msg: Dict[str, Any]) -> None:
        ctx = ActContext(
            hand_id=msg["hand_id"],
            legal=list(msg.get("legal", [])),
            call_amount=msg.get("call_amount"),
            min_raise=msg.get("min_raise"),
            max_raise=msg.get("max_raise"),
        )
        while True:
            action = self._prompt_action(ctx)
            if action is None:
                continue
            await self._send(action)
            break

    def _prompt_action(self, ctx: ActContext) -> Optional[Dict[str, Any]]:
        choice = input("Action [" + "/".join(ctx.legal) + "] (q=quit): ").strip().upper()
        if not choice:
            choice = "CHECK" if "CHECK" in ctx.legal else "CALL"
            print(f"Using default: {choice}")
        if choice == "Q":
            return {"type": "quit", "v": 1}
        if choice not in ctx.legal:
            print("Illegal selection. Try again.")
            return None

        payload: Dict[str, Any] = {"type": "action", "v": 1, "hand_id": ctx.hand_id, "action": choice}
        if choice == "RAISE":
            amount = self._prompt_raise_amount(ctx)
            if amount is None:
                return None
            payload["amount"] = amount
        return payload

    def _prompt_raise_amount(self, ctx: ActContext) -> Optional[int]:
        assert ctx.min_raise is not None and ctx.max_raise is not None
        value = input(f"Chips to put in [{ctx.min_raise}-{ctx.max_raise}]: ").strip()
        if not value:
            print("Raise cancelled")
            return None
        try:
            amount = int(value)
        except ValueError:
            print("Enter a valid integer")
            return None
        if amount < ctx.min_raise or amount > ctx.max_raise:
            print("Amount out of bounds")
            return None
        return amount

    def _print_message(self, msg: Dict[str, Any]) -> None:
        msg_type = msg.get("type")
        if msg_type == "welcome":
            self.seat = msg.get("seat")
            names = ", ".join(f"{s['seat']}:{s['name']}" for s in msg["table"]["seats"])
            print(f"Seated at {self.seat}; table: {names}; config: {json.dumps(msg['config'])}")
        elif msg_type == "start_hand":
            print(f"\n=== Hand {msg['hand_id']} (button seat {msg['button']})")
        elif msg_type == "act":
            you = msg["you"]
            print(
                f"Board {' '.join(msg['community']) or '-'} | pot {msg['pot']} | "
                f"hole {' '.join(you['hole'])} | chips {you['chips']} | to call {you['to_call']}"
            )
        elif msg_type == "event":
            ev = msg.get("ev")
            if ev == "ACTION":
                suffix = " (all-in)" if msg.get("all_in") else ""
                print(f"{msg['player']}: {msg['action']} {msg['amount'] or ''}{suffix}")
            elif ev == "STREET":
                print(f"{msg['phase']}: {' '.join(msg['community'])}")
            elif ev == "SHOWDOWN":
                for shown in msg["hands"]:
                    print(f"  {shown['player']} shows {' '.join(shown['hole'])} ({shown['hand']})")
            elif ev == "POT_AWARD":
                print(f"{msg['player']} wins {msg['amount']}")
        elif msg_type == "end_hand":
            stacks = ", ".join(f"{entry['seat']}:{entry['stack']}" for entry in msg.get("stacks", []))
            print(f"Stacks: {stacks}")
        elif msg_type == "session_end":
            print("\nFinal standings:")
            for entry in msg["standings"]:
                print(f"  {entry['place']}. {entry['name']} - {entry['final_chips']}")
        elif msg_type == "error":
            print(f"Error {msg['code']}: {msg['msg']}")

    async def _send(self, payload: Dict[str, Any]) -> None:
        assert self.websocket is not None
        await self.websocket.send(json.dumps(payload))


def main() -> None:
    parser = argparse.ArgumentParser(description="Terminal client for the hold'em table server")
    parser.add_argument("--url", default="ws://localhost:8765")
    parser.add_argument("--name", default="Player")
    parser.add_argument("--mode", choices=["casual", "ranked"], default="casual")
    parser.add_argument("--players", type=int, default=None)
    args = parser.parse_args()

    client = ManualClient(args.name, args.url, args.mode, args.players)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
