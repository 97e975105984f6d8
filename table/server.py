from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass, replace
from http import HTTPStatus
from typing import Any, Dict, List, Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve

from holdem.errors import IllegalActionError
from holdem.models import MODE_STARTING_STACKS, GameMode, TableConfig
from holdem.session import GameSession, create_table
from holdem.store import KeyValueStore, ResultsRecorder

LOGGER = logging.getLogger("table_server")

# TableServer glues one GameSession per connection to a WebSocket client.
# Every network concern lives here; the engine stays pure.

_MESSAGE_TYPES = {
    "HAND_START": "start_hand",
    "HAND_END": "end_hand",
    "SESSION_END": "session_end",
}


class TableServerError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


def _config_payload(config: TableConfig) -> Dict[str, Any]:
    return {
        "mode": config.mode.value,
        "starting_stack": config.starting_stack,
        "sb": config.sb,
        "bb": config.bb,
        "max_players": config.max_players,
    }


async def _send_error(websocket: Any, code: str, msg: str) -> None:
    await websocket.send(json.dumps({"v": 1, "type": "error", "code": code, "msg": msg}))


@dataclass
class HumanClient:
    name: str
    websocket: Any

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))


class TableSession:
    """Handles one sit-down game: the remote human plus AI opponents."""

    def __init__(
        self,
        config: TableConfig,
        client: HumanClient,
        num_players: Optional[int] = None,
        store: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.num_players = num_players
        self.store = store
        self.rng = rng or random.Random()
        self.outbox: List[Dict[str, object]] = []
        self.session: Optional[GameSession] = None

    async def run(self) -> None:
        listeners = [self.outbox.append]
        if self.store is not None:
            listeners.append(ResultsRecorder(self.store, self.config.mode, self.config.starting_stack))
        self.session = create_table(
            human_name=self.client.name,
            num_players=self.num_players,
            rng=self.rng,
            listeners=listeners,
            config=self.config,
        )
        seat = self.session.human_seat()
        await self.client.send_json(
            {
                "type": "welcome",
                "seat": seat,
                "config": _config_payload(self.config),
                "table": self.session.engine.table_state(seat),
            }
        )
        await self._flush()

        while self.session.awaiting_human():
            await self._prompt_human()
            await self._flush()

    def abandon(self) -> None:
        if self.session is not None:
            self.session.abandon()

    async def _prompt_human(self) -> None:
        assert self.session is not None
        seat = self.session.human_seat()
        assert seat is not None
        await self.client.send_json({"type": "act", **self.session.engine.act_payload(seat)})
        while True:
            message = await self._read_message()
            if message.get("type") == "quit":
                raise TableServerError("QUIT", "Player left the table")
            if message.get("type") != "action":
                continue
            try:
                self.session.submit_action(message.get("action"), message.get("amount"))
            except IllegalActionError as exc:
                # Nothing changed; ask again with the same options.
                await _send_error(self.client.websocket, exc.code, exc.msg)
                await self.client.send_json({"type": "act", **self.session.engine.act_payload(seat)})
                continue
            return

    async def _read_message(self) -> Dict[str, Any]:
        while True:
            raw = await self.client.websocket.recv()
            try:
                message = json.loads(raw)
            except ValueError:
                await _send_error(self.client.websocket, "BAD_JSON", "Messages must be JSON objects")
                continue
            if isinstance(message, dict):
                return message
            await _send_error(self.client.websocket, "BAD_SCHEMA", "Messages must be JSON objects")

    async def _flush(self) -> None:
        assert self.session is not None
        human_seat = self.session.human_seat()
        while self.outbox:
            event = self.outbox.pop(0)
            ev = str(event.get("ev"))
            msg_type = _MESSAGE_TYPES.get(ev, "event")
            await self.client.send_json({"type": msg_type, **event})
            # Thinking delay is cosmetic: the decision was already applied.
            if ev == "ACTION" and event.get("seat") != human_seat and self.config.ai_delay_ms > 0:
                await asyncio.sleep(self.config.ai_delay_ms / 1000)


def _session_config(base: TableConfig, hello: Dict[str, Any]) -> TableConfig:
    mode_raw = hello.get("mode")
    if mode_raw is None:
        return base
    try:
        mode = GameMode(str(mode_raw).strip().lower())
    except ValueError:
        raise TableServerError("BAD_MODE", "mode must be casual or ranked") from None
    if mode == base.mode:
        return base
    stack = base.starting_stack
    if stack == MODE_STARTING_STACKS[base.mode]:
        # No operator override, so the requested mode picks the stack.
        stack = MODE_STARTING_STACKS[mode]
    return replace(base, mode=mode, starting_stack=stack)


def _player_count(base: TableConfig, hello: Dict[str, Any]) -> Optional[int]:
    players = hello.get("players")
    if players is None:
        return None
    if isinstance(players, bool) or not isinstance(players, int) or not 2 <= players <= base.max_players:
        raise TableServerError("BAD_PLAYERS", f"players must be between 2 and {base.max_players}")
    return players


async def handle_connection(websocket: Any, config: TableConfig, store: Optional[KeyValueStore] = None) -> None:
    # First message must be "hello" so we know who is sitting down.
    try:
        hello = json.loads(await websocket.recv())
    except ValueError:
        hello = None
    if not isinstance(hello, dict) or hello.get("type") != "hello":
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return

    name_raw = hello.get("name")
    name = name_raw.strip() if isinstance(name_raw, str) else ""
    if not name:
        name = "Player"

    try:
        session_config = _session_config(config, hello)
        num_players = _player_count(config, hello)
    except TableServerError as exc:
        await _send_error(websocket, exc.code, exc.msg)
        return

    table = TableSession(session_config, HumanClient(name=name, websocket=websocket), num_players, store)
    try:
        await table.run()
    except TableServerError as exc:
        LOGGER.info("%s left the table: %s", name, exc.msg)
        table.abandon()
    except websockets.ConnectionClosed:
        LOGGER.info("%s disconnected mid-session", name)
        table.abandon()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Table session crashed for %s: %s", name, exc)
        table.abandon()


def _process_request(connection: ServerConnection, request: Any) -> Any:
    """Return a simple HTTP response for health checks."""
    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None  # let the WebSocket handshake continue
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "table server running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")


async def run_server(host: str, port: int, config: TableConfig, store: Optional[KeyValueStore] = None) -> None:
    async def _handler(ws: ServerConnection) -> None:
        await handle_connection(ws, config, store)

    async with serve(_handler, host, port, process_request=_process_request):
        LOGGER.info("Table server listening on %s:%s (%s mode)", host, port, config.mode.value)
        await asyncio.Future()
