"""Table host package: serves a GameSession to one human over WebSockets."""

from .server import TableSession, handle_connection, run_server

__all__ = ["TableSession", "handle_connection", "run_server"]
