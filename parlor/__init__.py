"""Practice table host: wraps the hold'em engine with one WebSocket human seat."""

from .server import HumanClient, PracticeSession, handle_connection, run_server

__all__ = ["HumanClient", "PracticeSession", "handle_connection", "run_server"]
