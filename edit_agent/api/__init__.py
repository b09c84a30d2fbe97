"""HTTP routers."""

from . import agent, health, passthrough

__all__ = ["agent", "health", "passthrough"]
