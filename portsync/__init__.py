"""portsync — keep a ported codebase in step with its upstream source."""

__version__ = "0.3.0"
