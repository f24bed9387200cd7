"""
Unified Messaging - Entry point.

Serves the FastAPI example host on the configured port. The host pairs a
loopback push transport with the platform renderer (D-Bus on Linux, or the
in-memory renderer with UNIFIED_MESSAGING_RENDERER=memory) and records the
route each tapped notification resolves to.
"""

from unified_messaging.core import Settings
from unified_messaging.server import app

__all__ = ["app"]


def main() -> None:
    """Run the example host."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
