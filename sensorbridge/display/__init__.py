"""Terminal display of stored readings."""

import sys

from .terminal_view import TerminalView


def main():
    """Entry point for the display tool."""
    from sensorbridge.bridge.config import load_config
    from sensorbridge.shared.database import ConnectionPool, SensorStore
    from sensorbridge.shared.logging import setup_logging

    config = load_config()
    setup_logging(config.log_level)

    store = SensorStore(ConnectionPool(config.db))
    view = TerminalView(store)

    ok = True
    try:
        ok = view.run(config.display.refresh_interval)
    except KeyboardInterrupt:
        pass
    finally:
        store.close()

    if not ok:
        sys.exit(1)


__all__ = ["TerminalView", "main"]
