"""
Terminal view of the stored sensor readings.
Shows the same summary as /api/sensor using the Rich library.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sensorbridge.api.server import collect_sensor_summary
from sensorbridge.shared.database import PersistenceError, SensorStore

logger = logging.getLogger(__name__)


def _fmt(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "--"
    return f"{value:.2f}{unit}"


class TerminalView:
    """Renders temperature stats and recent readings to a console"""

    def __init__(self, store: SensorStore, console: Optional[Console] = None):
        self.store = store
        self.console = console or Console()

    def render(self, summary: Dict[str, Any]) -> Group:
        """Build the renderable for one summary"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        header = Text()
        header.append("SENSOR BRIDGE", style="bold cyan")
        header.append(f" - {timestamp}", style="white")

        stats = Text()
        stats.append(f"Max {_fmt(summary['suhumax'], 'C')}  ", style="red")
        stats.append(f"Min {_fmt(summary['suhumin'], 'C')}  ", style="blue")
        stats.append(f"Avg {_fmt(summary['suhurata'], 'C')}", style="green")

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("ID", justify="right")
        table.add_column("Temperature", justify="right")
        table.add_column("Humidity", justify="right")
        table.add_column("Brightness", justify="right")
        table.add_column("Time")
        for row in summary["data"]:
            table.add_row(
                str(row["id"]),
                _fmt(row["suhu"], "C"),
                _fmt(row["humidity"], "%"),
                _fmt(row["kecerahan"]),
                row["waktu"] or "--",
            )

        return Group(
            Panel(Align.center(header), style="cyan"),
            Panel(stats, title="TEMPERATURE", style="cyan"),
            Panel(table, title="RECENT READINGS", style="cyan"),
        )

    def render_error(self, error_msg: str) -> Panel:
        return Panel(
            Align.center(Text(f"DATABASE ERROR\n\n{error_msg}", style="bold red")),
            title="Error",
            style="red",
        )

    def update_display(self) -> bool:
        """Fetch and print one summary.

        Returns:
            False if the store could not be read.
        """
        try:
            summary = collect_sensor_summary(self.store)
        except PersistenceError as e:
            logger.error(f"Display update failed: {e}")
            self.console.print(self.render_error(str(e)))
            return False

        self.console.print(self.render(summary))
        return True

    def run(self, refresh_interval: float) -> bool:
        """Print once, or keep refreshing when refresh_interval > 0."""
        if refresh_interval <= 0:
            return self.update_display()

        while True:
            self.console.clear()
            self.update_display()
            time.sleep(refresh_interval)
