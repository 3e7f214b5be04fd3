"""Application context shared by the bridge and the query API."""

from dataclasses import dataclass
from typing import Optional

from sensorbridge.shared.database import ConnectionPool, SensorStore

from .config import Config
from .connection_manager import BrokerConnectionManager, ClientFactory
from .router import IngestionRouter


@dataclass
class AppContext:
    """Everything the process needs, constructed once at startup."""
    config: Config
    pool: ConnectionPool
    store: SensorStore
    router: IngestionRouter
    broker: BrokerConnectionManager

    def close(self):
        """Stop the broker connection, then release database connections."""
        self.broker.stop()
        self.store.close()


def build_context(
    config: Config,
    client_factory: Optional[ClientFactory] = None,
) -> AppContext:
    """Wire the pool, store, router and connection manager together."""
    pool = ConnectionPool(config.db)
    store = SensorStore(pool)
    router = IngestionRouter(store, config.topics)
    broker = BrokerConnectionManager(
        config.mqtt,
        config.topics,
        on_message=router.handle,
        client_factory=client_factory,
    )
    return AppContext(
        config=config,
        pool=pool,
        store=store,
        router=router,
        broker=broker,
    )
