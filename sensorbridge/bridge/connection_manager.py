"""Owns the MQTT subscription client and its connection lifecycle."""

import enum
import logging
import threading
from typing import Callable, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from sensorbridge.shared.mqtt import MQTTConfig, generate_client_id

from .config import TopicsConfig

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], object]
ClientFactory = Callable[[str], mqtt.Client]


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class BrokerConnectionManager:
    """Keeps one persistent, clean-session connection to the broker.

    paho's network thread drives reconnection on a fixed interval. Every
    successful (re)connect issues one batch subscription to the configured
    topics; the connection is Active once the broker acknowledges it.
    Inbound messages are passed to ``on_message`` one at a time, in
    delivery order.
    """

    def __init__(
        self,
        config: MQTTConfig,
        topics: TopicsConfig,
        on_message: MessageCallback,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.config = config
        self.topics = topics
        self.on_message = on_message
        self.client_id = generate_client_id(config.client_id_prefix)
        self.client: Optional[mqtt.Client] = None
        self._client_factory = client_factory or self._create_client
        self._state = ConnectionState.DISCONNECTED
        self._state_changed = threading.Condition()
        self._closing = False
        self._subscribe_mid: Optional[int] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is ConnectionState.ACTIVE

    @property
    def is_connected(self) -> bool:
        return self._state in (
            ConnectionState.CONNECTED,
            ConnectionState.SUBSCRIBING,
            ConnectionState.ACTIVE,
        )

    def _set_state(self, state: ConnectionState):
        with self._state_changed:
            if self._state is ConnectionState.CLOSED:
                return
            previous, self._state = self._state, state
            self._state_changed.notify_all()
        if previous is not state:
            logger.info(f"MQTT state {previous.value} -> {state.value}")

    def wait_until_active(self, timeout: Optional[float] = None) -> bool:
        """Block until the subscription is active.

        Returns:
            True if Active, False on timeout or once closed.
        """
        with self._state_changed:
            self._state_changed.wait_for(
                lambda: self._state in (ConnectionState.ACTIVE, ConnectionState.CLOSED),
                timeout=timeout,
            )
            return self._state is ConnectionState.ACTIVE

    def _create_client(self, client_id: str) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=self.config.clean_session,
            protocol=mqtt.MQTTv311,
        )
        client.connect_timeout = self.config.connect_timeout
        if self.config.use_tls:
            client.tls_set()
        return client

    def _on_pre_connect(self, client: mqtt.Client, userdata):
        """Callback before every connection attempt, including retries."""
        self._set_state(ConnectionState.CONNECTING)

    def _on_connect(self, client: mqtt.Client, userdata, flags, reason_code, properties):
        """Callback when connected to MQTT broker."""
        if self._closing:
            return
        if reason_code == 0:
            logger.info(f"Connected to MQTT broker at {self.config.broker}:{self.config.port}")
            self._set_state(ConnectionState.CONNECTED)
            self._subscribe(client)
        else:
            logger.error(f"Failed to connect to MQTT broker, reason: {reason_code}")
            self._set_state(ConnectionState.RECONNECTING)

    def _on_connect_fail(self, client: mqtt.Client, userdata):
        """Callback when a connection attempt could not reach the broker."""
        logger.warning(
            f"MQTT broker {self.config.broker}:{self.config.port} unreachable, "
            f"retrying in {self.config.reconnect_interval}s"
        )
        self._set_state(ConnectionState.RECONNECTING)

    def _subscribe(self, client: mqtt.Client):
        """Issue one batch subscription for the whole topic set."""
        if self._closing:
            return
        self._set_state(ConnectionState.SUBSCRIBING)
        result, mid = client.subscribe(
            [(topic, self.config.qos) for topic in self.topics.as_list()]
        )
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Subscribe failed: {mqtt.error_string(result)}")
            self._set_state(ConnectionState.CONNECTED)
            return
        self._subscribe_mid = mid

    def _on_subscribe(self, client: mqtt.Client, userdata, mid, reason_code_list, properties):
        """Callback when the broker acknowledges the subscription."""
        if mid != self._subscribe_mid:
            return
        failed = [
            topic
            for topic, code in zip(self.topics.as_list(), reason_code_list)
            if code.is_failure
        ]
        if failed:
            logger.error(f"Subscribe failed for topics: {', '.join(failed)}")
            self._set_state(ConnectionState.CONNECTED)
            return
        logger.info(f"Subscribed to topics: {', '.join(self.topics.as_list())}")
        self._set_state(ConnectionState.ACTIVE)

    def _on_disconnect(self, client: mqtt.Client, userdata, disconnect_flags, reason_code, properties):
        """Callback when disconnected from MQTT broker."""
        self._subscribe_mid = None
        if self._closing:
            logger.info("MQTT connection closed")
            self._set_state(ConnectionState.CLOSED)
            return
        logger.warning(f"MQTT offline (reason={reason_code}), reconnecting...")
        self._set_state(ConnectionState.RECONNECTING)

    def _on_message(self, client: mqtt.Client, userdata, msg: mqtt.MQTTMessage):
        """Callback when a message is received."""
        try:
            self.on_message(msg.topic, msg.payload)
        except Exception as e:
            logger.exception(f"Error processing message from {msg.topic}: {e}")

    def start(self):
        """Start connecting in paho's background network thread.

        Returns immediately; the first connection and every later drop are
        retried every ``reconnect_interval`` seconds.
        """
        if self.client is not None:
            raise RuntimeError("Connection manager already started")
        if self._state is ConnectionState.CLOSED:
            raise RuntimeError("Connection manager is closed")

        self.client = self._client_factory(self.client_id)
        self.client.on_pre_connect = self._on_pre_connect
        self.client.on_connect = self._on_connect
        self.client.on_connect_fail = self._on_connect_fail
        self.client.on_subscribe = self._on_subscribe
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        interval = self.config.reconnect_interval
        self.client.reconnect_delay_set(min_delay=interval, max_delay=interval)

        logger.info(
            f"Connecting to MQTT broker at {self.config.broker}:{self.config.port} "
            f"as {self.client_id}"
        )
        self._set_state(ConnectionState.CONNECTING)
        self.client.connect_async(
            self.config.broker, self.config.port, keepalive=self.config.keepalive
        )
        self.client.loop_start()

    def stop(self):
        """Disconnect and stop the network thread. Terminal; idempotent."""
        if self._state is ConnectionState.CLOSED:
            return
        self._closing = True
        if self.client is not None:
            self.client.disconnect()
            self.client.loop_stop()
        self._set_state(ConnectionState.CLOSED)
