"""
Owned connection handles for the record store.

A handle is created once per application, connected during start-up and
injected into the record store. Its state is explicit: operations on a
disconnected handle fail fast with :class:`UpstreamUnavailable`, and the only
way back to ``connected`` is an explicit :meth:`StoreClient.reconnect`.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ..aws_clients import dynamodb_resource
from ..errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class StoreClient:
    """Base handle; subclasses implement :meth:`_open`."""

    backend = "unknown"

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._handle: Any = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def _open(self) -> Any:
        raise NotImplementedError

    def connect(self) -> None:
        with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return
            self._handle = self._open()
            self._state = ConnectionState.CONNECTED
        logger.info(f"Connected to {self.backend} record store")

    def disconnect(self) -> None:
        with self._lock:
            self._handle = None
            self._state = ConnectionState.DISCONNECTED
        logger.info(f"Disconnected from {self.backend} record store")

    def reconnect(self) -> None:
        logger.info(f"Reconnecting to {self.backend} record store")
        self.disconnect()
        self.connect()

    def mark_lost(self, reason: str) -> None:
        """Record that the transport failed mid-operation."""
        with self._lock:
            self._handle = None
            self._state = ConnectionState.DISCONNECTED
        logger.error(f"Lost connection to {self.backend} record store: {reason}")

    def handle(self) -> Any:
        handle = self._handle
        if self._state is not ConnectionState.CONNECTED or handle is None:
            raise UpstreamUnavailable("Record store is not connected")
        return handle


class DynamoStoreClient(StoreClient):
    """Handle wrapping a boto3 DynamoDB ``Table`` resource."""

    backend = "dynamodb"

    def __init__(
        self,
        table_name: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        resource_factory: Callable[..., Any] = dynamodb_resource,
    ) -> None:
        super().__init__()
        self.table_name = table_name
        self.region = region
        self.endpoint_url = endpoint_url
        self._resource_factory = resource_factory

    def _open(self) -> Any:
        try:
            resource = self._resource_factory(self.region, self.endpoint_url)
            table = resource.Table(self.table_name)
            # Fails fast when the table or the endpoint is missing
            table.load()
            return table
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ResourceNotFoundException":
                logger.error(f"Students table doesn't exist: {self.table_name}")
            else:
                logger.error(f"Error opening students table: {error_code} - {str(e)}")
            raise UpstreamUnavailable(f"Cannot open table {self.table_name}: {error_code}") from e
        except BotoCoreError as e:
            logger.error(f"Cannot reach DynamoDB: {type(e).__name__}: {str(e)}")
            raise UpstreamUnavailable("Cannot reach DynamoDB") from e

    def table(self) -> Any:
        return self.handle()


class MemoryStoreClient(StoreClient):
    """Handle over a process-local dictionary.

    The dictionary outlives disconnects so a reconnect sees the same data,
    mirroring a server that kept running while the link was down.
    """

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self.records: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.records_lock = threading.Lock()

    def _open(self) -> Any:
        return self.records
