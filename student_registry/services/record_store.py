"""
Record store adapters.

Each record is one field-map stored under a composite key made of a
namespace (the entity type, e.g. ``student``) and the record identifier.
Every write touches exactly one record, so a record is never observed
half-written by this process; concurrent writers to the same id are
last-write-wins.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Protocol, Tuple, Type

from botocore.exceptions import BotoCoreError, ClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from ..errors import DuplicateKey, NotFound, RegistryError, StoreError, UpstreamUnavailable
from .store_client import DynamoStoreClient, MemoryStoreClient

logger = logging.getLogger(__name__)

Fields = Dict[str, str]

PARTITION_KEY = "entity"
SORT_KEY = "record_id"


class RecordStore(Protocol):
    """Operations the API layer needs from a record store."""

    namespace: str

    def exists(self, record_id: str) -> bool: ...
    def create(self, record_id: str, fields: Mapping[str, str]) -> None: ...
    def put(self, record_id: str, fields: Mapping[str, str]) -> None: ...
    def read(self, record_id: str) -> Fields: ...
    def update_partial(self, record_id: str, fields: Mapping[str, str]) -> None: ...
    def delete(self, record_id: str) -> None: ...
    def scan_all(self) -> List[Tuple[str, Fields]]: ...


class DynamoRecordStore:
    """One DynamoDB item per record, keyed by ``(entity, record_id)``."""

    def __init__(self, client: DynamoStoreClient, namespace: str = "student") -> None:
        self.client = client
        self.namespace = namespace

    def _key(self, record_id: str) -> Dict[str, str]:
        return {PARTITION_KEY: self.namespace, SORT_KEY: record_id}

    @staticmethod
    def _fields(item: Mapping[str, object]) -> Fields:
        return {
            name: str(value)
            for name, value in item.items()
            if name not in (PARTITION_KEY, SORT_KEY)
        }

    @contextmanager
    def _translate(
        self,
        operation: str,
        record_id: str | None = None,
        on_condition_failed: Type[RegistryError] | None = None,
    ) -> Iterator[None]:
        try:
            yield
        except BotoConnectionError as e:
            self.client.mark_lost(str(e))
            raise UpstreamUnavailable() from e
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ConditionalCheckFailedException" and on_condition_failed:
                raise on_condition_failed() from e
            logger.error(
                f"DynamoDB {operation} failed for {self.namespace}:{record_id}: {error_code} - {str(e)}"
            )
            raise StoreError(f"Store error: {error_code}") from e
        except BotoCoreError as e:
            logger.error(f"DynamoDB {operation} failed: {type(e).__name__}: {str(e)}")
            raise StoreError() from e

    def exists(self, record_id: str) -> bool:
        table = self.client.table()
        with self._translate("exists", record_id):
            response = table.get_item(
                Key=self._key(record_id),
                ProjectionExpression="#rid",
                ExpressionAttributeNames={"#rid": SORT_KEY},
            )
        return "Item" in response

    def create(self, record_id: str, fields: Mapping[str, str]) -> None:
        table = self.client.table()
        item = {**{k: str(v) for k, v in fields.items()}, **self._key(record_id)}
        with self._translate("create", record_id, on_condition_failed=DuplicateKey):
            table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(#rid)",
                ExpressionAttributeNames={"#rid": SORT_KEY},
            )
        logger.info(f"Created {self.namespace}:{record_id}")

    def put(self, record_id: str, fields: Mapping[str, str]) -> None:
        table = self.client.table()
        item = {**{k: str(v) for k, v in fields.items()}, **self._key(record_id)}
        with self._translate("put", record_id):
            table.put_item(Item=item)
        logger.debug(f"Wrote {self.namespace}:{record_id}")

    def read(self, record_id: str) -> Fields:
        table = self.client.table()
        with self._translate("read", record_id):
            response = table.get_item(Key=self._key(record_id))
        if "Item" not in response:
            raise NotFound()
        return self._fields(response["Item"])

    def update_partial(self, record_id: str, fields: Mapping[str, str]) -> None:
        if not fields:
            if not self.exists(record_id):
                raise NotFound()
            return

        table = self.client.table()
        names = {"#rid": SORT_KEY}
        values = {}
        clauses = []
        for i, (name, value) in enumerate(fields.items()):
            names[f"#f{i}"] = name
            values[f":v{i}"] = str(value)
            clauses.append(f"#f{i} = :v{i}")

        with self._translate("update", record_id, on_condition_failed=NotFound):
            table.update_item(
                Key=self._key(record_id),
                UpdateExpression="SET " + ", ".join(clauses),
                ConditionExpression="attribute_exists(#rid)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        logger.info(f"Updated {self.namespace}:{record_id} fields={sorted(fields)}")

    def delete(self, record_id: str) -> None:
        table = self.client.table()
        with self._translate("delete", record_id):
            table.delete_item(Key=self._key(record_id))
        logger.info(f"Deleted {self.namespace}:{record_id}")

    def scan_all(self) -> List[Tuple[str, Fields]]:
        table = self.client.table()
        query = {
            "KeyConditionExpression": "#entity = :entity",
            "ExpressionAttributeNames": {"#entity": PARTITION_KEY},
            "ExpressionAttributeValues": {":entity": self.namespace},
        }
        all_items = []
        with self._translate("scan"):
            response = table.query(**query)
            all_items.extend(response.get("Items", []))

            # Handle pagination
            while "LastEvaluatedKey" in response:
                response = table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **query)
                all_items.extend(response.get("Items", []))

        logger.debug(f"Scanned {len(all_items)} {self.namespace} record(s)")
        return [(str(item[SORT_KEY]), self._fields(item)) for item in all_items]


class MemoryRecordStore:
    """Dictionary-backed store sharing the :class:`MemoryStoreClient` state machine."""

    def __init__(self, client: MemoryStoreClient, namespace: str = "student") -> None:
        self.client = client
        self.namespace = namespace

    def _records(self) -> Dict[Tuple[str, str], Fields]:
        return self.client.handle()

    def exists(self, record_id: str) -> bool:
        records = self._records()
        return (self.namespace, record_id) in records

    def create(self, record_id: str, fields: Mapping[str, str]) -> None:
        records = self._records()
        with self.client.records_lock:
            key = (self.namespace, record_id)
            if key in records:
                raise DuplicateKey()
            records[key] = {k: str(v) for k, v in fields.items()}
        logger.info(f"Created {self.namespace}:{record_id}")

    def put(self, record_id: str, fields: Mapping[str, str]) -> None:
        records = self._records()
        with self.client.records_lock:
            records[(self.namespace, record_id)] = {k: str(v) for k, v in fields.items()}
        logger.debug(f"Wrote {self.namespace}:{record_id}")

    def read(self, record_id: str) -> Fields:
        records = self._records()
        with self.client.records_lock:
            fields = records.get((self.namespace, record_id))
            if fields is None:
                raise NotFound()
            return copy.deepcopy(fields)

    def update_partial(self, record_id: str, fields: Mapping[str, str]) -> None:
        records = self._records()
        with self.client.records_lock:
            current = records.get((self.namespace, record_id))
            if current is None:
                raise NotFound()
            current.update({k: str(v) for k, v in fields.items()})
        logger.info(f"Updated {self.namespace}:{record_id} fields={sorted(fields)}")

    def delete(self, record_id: str) -> None:
        records = self._records()
        with self.client.records_lock:
            records.pop((self.namespace, record_id), None)
        logger.info(f"Deleted {self.namespace}:{record_id}")

    def scan_all(self) -> List[Tuple[str, Fields]]:
        records = self._records()
        with self.client.records_lock:
            return [
                (record_id, dict(fields))
                for (namespace, record_id), fields in records.items()
                if namespace == self.namespace
            ]


def create_store_client(settings) -> DynamoStoreClient | MemoryStoreClient:
    """Build the (not yet connected) handle for the configured backend."""
    if settings.store_backend == "memory":
        logger.info("Initializing in-memory record store")
        return MemoryStoreClient()
    logger.info(f"Initializing DynamoDB record store (table={settings.table_name})")
    return DynamoStoreClient(
        settings.table_name,
        region=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    )


def create_record_store(client, namespace: str = "student") -> RecordStore:
    if isinstance(client, MemoryStoreClient):
        return MemoryRecordStore(client, namespace)
    return DynamoRecordStore(client, namespace)
