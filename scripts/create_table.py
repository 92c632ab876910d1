#!/usr/bin/env python3
"""
Create the DynamoDB table backing the student registry.

The table uses a composite key: partition key ``entity`` (record namespace,
e.g. ``student``) and sort key ``record_id`` (the student id).

Usage:
    # Against AWS, using $AWS_REGION and $DDB_TABLE_STUDENTS
    python scripts/create_table.py

    # Against LocalStack
    python scripts/create_table.py --endpoint http://localhost:4566

    # Optionally seed from a CSV with the same columns the upload endpoint takes
    python scripts/create_table.py --seed students.csv
"""
import argparse
import os
import sys
from pathlib import Path

from botocore.exceptions import ClientError

sys.path.insert(0, str(Path(__file__).parent.parent))

from student_registry.aws_clients import dynamodb_client
from student_registry.config import DEFAULT_REGION, DEFAULT_TABLE, load_settings
from student_registry.services.bulk_import import BulkImporter
from student_registry.services.record_store import DynamoRecordStore, PARTITION_KEY, SORT_KEY
from student_registry.services.store_client import DynamoStoreClient


def parse_arguments():
    parser = argparse.ArgumentParser(
        description="Create the student registry DynamoDB table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--table", default=os.getenv("DDB_TABLE_STUDENTS", DEFAULT_TABLE))
    parser.add_argument("--region", default=os.getenv("AWS_REGION", DEFAULT_REGION))
    parser.add_argument("--endpoint", default=os.getenv("AWS_ENDPOINT_URL"), help="e.g. http://localhost:4566")
    parser.add_argument("--seed", metavar="CSV", help="Import this CSV once the table exists")
    return parser.parse_args()


def create_table(client, table_name: str) -> bool:
    """Create the table; returns False if it already existed."""
    try:
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": PARTITION_KEY, "KeyType": "HASH"},
                {"AttributeName": SORT_KEY, "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": PARTITION_KEY, "AttributeType": "S"},
                {"AttributeName": SORT_KEY, "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            return False
        raise
    client.get_waiter("table_exists").wait(TableName=table_name)
    return True


def main():
    args = parse_arguments()
    client = dynamodb_client(args.region, args.endpoint)

    try:
        created = create_table(client, args.table)
    except ClientError as e:
        print(f"✗ Error creating table {args.table}: {e}")
        return 1
    print(f"✓ Created table {args.table}" if created else f"⊘ Table {args.table} already exists")

    if args.seed:
        settings = load_settings()
        store_client = DynamoStoreClient(args.table, region=args.region, endpoint_url=args.endpoint)
        store_client.connect()
        importer = BulkImporter(DynamoRecordStore(store_client), delimiter=settings.import_delimiter)
        rows = importer.read_rows(Path(args.seed))
        summary = importer.import_rows(rows)
        print(f"✓ Seeded {summary.imported} student(s), skipped {summary.skipped}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
