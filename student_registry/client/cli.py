from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from ..config import DEFAULT_API_URL
from ..schemas import STUDENT_FIELDS
from ..utils.logging_setup import setup_logging
from .api_client import ClientError, StudentRegistryClient
from .presentation import (
    NAME_KEYS,
    SORT_KEYS,
    combine_full_name,
    filter_students,
    render_stats_chart,
    render_table,
    sort_students,
)

logger = logging.getLogger(__name__)


def _add_field_options(parser: argparse.ArgumentParser) -> None:
    for name in STUDENT_FIELDS:
        parser.add_argument(f"--{name}", dest=name, metavar=name.upper())
    for name in NAME_KEYS:
        parser.add_argument(
            f"--{name}", dest=name, metavar=name.upper(),
            help="Builds fullName as \"Last, First Middle\" (not with --fullName)",
        )


def _collect_fields(args: argparse.Namespace) -> Dict[str, str]:
    fields = {name: getattr(args, name) for name in STUDENT_FIELDS if getattr(args, name)}
    if any(getattr(args, name, None) for name in NAME_KEYS):
        fields["fullName"] = combine_full_name(args.lastName, args.firstName, args.middleName)
    return fields


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="student-registry",
        description="Manage student records through the student registry API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  student-registry list --sort lastName
  student-registry search jane
  student-registry add S1 --fullName "Doe, Jane" --dob 2000-01-01 ...
  student-registry update S1 --program Math
  student-registry update S1 --lastName Doe --firstName Jane --middleName Ann
  student-registry import students.csv
        """,
    )
    parser.add_argument(
        "--url",
        default=os.getenv("API_BASE_URL", DEFAULT_API_URL),
        help=f"API base URL (default: $API_BASE_URL or {DEFAULT_API_URL})",
    )
    parser.add_argument("--token", default=os.getenv("REGISTRY_TOKEN"), help="Bearer token for admin operations")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")

    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List all students")
    list_parser.add_argument("--filter", default="", help="Client-side substring filter")
    list_parser.add_argument("--sort", choices=SORT_KEYS, help="Column to sort by")
    list_parser.add_argument("--desc", action="store_true", help="Sort descending")

    show_parser = sub.add_parser("show", help="Show one student")
    show_parser.add_argument("student_id")

    add_parser = sub.add_parser("add", help="Add a student (all fields required)")
    add_parser.add_argument("student_id")
    _add_field_options(add_parser)

    update_parser = sub.add_parser("update", help="Update some fields of a student")
    update_parser.add_argument("student_id")
    _add_field_options(update_parser)

    delete_parser = sub.add_parser("delete", help="Delete a student")
    delete_parser.add_argument("student_id")

    search_parser = sub.add_parser("search", help="Server-side search across all fields")
    search_parser.add_argument("query", nargs="?", default="")

    sub.add_parser("stats", help="Bar chart of students per program")

    import_parser = sub.add_parser("import", help="Bulk import a CSV file")
    import_parser.add_argument("path")

    args = parser.parse_args(argv)
    if getattr(args, "fullName", None) and any(getattr(args, name, None) for name in NAME_KEYS):
        parser.error("--fullName cannot be combined with --lastName/--firstName/--middleName")
    return args


def run(args: argparse.Namespace, client: StudentRegistryClient) -> int:
    command = args.command

    if command in ("list", "search"):
        if command == "list":
            students = client.list_students()
            students = filter_students(students, args.filter)
            students = sort_students(students, args.sort, descending=args.desc)
        else:
            students = client.search(args.query)
        print(json.dumps(students, indent=2) if args.json else render_table(students))
    elif command == "show":
        student = client.get_student(args.student_id)
        print(json.dumps(student, indent=2) if args.json else render_table([student]))
    elif command == "add":
        result = client.add_student({"studentId": args.student_id, **_collect_fields(args)})
        print(result["message"])
    elif command == "update":
        result = client.update_student(args.student_id, _collect_fields(args))
        print(result["message"])
    elif command == "delete":
        result = client.delete_student(args.student_id)
        print(result["message"])
    elif command == "stats":
        stats = client.stats()
        print(json.dumps(stats, indent=2) if args.json else render_stats_chart(stats))
    elif command == "import":
        result = client.upload_csv(args.path)
        print(f"{result['message']} ({result['imported']} imported, {result['skipped']} skipped)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging(default_level="0")
    args = parse_arguments(argv)
    client = StudentRegistryClient(args.url, token=args.token)
    try:
        return run(args, client)
    except ClientError as e:
        print(f"Error: {e.message} (HTTP {e.status_code})", file=sys.stderr)
        return 1
    except OSError as e:
        logger.debug("Request failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
