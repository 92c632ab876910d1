"""
Unit tests for the HTTP client, presentation helpers and the CLI
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from student_registry.client.api_client import ClientError, StudentRegistryClient
from student_registry.client.cli import main, parse_arguments, run
from student_registry.client.presentation import (
    combine_full_name,
    filter_students,
    render_stats_chart,
    render_table,
    sort_students,
    split_full_name,
)

from tests.constants import JANE

JOHN = {**JANE, "studentId": "S2", "fullName": "Smith, John Paul", "program": "Math"}
ANNA = {**JANE, "studentId": "S3", "fullName": "Anna Maria Lopez", "program": "Math"}


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def api(session):
    return StudentRegistryClient("http://registry.test/", session=session)


class TestStudentRegistryClient:
    """Test request construction and error mapping"""

    def test_list_students(self, api, session):
        session.request.return_value = _response(payload=[JANE])

        assert api.list_students() == [JANE]
        session.request.assert_called_once_with("GET", "http://registry.test/students", timeout=10)

    def test_add_student_sends_no_admin_header(self, api, session):
        session.request.return_value = _response(201, {"message": "Student added successfully"})

        api.add_student(JANE)

        kwargs = session.request.call_args.kwargs
        assert kwargs["json"] == JANE
        assert "headers" not in kwargs

    def test_update_sends_role_header(self, api, session):
        session.request.return_value = _response(payload={"message": "Student updated successfully"})

        api.update_student("S1", {"program": "Math"})

        args, kwargs = session.request.call_args
        assert args == ("PUT", "http://registry.test/students/S1")
        assert kwargs["headers"] == {"x-role": "admin"}
        assert kwargs["json"] == {"program": "Math"}

    def test_token_replaces_role_header(self, session):
        api = StudentRegistryClient("http://registry.test", token="abc", session=session)
        session.request.return_value = _response(payload={"message": "Student deleted successfully"})

        api.delete_student("S1")

        assert session.request.call_args.kwargs["headers"] == {"Authorization": "Bearer abc"}

    def test_search_passes_query(self, api, session):
        session.request.return_value = _response(payload=[])

        api.search("jane")

        assert session.request.call_args.kwargs["params"] == {"q": "jane"}

    def test_upload_csv(self, api, session, tmp_path):
        path = tmp_path / "students.csv"
        path.write_text("studentId,fullName\nS1,A\n")
        session.request.return_value = _response(
            201, {"message": "CSV data uploaded successfully", "imported": 1, "skipped": 0}
        )

        result = api.upload_csv(path)

        assert result["imported"] == 1
        kwargs = session.request.call_args.kwargs
        name, _, content_type = kwargs["files"]["file"]
        assert (name, content_type) == ("students.csv", "text/csv")
        assert kwargs["headers"] == {"x-role": "admin"}

    def test_error_response_raises_client_error(self, api, session):
        session.request.return_value = _response(404, {"message": "Student not found"})

        with pytest.raises(ClientError) as exc_info:
            api.get_student("nobody")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Student not found"

    def test_error_without_json_body(self, api, session):
        response = _response(502)
        response.json.side_effect = ValueError("no json")
        response.text = "Bad Gateway"
        session.request.return_value = response

        with pytest.raises(ClientError) as exc_info:
            api.stats()

        assert exc_info.value.message == "Bad Gateway"


class TestSplitFullName:
    @pytest.mark.parametrize(
        "full_name, expected",
        [
            ("Doe, Jane", ("Doe", "Jane", "")),
            ("Smith, John Paul", ("Smith", "John", "Paul")),
            ("Anna Maria Lopez", ("Lopez", "Anna", "Maria")),
            ("Cher", ("", "Cher", "")),
            ("", ("", "", "")),
            (None, ("", "", "")),
        ],
    )
    def test_split(self, full_name, expected):
        parts = split_full_name(full_name)
        assert (parts["lastName"], parts["firstName"], parts["middleName"]) == expected


    @pytest.mark.parametrize(
        "full_name",
        ["Doe, Jane", "Smith, John Paul"],
    )
    def test_combine_inverts_split(self, full_name):
        parts = split_full_name(full_name)
        assert combine_full_name(parts["lastName"], parts["firstName"], parts["middleName"]) == full_name

    def test_combine_trims_parts(self):
        assert combine_full_name(" Doe ", " Jane", None) == "Doe, Jane"
        assert combine_full_name("Smith", "John", " Paul ") == "Smith, John Paul"


class TestFilterAndSort:
    def test_filter_any_field(self):
        assert filter_students([JANE, JOHN, ANNA], "MATH") == [JOHN, ANNA]
        assert filter_students([JANE, JOHN], "  ") == [JANE, JOHN]

    def test_sort_by_last_name(self):
        ordered = sort_students([JOHN, ANNA, JANE], "lastName")
        assert [s["studentId"] for s in ordered] == ["S1", "S3", "S2"]

    def test_sort_descending_by_field(self):
        ordered = sort_students([JANE, JOHN, ANNA], "studentId", descending=True)
        assert [s["studentId"] for s in ordered] == ["S3", "S2", "S1"]

    def test_missing_values_sort_first(self):
        blank = {"studentId": "S4", "fullName": "Zed, Zoe"}
        ordered = sort_students([JANE, blank], "program")
        assert ordered[0] is blank

    def test_no_key_keeps_order(self):
        assert sort_students([JOHN, JANE], None) == [JOHN, JANE]

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            sort_students([JANE], "shoeSize")


class TestRenderers:
    def test_table_has_header_and_name_parts(self):
        table = render_table([JANE]).splitlines()

        assert table[0].split() == [
            "studentId", "lastName", "firstName", "middleName",
            "dob", "gender", "email", "phone", "program", "major",
        ]
        assert set(table[1]) <= {"-", " "}
        assert table[2].split()[:3] == ["S1", "Doe", "Jane"]

    def test_empty_table(self):
        assert render_table([]).endswith("(no students)")

    def test_stats_chart(self):
        chart = render_stats_chart({"CS": 1, "Math": 2}, width=10).splitlines()

        assert chart[0] == "Math | ########## 2"
        assert chart[1] == "CS   | ##### 1"

    def test_empty_stats_chart(self):
        assert render_stats_chart({}) == "(no students)"


class TestCli:
    """Test argument parsing and command dispatch"""

    def test_parse_list_options(self):
        args = parse_arguments(["--url", "http://x", "list", "--sort", "lastName", "--desc"])
        assert (args.url, args.command, args.sort, args.desc) == ("http://x", "list", "lastName", True)

    def test_parse_rejects_unknown_sort(self):
        with pytest.raises(SystemExit):
            parse_arguments(["list", "--sort", "shoeSize"])

    def test_list_filters_and_sorts(self, capsys):
        client = MagicMock()
        client.list_students.return_value = [JOHN, JANE, ANNA]
        args = parse_arguments(["list", "--filter", "math", "--sort", "firstName"])

        assert run(args, client) == 0

        lines = capsys.readouterr().out.splitlines()
        assert [line.split()[0] for line in lines[2:]] == ["S3", "S2"]

    def test_update_sends_only_given_fields(self, capsys):
        client = MagicMock()
        client.update_student.return_value = {"message": "Student updated successfully"}
        args = parse_arguments(["update", "S1", "--program", "Math"])

        run(args, client)

        client.update_student.assert_called_once_with("S1", {"program": "Math"})
        assert "Student updated successfully" in capsys.readouterr().out

    def test_add_builds_payload(self):
        client = MagicMock()
        client.add_student.return_value = {"message": "Student added successfully"}
        args = parse_arguments(["add", "S1", "--fullName", "Doe, Jane", "--major", "AI"])

        run(args, client)

        client.add_student.assert_called_once_with(
            {"studentId": "S1", "fullName": "Doe, Jane", "major": "AI"}
        )

    def test_add_builds_full_name_from_parts(self):
        client = MagicMock()
        client.add_student.return_value = {"message": "Student added successfully"}
        args = parse_arguments(
            ["add", "S1", "--lastName", "Doe", "--firstName", "Jane", "--middleName", "Ann", "--major", "AI"]
        )

        run(args, client)

        client.add_student.assert_called_once_with(
            {"studentId": "S1", "fullName": "Doe, Jane Ann", "major": "AI"}
        )

    def test_update_rejects_full_name_with_parts(self):
        with pytest.raises(SystemExit):
            parse_arguments(["update", "S1", "--fullName", "Doe, Jane", "--lastName", "Roe"])

    def test_stats_json(self, capsys):
        client = MagicMock()
        client.stats.return_value = {"CS": 2}

        run(parse_arguments(["--json", "stats"]), client)

        assert '"CS": 2' in capsys.readouterr().out

    def test_import_prints_summary(self, capsys):
        client = MagicMock()
        client.upload_csv.return_value = {
            "message": "CSV data uploaded successfully", "imported": 3, "skipped": 1,
        }

        run(parse_arguments(["import", "students.csv"]), client)

        client.upload_csv.assert_called_once_with("students.csv")
        assert "3 imported, 1 skipped" in capsys.readouterr().out

    @patch("student_registry.client.cli.setup_logging")
    @patch("student_registry.client.cli.StudentRegistryClient")
    def test_main_reports_api_errors(self, mock_client_cls, _mock_logging, capsys):
        mock_client_cls.return_value.delete_student.side_effect = ClientError(403, "Forbidden. Admins only.")

        assert main(["delete", "S1"]) == 1
        assert "Forbidden. Admins only. (HTTP 403)" in capsys.readouterr().err

    @patch("student_registry.client.cli.setup_logging")
    @patch("student_registry.client.cli.StudentRegistryClient")
    def test_main_reports_connection_errors(self, mock_client_cls, _mock_logging, capsys):
        mock_client_cls.return_value.list_students.side_effect = requests.ConnectionError("refused")

        assert main(["list"]) == 1
        assert "refused" in capsys.readouterr().err
