"""
Tests for command line parsing and dispatch.
"""

from unittest import mock

import pytest

import main
from exceptions import SpecLoadError
from work_item_executor import RunSummary


def test_no_arguments_shows_help():
    assert main.normalize_args([]) == ["--help"]


def test_create_is_the_default_command():
    assert main.normalize_args(["x"]) == ["create", "x"]
    assert main.normalize_args(["list", "-o", "o"]) == ["list", "-o", "o"]
    assert main.normalize_args(["-o", "o"]) == ["-o", "o"]


def test_create_arguments():
    args = main.build_parser().parse_args(main.normalize_args(
        ["-o", "https://dev.azure.com/org", "-t", "Bug", "-s", "feature", "--new"]
    ))

    assert args.command == "create"
    assert args.work_item_type == "Bug"
    assert args.project is None
    assert args.force_new
    assert not args.force
    assert not args.simulate


def test_list_output_formats_are_exclusive():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["list", "-o", "o", "-p", "p", "--table", "--json"])


def test_list_requires_project():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["list", "-o", "o"])


@pytest.fixture
def no_logging_setup():
    with mock.patch("main.configure_logging") as configure:
        yield configure


def test_main_returns_summary_exit_code(no_logging_setup):
    with mock.patch("main.load_spec") as load_spec, mock.patch("main.WorkItemExecutor") as executor_class:
        executor_class.return_value.execute_create.return_value = RunSummary(errors=["boom"])

        code = main.main(["-o", "https://dev.azure.com/org", "-p", "P", "-t", "Task", "-s", "feature", "--simulate"])

    assert code == 1
    load_spec.assert_called_once_with("feature")
    executor_class.return_value.execute_create.assert_called_once_with(
        load_spec.return_value, simulate=True, force=False, force_new=False
    )


def test_main_reports_invocation_errors(no_logging_setup):
    with mock.patch("main.load_spec", side_effect=SpecLoadError("not found")):
        assert main.main(["create", "-o", "o", "-t", "Task", "-s", "missing"]) == 1


def test_list_json_keeps_console_quiet(no_logging_setup, capsys):
    with mock.patch("main.WorkItemExecutor") as executor_class:
        executor_class.return_value.execute_list.return_value = "[]"

        code = main.main(["list", "-o", "o", "-p", "P", "--json"])

    assert code == 0
    assert capsys.readouterr().out == "[]\n"
    no_logging_setup.assert_called_once_with("WARNING")
    executor_class.return_value.execute_list.assert_called_once_with(table_format=False, json_format=True)
