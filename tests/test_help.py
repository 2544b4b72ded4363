from io import StringIO

import pytest
from rich.console import Console

from flagchain.flagset import FlagSet
from flagchain.help import (
    HelpInfo,
    make_usage_with_subcommands,
    print_commands,
    print_flag_sets,
)
from flagchain.subcommands import FlagSetDefinition


@pytest.fixture
def console():
    return Console(file=StringIO(), color_system=None, width=120)


@pytest.fixture
def sets():
    deploy = FlagSet("deploy")
    deploy.string_var("env", "dev", "Environment to deploy to")
    check = FlagSet("check")
    check.bool_var("verbose", False, "verbose output")
    return [deploy, check]


@pytest.fixture
def definitions():
    return [
        FlagSetDefinition("deploy", "Deploy the application"),
        FlagSetDefinition("check", "Run the test suite"),
    ]


def test_print_commands_aligns_names(console, definitions):
    print_commands(definitions, console)
    assert console.file.getvalue().splitlines() == [
        "  deploy  Deploy the application",
        "  check   Run the test suite",
    ]


def test_print_flag_sets_separates_with_blank_lines(console, sets):
    print_flag_sets(sets, console)
    lines = console.file.getvalue().splitlines()
    assert lines[0] == ""
    assert lines[1] == "Usage of deploy:"
    assert "" in lines[2:]
    assert "Usage of check:" in lines


def test_usage_for_all_commands(console, sets, definitions):
    global_flags = FlagSet("deployer")
    global_flags.bool_var("v", False, "verbose logging")
    info = HelpInfo(
        commands=definitions,
        flag_sets=sets,
        program="deployer",
        about="Deploy and verify services.",
        command_prefix="Commands may be chained.",
    )
    usage = make_usage_with_subcommands(info, console, global_flags)
    usage()
    output = console.file.getvalue()
    assert output.startswith(
        "Usage: deployer [GLOBAL_OPTIONS] (COMMAND [COMMAND_OPTIONS])+"
    )
    assert "Deploy and verify services." in output
    assert "GLOBAL_OPTIONS:" in output
    assert "verbose logging" in output
    assert "Commands may be chained." in output
    assert "COMMANDS: (type 'deployer COMMAND -help' for command specific help)" in output
    assert "  deploy  Deploy the application" in output
    assert "FLAGS FOR ALL COMMANDS:" in output
    assert "Usage of deploy:" in output
    assert "Usage of check:" in output
    assert output.index("GLOBAL_OPTIONS:") < output.index("COMMANDS:")
    assert output.index("COMMANDS:") < output.index("FLAGS FOR ALL COMMANDS:")


def test_usage_skips_command_table(console, sets, definitions):
    info = HelpInfo(
        commands=definitions,
        flag_sets=sets,
        program="deployer",
        skip_printing_commands=True,
    )
    make_usage_with_subcommands(info, console)()
    output = console.file.getvalue()
    assert "COMMANDS:" not in output
    assert "Deploy the application" not in output


def test_usage_with_parsed_args_prints_only_selected_sets(console, sets, definitions):
    info = HelpInfo(
        commands=definitions,
        flag_sets=sets,
        program="deployer",
        parsed_args=["check", "-verbose"],
    )
    make_usage_with_subcommands(info, console)()
    output = console.file.getvalue()
    assert "Usage of check:" in output
    assert "Usage of deploy:" not in output
    assert "FLAGS FOR ALL COMMANDS:" not in output


def test_usage_installed_as_usage_func(console, sets, definitions):
    global_flags = FlagSet("deployer", console=console)
    info = HelpInfo(commands=definitions, flag_sets=sets, program="deployer")
    global_flags.usage_func = make_usage_with_subcommands(info, console, global_flags)
    global_flags.usage()
    assert console.file.getvalue().startswith("Usage: deployer")


def test_program_defaults_to_invocation(console, monkeypatch):
    monkeypatch.setattr("flagchain.help.get_program_invocation", lambda: "mytool")
    make_usage_with_subcommands(HelpInfo(), console)()
    assert console.file.getvalue().startswith("Usage: mytool ")
