import pytest

from flagchain.exceptions import (
    FlagParseError,
    NoMatchingCommandError,
    UnknownCommandError,
)
from flagchain.flagset import FlagSet
from flagchain.signals import HelpSignal
from flagchain.subcommands import FlagSetIterator, IteratorState


@pytest.fixture
def deploy():
    flag_set = FlagSet("deploy")
    flag_set.string_var("env", "dev", "Environment to deploy to")
    flag_set.string_list_var("tag", "Tags to apply", dest="tags")
    flag_set.bool_var("dry-run", False, "Print actions only")
    return flag_set


@pytest.fixture
def tester():
    flag_set = FlagSet("test")
    flag_set.bool_var("verbose", False, "verbose output")
    return flag_set


def test_chain_of_two_commands(deploy, tester):
    iterator = FlagSetIterator(
        ["deploy", "-env", "prod", "-tag", "a", "test", "-verbose"], [deploy, tester]
    )
    assert iterator.step()
    assert iterator.flag_set is deploy
    assert iterator.state is IteratorState.MATCHED
    assert deploy.output.env == "prod"
    assert deploy.output.tags == ["a"]
    assert iterator.args == ["test", "-verbose"]

    assert iterator.step()
    assert iterator.flag_set is tester
    assert tester.output.verbose is True
    assert iterator.args == []

    assert not iterator.step()
    assert iterator.err is None
    assert iterator.flag_set is None
    assert iterator.state is IteratorState.EXHAUSTED


def test_exhausted_iterator_stays_exhausted(tester):
    iterator = FlagSetIterator(["test"], [tester])
    assert iterator.step()
    assert not iterator.step()
    assert not iterator.step()
    assert iterator.err is None


def test_reuse_isolation_for_accumulating_flag():
    cmd = FlagSet("cmd")
    cmd.string_list_var("x")
    iterator = FlagSetIterator(["cmd", "-x", "a", "cmd"], [cmd])

    assert iterator.step()
    first = cmd.output.x
    assert first == ["a"]

    assert iterator.step()
    assert cmd.output.x == []
    assert first == ["a"]
    assert not iterator.step()
    assert iterator.err is None


def test_reuse_isolation_for_scalars(deploy):
    iterator = FlagSetIterator(
        ["deploy", "-env", "prod", "-dry-run", "deploy", "-tag", "b"], [deploy]
    )
    assert iterator.step()
    assert deploy.output.env == "prod"
    assert deploy.output.dry_run is True
    assert iterator.step()
    assert deploy.output.env == "dev"
    assert deploy.output.dry_run is False
    assert deploy.output.tags == ["b"]
    assert [flag.name for flag in deploy.set_flags] == ["tag"]


def test_unknown_command(deploy, tester):
    iterator = FlagSetIterator(["frobnicate"], [deploy, tester])
    assert not iterator.step()
    assert isinstance(iterator.err, UnknownCommandError)
    assert iterator.err.command == "frobnicate"
    assert str(iterator.err) == "unknown command: frobnicate"
    assert iterator.flag_set is None
    assert iterator.args == ["frobnicate"]
    assert iterator.state is IteratorState.FAILED


def test_unknown_command_after_positional_leftover(deploy, tester):
    iterator = FlagSetIterator(["test", "-verbose", "./...", "deploy"], [deploy, tester])
    assert iterator.step()
    assert iterator.args == ["./...", "deploy"]
    assert not iterator.step()
    assert isinstance(iterator.err, UnknownCommandError)
    assert iterator.err.command == "./..."


def test_caller_consumes_positionals_with_advance(deploy, tester):
    iterator = FlagSetIterator(["test", "./...", "deploy", "-env", "qa"], [deploy, tester])
    assert iterator.step()
    assert iterator.args[0] == "./..."
    assert iterator.advance(1)
    assert iterator.step()
    assert iterator.flag_set is deploy
    assert deploy.output.env == "qa"


def test_caller_may_replace_args(deploy, tester):
    iterator = FlagSetIterator(["test", "./..."], [deploy, tester])
    assert iterator.step()
    iterator.args = ["deploy"]
    assert iterator.step()
    assert iterator.flag_set is deploy


def test_empty_input_is_no_match(deploy):
    iterator = FlagSetIterator([], [deploy])
    assert not iterator.step()
    assert isinstance(iterator.err, NoMatchingCommandError)
    assert str(iterator.err) == "no matching commands"
    assert iterator.flag_set is None


def test_no_sets_is_unknown_command():
    iterator = FlagSetIterator(["deploy"], [])
    assert not iterator.step()
    assert isinstance(iterator.err, UnknownCommandError)


@pytest.mark.parametrize("count", [3, 4, 100])
def test_advance_past_end(deploy, count):
    iterator = FlagSetIterator(["a", "b", "c"], [deploy])
    assert not iterator.advance(count)
    assert iterator.args == []
    assert not iterator.step()
    assert isinstance(iterator.err, NoMatchingCommandError)


def test_advance_past_end_after_match(deploy):
    iterator = FlagSetIterator(["deploy", "x", "y"], [deploy])
    assert iterator.step()
    assert not iterator.advance(5)
    assert not iterator.step()
    assert iterator.err is None


def test_advance_within_bounds(deploy):
    iterator = FlagSetIterator(["a", "deploy"], [deploy])
    assert iterator.advance(1)
    assert iterator.args == ["deploy"]
    assert iterator.advance(0)
    assert iterator.step()


def test_advance_rejects_negative(deploy):
    iterator = FlagSetIterator(["deploy"], [deploy])
    with pytest.raises(ValueError):
        iterator.advance(-1)


def test_parse_error_keeps_matched_set(deploy, tester):
    iterator = FlagSetIterator(["test", "deploy", "-bogus", "x"], [deploy, tester])
    assert iterator.step()
    assert not iterator.step()
    assert isinstance(iterator.err, FlagParseError)
    assert iterator.flag_set is deploy
    assert iterator.args == ["-bogus", "x"]
    assert iterator.state is IteratorState.FAILED
    assert tester.output.verbose is False


def test_help_request_reports_matched_set(deploy):
    iterator = FlagSetIterator(["deploy", "-h"], [deploy])
    assert not iterator.step()
    assert isinstance(iterator.err, HelpSignal)
    assert iterator.flag_set is deploy
    with pytest.raises(HelpSignal):
        iterator.raise_for_error()


def test_earlier_results_survive_later_failure(deploy, tester):
    iterator = FlagSetIterator(
        ["deploy", "-env", "prod", "test", "-verbose=nope"], [deploy, tester]
    )
    assert iterator.step()
    assert not iterator.step()
    assert deploy.output.env == "prod"
    with pytest.raises(FlagParseError):
        iterator.raise_for_error()


def test_first_set_with_duplicate_name_wins():
    first = FlagSet("cmd")
    first.bool_var("a")
    second = FlagSet("cmd")
    second.bool_var("b")
    iterator = FlagSetIterator(["cmd", "-a"], [first, second])
    assert iterator.step()
    assert iterator.flag_set is first


def test_reset_happens_before_parse_even_without_flags(deploy):
    deploy.set("env", "stale")
    iterator = FlagSetIterator(["deploy"], [deploy])
    assert iterator.step()
    assert deploy.output.env == "dev"


def test_iteration_yields_matched_sets(deploy, tester):
    iterator = FlagSetIterator(["test", "deploy", "test"], [deploy, tester])
    assert [flag_set.name for flag_set in iterator] == ["test", "deploy", "test"]
    assert iterator.err is None


def test_reinit_starts_over(deploy, tester):
    iterator = FlagSetIterator([], [deploy])
    assert not iterator.step()
    iterator.reinit([tester], ["test"])
    assert iterator.state is IteratorState.IDLE
    assert iterator.err is None
    assert iterator.step()
    assert iterator.flag_set is tester


def test_remaining_tail_is_what_last_set_declined(deploy):
    iterator = FlagSetIterator(["deploy", "-env", "qa", "--", "-x", "y"], [deploy])
    assert iterator.step()
    assert iterator.args == ["-x", "y"]
