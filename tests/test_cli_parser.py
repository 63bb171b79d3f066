"""Tests for CLI command parsing."""

import pytest

from cli.models import DeleteCommand, ListCommand, MergeCommand, ResolveCommand, UploadCommand
from cli.parser import ParseError, parse_command


def test_parse_upload_single():
    assert parse_command("upload movie.mkv") == UploadCommand(paths=("movie.mkv",))


def test_parse_upload_quoted_paths():
    cmd = parse_command('upload "my file.txt" other.bin')
    assert cmd.paths == ("my file.txt", "other.bin")


def test_parse_upload_without_paths():
    with pytest.raises(ParseError, match="at least one file path"):
        parse_command("upload")


def test_parse_list():
    assert parse_command("list") == ListCommand()


def test_parse_list_rejects_arguments():
    with pytest.raises(ParseError):
        parse_command("list extra")


def test_parse_resolve():
    assert parse_command("resolve abc-123") == ResolveCommand(file_id="abc-123")


@pytest.mark.parametrize("line", ["resolve", "resolve a b", "delete", "delete a b"])
def test_file_id_commands_need_exactly_one_argument(line):
    with pytest.raises(ParseError, match="exactly 1 argument"):
        parse_command(line)


def test_parse_merge_default_output():
    assert parse_command("merge abc") == MergeCommand(file_id="abc")


def test_parse_merge_with_output():
    assert parse_command("merge abc ./out.bin") == MergeCommand(file_id="abc", output_path="./out.bin")


def test_parse_merge_too_many_arguments():
    with pytest.raises(ParseError):
        parse_command("merge a b c")


def test_parse_delete():
    assert parse_command("delete abc") == DeleteCommand(file_id="abc")


def test_parse_unknown_command():
    with pytest.raises(ParseError, match="Unknown command"):
        parse_command("rename a b")


def test_parse_empty():
    with pytest.raises(ParseError, match="Empty command"):
        parse_command("   ")


def test_parse_unbalanced_quotes():
    with pytest.raises(ParseError, match="Invalid syntax"):
        parse_command('upload "unterminated')
