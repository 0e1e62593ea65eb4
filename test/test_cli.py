from __future__ import annotations

import pytest

from r2pilot.core.config import save_config
from r2pilot.domains.completion.service import SHELLS, build_tree, generate_completion
from r2pilot.main import create_parser, main
from r2pilot.version import VERSION

from conftest import make_config


@pytest.fixture
def parser():
    return create_parser()


def test_files_upload_arguments(parser):
    args = parser.parse_args(
        ["files", "upload", "video.mp4", "media/video.mp4", "--multipart", "--progress", "--bucket", "b"]
    )

    assert (args.command, args.action) == ("files", "upload")
    assert args.file == "video.mp4"
    assert args.key == "media/video.mp4"
    assert args.multipart and args.progress
    assert args.bucket == "b"
    assert args.content_type is None


def test_global_and_command_output_flags(parser):
    args = parser.parse_args(["--output", "json", "urls", "generate", "k"])
    assert args.output == "json"
    assert args.url_output is None
    assert args.method == "get"

    args = parser.parse_args(["urls", "generate", "k", "--output", "json", "--method", "PUT", "--expires", "60"])
    assert args.output is None
    assert args.url_output == "json"
    assert args.method == "put"
    assert args.expires == 60


def test_set_requires_a_source(parser):
    with pytest.raises(SystemExit):
        parser.parse_args(["cors", "set"])
    with pytest.raises(SystemExit):
        parser.parse_args(["lifecycle", "set", "--interactive", "--file", "x.json"])

    args = parser.parse_args(["cors", "set", "--file", "cors.json", "--bucket", "b"])
    assert args.file == "cors.json"
    assert not args.interactive


def test_tokens_create_repeatable_ip(parser):
    args = parser.parse_args(["tokens", "create", "--name", "ci", "--ip", "10.0.0.1", "--ip", "10.0.0.2"])

    assert args.ip == ["10.0.0.1", "10.0.0.2"]


def test_ls_limit_must_be_positive(parser):
    with pytest.raises(SystemExit):
        parser.parse_args(["files", "ls", "--limit", "0"])


def test_version(parser, capsys):
    with pytest.raises(SystemExit) as excinfo:
        parser.parse_args(["--version"])

    assert excinfo.value.code == 0
    assert VERSION in capsys.readouterr().out


def test_command_is_required(parser):
    with pytest.raises(SystemExit) as excinfo:
        parser.parse_args([])

    assert excinfo.value.code == 2


def test_tree_lists_commands_and_options(parser):
    tree = build_tree(parser)

    root = [name for name, _ in tree[""].commands]
    assert root == [
        "init", "config", "tokens", "buckets", "files", "urls",
        "completion", "doctor", "cors", "lifecycle", "website",
    ]
    assert "--multipart" in tree["files upload"].words()
    assert tree["completion"].choices == list(SHELLS)
    assert [name for name, _ in tree["website"].commands] == ["enable", "disable", "get"]


@pytest.mark.parametrize("shell", SHELLS)
def test_completion_scripts_mention_every_command(parser, shell):
    script = generate_completion(parser, shell)

    for word in ("files", "buckets", "test-connection", "content-type"):
        assert word in script


def test_bash_completion_shape(parser):
    script = generate_completion(parser, "bash")

    assert script.rstrip().endswith("complete -F _r2pilot r2pilot")
    assert '"files upload") COMPREPLY=' in script


def test_fish_completion_shape(parser):
    script = generate_completion(parser, "fish")

    assert "complete -c r2pilot -n '__fish_use_subcommand' -a files" in script
    assert "-l multipart" in script


def test_main_prints_config_path(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("R2PILOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)

    assert main(["config", "path"]) == 0
    assert str(tmp_path / "config.toml") in capsys.readouterr().out


def test_main_without_config_reports_init_hint(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("R2PILOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)

    assert main(["--no-color", "files", "ls"]) == 2
    assert "r2pilot init" in capsys.readouterr().err


def test_main_rejects_default_bucket_deletion(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("R2PILOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    save_config(make_config(api_token="cf-token", access_key_id=None, secret_access_key=None), tmp_path / "config.toml")

    assert main(["--no-color", "buckets", "delete", "my-bucket", "--yes"]) == 2
    assert "Cannot delete default bucket" in capsys.readouterr().err


def test_main_completion_writes_script_to_stdout(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("R2PILOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)

    assert main(["completion", "bash"]) == 0
    captured = capsys.readouterr()
    assert captured.out.startswith("# bash completion for r2pilot")
    assert "source <(r2pilot completion bash)" in captured.err
