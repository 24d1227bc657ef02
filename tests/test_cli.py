import pytest

import segment_cli
from segment_cli import build_arg_parser, handle_command, main
from chat.conversation import ConversationManager
from chat.recorder import MessageRecorder


def test_arg_parser_defaults(monkeypatch):
    for var in ("LLM_URL", "LLM_PROVIDER", "LLM_MODEL", "SEGMENTER_SESSIONS_DIR"):
        monkeypatch.delenv(var, raising=False)
    args = build_arg_parser().parse_args([])
    assert args.url == segment_cli.DEFAULT_URL
    assert args.provider == "bedrock"
    assert args.max_manifest_chars == 1024
    assert args.live is True
    assert args.replay is None


def test_arg_parser_reads_environment(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("LLM_URL", "http://localhost:9000/v1/chat/completions")
    args = build_arg_parser().parse_args([])
    assert args.provider == "openai"
    assert args.url == "http://localhost:9000/v1/chat/completions"


def test_replay_without_live_view(tmp_path, capsys):
    answer = tmp_path / "answer.txt"
    answer.write_text(
        '{"dependencies": {"dayjs": "^1.11.0"}}\nA clock:\n```jsx\nexport default () => null;\n```\nDone.',
        encoding="utf-8",
    )
    assert main(["--replay", str(answer), "--no-live", "--chunk-size", "3"]) == 0
    out = capsys.readouterr().out
    assert "Writing code..." in out
    assert "export default" not in out.split("segments")[0]
    assert "code (jsx)" in out
    assert "dayjs" in out


def test_replay_missing_file(tmp_path):
    assert main(["--replay", str(tmp_path / "nope.txt"), "--no-live"]) == 1


def test_handle_command(tmp_path):
    recorder = MessageRecorder(tmp_path)
    recorder.start(provider_name="bedrock", url="http://x")
    conversation = ConversationManager()
    conversation.add_user_message("hi")

    assert handle_command("/save", recorder, conversation)
    assert (recorder.session_dir() / "session.json").exists()
    assert handle_command("/clear", recorder, conversation)
    assert conversation.history == []
    assert not handle_command("/unknown", recorder, conversation)


def test_chunks_cover_whole_text():
    assert "".join(segment_cli._chunks("Hello world", 0)) == "Hello world"
    assert "".join(segment_cli._chunks("Hello world", -3)) == "Hello world"
    assert list(segment_cli._chunks("abcde", 2)) == ["ab", "cd", "e"]


def test_chunk_size_below_one_rejected(capsys):
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["--chunk-size", "0"])
    assert "must be at least 1" in capsys.readouterr().err
