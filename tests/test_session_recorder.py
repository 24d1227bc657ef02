import json
from pathlib import Path

from chat.recorder import MessageRecorder
from segmenter import parse_content


ANSWER = '{"dependencies": {"dayjs": "^1.11.0"}}\nA clock.\n```jsx\nexport default () => <time />;\n```\nDone.'


def test_recorder_json_markdown_and_code(tmp_path):
    rec = MessageRecorder(base_dir=tmp_path)
    rec.start(provider_name="bedrock", url="http://127.0.0.1:8000/invoke")

    parsed = parse_content(ANSWER)
    t1 = rec.start_turn("Build a clock")
    rec.record_result(
        t1,
        text=ANSWER,
        segments=parsed.segments,
        dependencies=parsed.dependencies,
        display_text=parsed.display_text,
        model="anthropic--claude-4-sonnet",
        tokens=30,
        cost=0.00123,
    )
    t2 = rec.start_turn("Make it red")
    rec.record_result(t2, text="", segments=[], dependencies={}, tokens=8, cost=0.0003, error="Network error: boom")

    obj = json.loads(Path(rec.save_json()).read_text(encoding="utf-8"))
    assert obj["version"] == 1
    assert obj["provider"]["name"] == "bedrock"
    assert obj["totals"]["turns"] == 2
    assert obj["totals"]["tokens"] == 38
    turn = obj["turns"][0]
    assert turn["dependencies"] == {"dayjs": "^1.11.0"}
    assert [s["kind"] for s in turn["segments"]] == ["prose", "code", "prose"]
    assert turn["segments"][1]["language"] == "jsx"
    assert "language" not in turn["segments"][0]

    md = Path(rec.export_markdown()).read_text(encoding="utf-8")
    assert "# Generation Session" in md
    assert "## Turn 1" in md and "## Turn 2" in md
    assert "- dayjs: ^1.11.0" in md
    assert "```jsx\nexport default () => <time />;\n```" in md
    assert "> Error: Network error: boom" in md

    code_path = rec.save_code(t1)
    assert Path(code_path).read_text(encoding="utf-8") == "export default () => <time />;\n"
    assert Path(code_path).name == "turn-1.jsx"
    assert rec.save_code(t2) is None
