from segmenter import CODE_PLACEHOLDER, SegmentKind, parse_content
from segmenter.events import EventBus, EventType


RESPONSE = (
    '{"dependencies": {"react-confetti": "^6.1.0"}}\n\n'
    "A confetti button.\n\n"
    "```jsx\n"
    'import Confetti from "react-confetti";\n'
    "export default function App() { return <Confetti />; }\n"
    "```\n"
    "Click it!"
)


def test_parse_content_complete_answer():
    parsed = parse_content(RESPONSE)
    assert parsed.dependencies == {"react-confetti": "^6.1.0"}
    assert [s.kind for s in parsed.segments] == [SegmentKind.PROSE, SegmentKind.CODE, SegmentKind.PROSE]
    assert parsed.segments[0].content == "A confetti button.\n\n"
    assert parsed.code.language == "jsx"
    assert parsed.code.content.startswith("import Confetti")
    assert parsed.display_text == "A confetti button.\n\n" + CODE_PLACEHOLDER + "\nClick it!"
    assert all(s.closed for s in parsed.segments)


def test_parse_content_without_code():
    parsed = parse_content("Sorry, I can't help with that.")
    assert parsed.code is None
    assert parsed.dependencies == {}


def test_parse_content_passes_options():
    parsed = parse_content("A\n```js\nx\n```", placeholder="<code/>")
    assert parsed.display_text == "A\n<code/>"


def test_event_bus_records_when_asked():
    bus = EventBus(record=True)
    seen = []
    bus.on("text", lambda delta, full: seen.append(delta))
    bus.emit(EventType.TEXT, "a", "a")
    bus.emit(EventType.CODE_BLOCK_START, "js")
    events = bus.drain()
    assert [e.type for e in events] == [EventType.TEXT, EventType.CODE_BLOCK_START]
    assert events[1].args == ("js",)
    assert seen == ["a"]
    assert bus.drain() == []


def test_event_bus_without_recording_keeps_no_queue():
    bus = EventBus()
    bus.emit(EventType.CODE, "x", "js")
    assert bus.drain() == []
