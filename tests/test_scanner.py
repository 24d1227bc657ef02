import pytest

from segmenter.buffer import ChunkBuffer
from segmenter.scanner import (
    ScanStatus,
    backtick_run,
    scan_close_fence,
    scan_open_fence,
)


def test_chunk_buffer_peek_and_consume():
    b = ChunkBuffer()
    assert not b
    b.append("ab")
    b.append("")
    b.append("c`d")
    assert len(b) == 5
    assert b.peek(2) == "ab"
    assert b.find("`") == 3
    assert b.consume(3) == "abc"
    assert b.text == "`d"
    b.clear()
    assert not b and b.text == ""


def test_backtick_run():
    assert backtick_run("``a") == 2
    assert backtick_run("a``", 1) == 2
    assert backtick_run("") == 0


@pytest.mark.parametrize("text", ["`", "``", "```", "```js", "``` js:", "```js\r"])
def test_open_fence_waits_for_more_text(text):
    assert scan_open_fence(text).status is ScanStatus.INCONCLUSIVE


def test_open_fence_match():
    result = scan_open_fence("```jsx\nfoo")
    assert result.status is ScanStatus.MATCH
    assert result.length == 7
    assert result.run == 3
    assert result.language == "jsx"


def test_open_fence_longer_run_without_language():
    result = scan_open_fence("````\n")
    assert result.status is ScanStatus.MATCH
    assert (result.length, result.run, result.language) == (5, 4, "")


@pytest.mark.parametrize(
    "text,length",
    [("``x", 2), ("`a`", 1), ("```js x\n", 3), ("```" + "a" * 70, 3), ("```a`", 3)],
)
def test_open_fence_ruled_out(text, length):
    result = scan_open_fence(text)
    assert result.status is ScanStatus.NO_MATCH
    assert result.length == length


def test_open_fence_at_end_of_stream():
    assert scan_open_fence("``", final=True).length == 2
    assert scan_open_fence("```", final=True).status is ScanStatus.NO_MATCH
    assert scan_open_fence("```js", final=True).status is ScanStatus.NO_MATCH


def test_close_fence():
    assert scan_close_fence("```\nDone", 3).status is ScanStatus.MATCH
    assert scan_close_fence("```\nDone", 3).length == 3
    assert scan_close_fence("````\n", 3).length == 4
    assert scan_close_fence("```  \t\r\n", 3).status is ScanStatus.MATCH


def test_close_fence_inconclusive_until_line_end():
    assert scan_close_fence("```", 3).status is ScanStatus.INCONCLUSIVE
    assert scan_close_fence("```  ", 3).status is ScanStatus.INCONCLUSIVE
    assert scan_close_fence("```", 3, final=True).status is ScanStatus.MATCH
    assert scan_close_fence("```  ", 3, final=True).status is ScanStatus.MATCH


def test_close_fence_literal_cases():
    nested = scan_close_fence("```js\n", 3)
    assert nested.status is ScanStatus.NO_MATCH and nested.length == 3
    short = scan_close_fence("```\n", 4)
    assert short.status is ScanStatus.NO_MATCH and short.length == 3
    assert scan_close_fence("``\n", 3).length == 2
