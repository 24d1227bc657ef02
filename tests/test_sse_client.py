"""Tests for the SSE line reader of StreamingClient."""

from unittest.mock import Mock

import pytest
import requests

from streaming_client import StreamingClient


def _session(lines):
    mock_response = Mock()
    mock_response.iter_lines.return_value = lines
    mock_response.raise_for_status.return_value = None

    mock_session = Mock()
    mock_session.post.return_value.__enter__ = Mock(return_value=mock_response)
    mock_session.post.return_value.__exit__ = Mock(return_value=None)
    return mock_session


def test_sse_lines_basic():
    """Data prefixes are stripped and keep-alive lines skipped."""
    client = StreamingClient(session=_session(["data: Hello world", "", None, "data:No space", "data: [DONE]"]))
    lines = list(client.iter_sse_lines("http://test.com", json={"test": "data"}))
    assert lines == ["Hello world", "No space", "[DONE]"]


def test_sse_comment_lines_skipped():
    """Gateway comments such as ': PROCESSING' never reach the mapper."""
    client = StreamingClient(session=_session([": OPENROUTER PROCESSING", "data: {}", ":keepalive", "event: x"]))
    assert list(client.iter_sse_lines("http://test.com")) == ["{}", "event: x"]


def test_sse_headers_and_timeout_passed():
    session = _session(["data: ok"])
    client = StreamingClient(session=session, timeout=30.0)
    list(client.iter_sse_lines("http://test.com", headers={"Authorization": "Bearer k"}))
    session.post.assert_called_once_with(
        "http://test.com",
        json=None,
        headers={"Authorization": "Bearer k"},
        stream=True,
        timeout=30.0,
    )

    list(client.iter_sse_lines("http://test.com", timeout=120.0))
    assert session.post.call_args.kwargs["timeout"] == 120.0


def test_sse_http_error_propagates():
    mock_response = Mock()
    mock_response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    session = Mock()
    session.post.return_value.__enter__ = Mock(return_value=mock_response)
    session.post.return_value.__exit__ = Mock(return_value=None)
    with pytest.raises(requests.HTTPError):
        list(StreamingClient(session=session).iter_sse_lines("http://test.com"))


def test_http_error_reported_on_result():
    mock_response = Mock()
    mock_response.raise_for_status.side_effect = requests.HTTPError("502 Bad Gateway")
    session = Mock()
    session.post.return_value.__enter__ = Mock(return_value=mock_response)
    session.post.return_value.__exit__ = Mock(return_value=None)
    result = StreamingClient(session=session).send_message(
        "http://test.com", {}, mapper=lambda lines: (("text", line) for line in lines)
    )
    assert result.error == "Network error: 502 Bad Gateway"
    assert result.text == ""
