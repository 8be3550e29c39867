import json

import pytest
from langchain_core.messages import AIMessage

from content_studio.core.errors import UpstreamFormatError
from content_studio.utils.llm import message_text, parse_json_object, parse_json_response
from content_studio.utils.sse import sse_event


def test_parse_json_direct():
    assert parse_json_response('{"a": 1}') == {"a": 1}


def test_parse_json_in_code_fence():
    text = 'Here you go:\n```json\n{"variations": []}\n```\nThanks'
    assert parse_json_response(text) == {"variations": []}


def test_parse_json_outermost_braces():
    text = 'Sure! {"content": {"headline": "Hi"}} Hope that helps.'
    assert parse_json_response(text) == {"content": {"headline": "Hi"}}


def test_parse_json_rejects_non_object():
    with pytest.raises(UpstreamFormatError):
        parse_json_response("[1, 2, 3]")


def test_parse_json_failure_is_value_error():
    with pytest.raises(ValueError) as exc_info:
        parse_json_response("not json at all")
    assert "Could not parse JSON from LLM response" in str(exc_info.value)


def test_parse_json_object_is_strict():
    assert parse_json_object('  {"title": "x"}\n') == {"title": "x"}
    with pytest.raises(UpstreamFormatError):
        parse_json_object('Sure:\n{"title": "x"}')
    with pytest.raises(UpstreamFormatError):
        parse_json_object('```json\n{"title": "x"}\n```')
    with pytest.raises(UpstreamFormatError, match="Expected a JSON object"):
        parse_json_object("[1, 2]")


def test_message_text_joins_content_parts():
    message = AIMessage(content=[{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}])
    assert message_text(message) == "Hello world"


def test_message_text_accepts_plain_strings():
    assert message_text("plain") == "plain"


def test_sse_event_format():
    event = sse_event("status", status="generating", brand="cga")
    assert event.startswith("data: ")
    assert event.endswith("\n\n")
    payload = json.loads(event[len("data: "):])
    assert payload == {"type": "status", "status": "generating", "brand": "cga"}


def test_sse_event_keeps_unicode():
    assert "Māori" in sse_event("done", text="Māori")
