from __future__ import annotations

import json

import pytest

from chat_client import GENERIC_FAILURE, ChatSession, ErrorBody, Message, RetryPolicy, apply_fragment, describe_error


def test_apply_fragment_starts_reply_after_user_message():
    transcript = [Message(role="user", content="hi")]

    updated = apply_fragment(transcript, "Hel")

    assert updated == [Message(role="user", content="hi"), Message(role="assistant", content="Hel")]
    assert transcript == [Message(role="user", content="hi")]


def test_apply_fragment_grows_trailing_assistant_message():
    transcript = [Message(role="user", content="hi")]
    for fragment in ["Hel", "lo", " world"]:
        transcript = apply_fragment(transcript, fragment)

    assert transcript == [Message(role="user", content="hi"), Message(role="assistant", content="Hello world")]


def test_apply_fragment_on_empty_transcript():
    assert apply_fragment([], "x") == [Message(role="assistant", content="x")]


def test_message_payload_shape():
    assert Message(role="user", content="ok").as_payload() == {"role": "user", "content": "ok"}


def _body(**fields) -> bytes:
    return json.dumps(fields).encode("utf-8")


@pytest.mark.parametrize(
    ("status_code", "raw", "expected"),
    [
        (
            429,
            _body(details="busy", source="gemini", rateHeaders={"x-ratelimit-remaining": "3", "x-ratelimit-reset": "9"}),
            "Gemini rate limit. Remaining: 3. Reset: 9 (busy)",
        ),
        (429, _body(source="gemini"), "Gemini rate limit. Remaining: ?. Reset: ?"),
        (429, _body(error="Too many requests"), "Supabase rate limit. Try again shortly. (Too many requests)"),
        (429, b"not json", "Supabase rate limit. Try again shortly."),
        (402, _body(details="quota", source="gemini"), "API quota/credentials issue. Please check your AI key."),
        (
            403,
            b"",
            "Forbidden. Check function JWT verification setting or use anon key in Authorization header.",
        ),
        (500, _body(error="Gemini API error", details="upstream exploded"), "upstream exploded"),
        (500, _body(error="GEMINI_API_KEY is not configured"), "GEMINI_API_KEY is not configured"),
        (500, b"<html>bad gateway</html>", GENERIC_FAILURE),
        (502, b"[1, 2]", GENERIC_FAILURE),
    ],
)
def test_describe_error(status_code, raw, expected):
    assert describe_error(status_code, raw) == expected


def test_rate_limit_details_are_truncated():
    message = describe_error(429, _body(details="d" * 500, source="other"))
    assert message == "Supabase rate limit. Try again shortly. (" + "d" * 180 + ")"


def test_error_body_ignores_unexpected_types():
    body = ErrorBody.parse(_body(details="x", source=7, rateHeaders=["nope"]))
    assert body == ErrorBody(details="x", source="", rate_headers={})


def test_retry_policy_from_env(monkeypatch):
    monkeypatch.setenv("HEALTH_CHAT_RETRIES", "2")
    monkeypatch.setenv("HEALTH_CHAT_RETRY_DELAY_SECONDS", "0.5")
    assert RetryPolicy.from_env() == RetryPolicy(retries=2, delay_seconds=0.5)

    monkeypatch.delenv("HEALTH_CHAT_RETRIES")
    monkeypatch.delenv("HEALTH_CHAT_RETRY_DELAY_SECONDS")
    assert RetryPolicy.from_env() == RetryPolicy()


@pytest.mark.parametrize(("retries", "delay"), [("one", "soon"), ("2.5", "inf"), ("", "nan")])
def test_unreadable_retry_settings_fall_back_to_defaults(monkeypatch, retries, delay):
    monkeypatch.setenv("HEALTH_CHAT_RETRIES", retries)
    monkeypatch.setenv("HEALTH_CHAT_RETRY_DELAY_SECONDS", delay)

    assert RetryPolicy.from_env() == RetryPolicy()
    assert ChatSession("http://relay.test/health-ai-chat").retry == RetryPolicy()


def test_negative_retry_settings_are_clamped(monkeypatch):
    monkeypatch.setenv("HEALTH_CHAT_RETRIES", "-3")
    monkeypatch.setenv("HEALTH_CHAT_RETRY_DELAY_SECONDS", "-1")

    assert RetryPolicy.from_env() == RetryPolicy(retries=0, delay_seconds=0.0)
