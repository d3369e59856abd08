"""Tests for the synthetic webhook emitter."""

import json

import httpx
import pytest

from zulip_buildkite_bot.emitter import EVENT_TYPES, build_events, send_events
from zulip_buildkite_bot.events import (
    BuildFinished,
    BuildStarted,
    BuildState,
    JobFinished,
    decode_event,
)
from zulip_buildkite_bot.routing import route


class TestBuildEvents:
    @pytest.mark.parametrize("event_type", EVENT_TYPES)
    def test_every_payload_decodes(self, event_type):
        for payload in build_events(event_type, "123"):
            event = decode_event(payload)
            assert event is not None
            assert event.number == "123"

    def test_all_sequence(self):
        events = [decode_event(p) for p in build_events("all", "7")]
        assert [type(e) for e in events] == [BuildStarted, JobFinished, JobFinished, BuildFinished]
        assert [e.state for e in events[1:]] == [BuildState.PASSED, BuildState.FAILED, BuildState.PASSED]

    def test_scenario_ends_failed(self):
        events = [decode_event(p) for p in build_events("scenario", "7")]
        assert len(events) == 4
        assert events[-1].state is BuildState.FAILED

    @pytest.mark.parametrize("state", ["passed", "failed", "canceled"])
    def test_build_finished_states(self, state):
        (payload,) = build_events(f"build-{state}", "9")
        assert decode_event(payload).state is BuildState(state)

    def test_lang_routing(self):
        (payload,) = build_events("lang-routing", "1")
        assert route(decode_event(payload).pipeline, "buildkite") == "sami"

    def test_keyboard_routing(self):
        (payload,) = build_events("keyboard-routing", "1")
        assert route(decode_event(payload).pipeline, "buildkite") == "finnish"

    def test_build_started_has_commit_link_data(self):
        (payload,) = build_events("build-started", "1")
        event = decode_event(payload)
        assert event.repository_url == "https://github.com/my-org/my-repo"
        assert event.commit

    def test_non_numeric_build_number(self):
        (payload,) = build_events("build-passed", "abc")
        assert decode_event(payload).number == "abc"

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown event type"):
            build_events("build-exploded", "1")


class TestSendEvents:
    async def test_posts_each_event_in_order(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append((str(request.url), json.loads(request.content)))
            return httpx.Response(200, json={"message": "OK"})

        events = build_events("all", "5")
        accepted = await send_events(
            "http://localhost:3000/",
            events,
            delay=0,
            transport=httpx.MockTransport(handler),
        )

        assert accepted == 4
        assert [url for url, _ in received] == ["http://localhost:3000/webhook"] * 4
        assert [body["event"] for _, body in received] == [
            "build.started",
            "job.finished",
            "job.finished",
            "build.finished",
        ]

    async def test_counts_rejected_events(self):
        def handler(request):
            return httpx.Response(502, json={"message": "Delivery failed"})

        accepted = await send_events(
            "http://localhost:3000",
            build_events("build-started", "1"),
            delay=0,
            transport=httpx.MockTransport(handler),
        )
        assert accepted == 0

    async def test_connection_error_does_not_abort(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        accepted = await send_events(
            "http://localhost:3000",
            build_events("scenario", "1"),
            delay=0,
            transport=httpx.MockTransport(handler),
        )
        assert accepted == 0
        assert len(calls) == 4
