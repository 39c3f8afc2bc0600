"""Unit tests for the generation client: endpoint probing, polling and fallbacks."""

import pytest
import requests
from unittest.mock import MagicMock, patch

from pdfchat.exceptions import NoWorkingEndpoint, ServiceUnavailableError
from pdfchat.llm.client import GenerationClient, PollingPolicy
from pdfchat.llm.deadline import Deadline
from pdfchat.llm.endpoints import (
    NativeChatEndpoint,
    NativeCompletionEndpoint,
    OpenAIChatEndpoint,
    decode_payload,
)
from pdfchat.models.enums import EndpointKind

BASE_URL = "http://llm:11434"


def _response(payload=None, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    resp.json.return_value = payload
    return resp


def _client(responses, policy=None):
    session = MagicMock(spec=requests.Session)
    session.post.side_effect = responses
    client = GenerationClient(BASE_URL, model="mistral", max_tokens=256, policy=policy, session=session)
    return client, session


def _posted_urls(session):
    return [c.args[0] for c in session.post.call_args_list]


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("pdfchat.llm.deadline.time.sleep") as mock_sleep:
        yield mock_sleep


class TestEndpointProbing:
    """Test fall-through across the candidate endpoints."""

    def test_404_falls_through_to_next_endpoint(self):
        client, session = _client([
            _response(status_code=404),
            _response({"message": {"role": "assistant"}, "choices": [{"text": "Answer: from chat"}]}),
        ])
        assert client.generate_raw("q") == "Answer: from chat"
        assert _posted_urls(session) == [f"{BASE_URL}/api/generate", f"{BASE_URL}/api/chat"]

    def test_errors_fall_through_to_openai_endpoint(self):
        client, session = _client([
            requests.ConnectionError("refused"),
            _response(status_code=500),
            _response({"choices": [{"message": {"content": "Answer: openai"}}]}),
        ])
        assert client.generate_raw("q") == "Answer: openai"
        assert _posted_urls(session)[-1] == f"{BASE_URL}/v1/chat/completions"

    def test_null_payload_falls_through(self):
        client, _ = _client([
            _response(None),
            _response({"results": [{"content": "Answer: results"}]}),
        ])
        assert client.generate_raw("q") == "Answer: results"

    def test_all_endpoints_failing_raises(self):
        client, session = _client([_response(status_code=404)] * 3)
        with pytest.raises(NoWorkingEndpoint, match="No working LLM endpoint"):
            client.generate("q")
        assert session.post.call_count == 3

    def test_no_working_endpoint_is_service_unavailable(self):
        client, _ = _client([requests.Timeout("slow")] * 3)
        with pytest.raises(ServiceUnavailableError):
            client.generate("q")

    def test_request_bodies_per_endpoint(self):
        client, session = _client([
            _response(status_code=404),
            _response(status_code=404),
            _response({"choices": [{"text": "Answer: ok then"}]}),
        ])
        client.generate_raw("Where?")
        bodies = [c.kwargs["json"] for c in session.post.call_args_list]
        assert bodies[0] == {"model": "mistral", "prompt": "Where?", "max_tokens": 256}
        assert bodies[1] == bodies[0]
        assert bodies[2] == {
            "model": "mistral",
            "messages": [{"role": "user", "content": "Where?"}],
            "max_tokens": 256,
        }

    def test_expired_deadline_makes_no_calls(self):
        client, session = _client([])
        with pytest.raises(NoWorkingEndpoint):
            client.generate_raw("q", deadline=Deadline(0))
        session.post.assert_not_called()


class TestStreamingPoll:
    """Test polling of partial streaming responses."""

    def test_polls_once_until_done(self, no_sleep):
        client, session = _client([
            _response({"response": "Pa", "done": False}),
            _response({"response": "Paris", "done": True}),
        ])
        assert client.generate_raw("capital of France?") == "Paris"
        assert session.post.call_count == 2
        no_sleep.assert_called_once_with(0.8)

    def test_done_response_needs_no_poll(self):
        client, session = _client([_response({"response": "Answer: the sky is blue", "done": True})])
        assert client.generate_raw("q") == "Answer: the sky is blue"
        assert session.post.call_count == 1

    def test_backoff_grows_linearly(self, no_sleep):
        client, _ = _client([
            _response({"response": "", "done": False}),
            _response({"response": "a", "done": False}),
            _response({"response": "ab", "done": True}),
        ])
        assert client.generate_raw("q") == "ab"
        assert [c.args[0] for c in no_sleep.call_args_list] == [0.8, 1.6]

    def test_attempt_budget_returns_last_partial(self):
        policy = PollingPolicy(max_poll_attempts=3)
        client, session = _client(
            [_response({"response": f"part{i}", "done": False}) for i in range(4)],
            policy=policy,
        )
        assert client.generate_raw("q") == "part3"
        assert session.post.call_count == 4

    def test_poll_failure_keeps_text_so_far(self):
        client, session = _client([
            _response({"response": "Pa", "done": False}),
            requests.ConnectionError("dropped"),
        ])
        assert client.generate_raw("q") == "Pa"
        assert session.post.call_count == 2

    def test_poll_without_response_key_keeps_text(self):
        client, _ = _client([
            _response({"response": "Paris", "done": False}),
            _response({"done": True}),
        ])
        assert client.generate_raw("q") == "Paris"

    def test_polls_same_endpoint(self):
        client, session = _client([
            _response(status_code=404),
            _response({"response": "x", "done": False}),
            _response({"response": "xy", "done": True}),
        ])
        client.generate_raw("q")
        assert _posted_urls(session)[1:] == [f"{BASE_URL}/api/chat"] * 2


class TestShortPayloadPoll:
    """Test re-polling of suspiciously short unrecognized payloads."""

    def test_short_payload_is_repolled_until_long_enough(self):
        client, session = _client([
            _response({"status": "ok"}),
            _response({"choices": [{"text": "short"}]}),
            _response({"choices": [{"text": "Answer: a sufficiently long reply"}]}),
        ])
        assert client.generate_raw("q") == "Answer: a sufficiently long reply"
        assert session.post.call_count == 3

    @pytest.mark.parametrize(
        "follow",
        [
            {"response": "Answer: a sufficiently long reply", "done": False},
            {"output": ["Answer: a sufficiently ", "long reply"]},
            {"choices": [{"message": {"content": "Answer: a sufficiently long reply"}}]},
            {"results": [{"content": "Answer: a sufficiently long reply"}]},
            {"messages": [{"text": "Answer: a sufficiently "}, {"content": "long reply"}]},
        ],
        ids=["streaming", "output", "choices", "results", "messages"],
    )
    def test_follow_up_of_any_shape_is_classified(self, follow):
        client, session = _client([_response({"status": "ok"}), _response(follow)])
        assert client.generate_raw("q") == "Answer: a sufficiently long reply"
        assert session.post.call_count == 2

    def test_unrecognized_follow_up_keeps_candidate(self):
        client, session = _client([_response({"status": "ok"})] + [_response({"queued": 1})] * 5)
        assert client.generate_raw("q") == '{"status":"ok"}'
        assert session.post.call_count == 6

    def test_unrecognized_follow_up_keeps_earlier_classified_text(self):
        client, _ = _client([
            _response({"status": "ok"}),
            _response({"results": [{"content": "short one"}]}),
            _response({"queued": 1}),
            requests.ConnectionError("dropped"),
        ])
        assert client.generate_raw("q") == "short one"

    def test_exhausted_short_poll_returns_last_payload(self, no_sleep):
        client, session = _client([_response({"status": "ok"})] * 6)
        assert client.generate_raw("q") == '{"status":"ok"}'
        assert session.post.call_count == 6
        assert len(no_sleep.call_args_list) == 5

    def test_short_poll_failure_returns_last_text(self):
        client, _ = _client([
            _response({"status": "ok"}),
            _response({"choices": [{"text": "Answer: hi"}]}),
            requests.ConnectionError("dropped"),
        ])
        assert client.generate_raw("q") == "Answer: hi"

    def test_short_poll_can_be_disabled(self):
        client, session = _client([_response({"status": "ok"})], policy=PollingPolicy(short_poll_enabled=False))
        assert client.generate_raw("q") == '{"status":"ok"}'
        assert session.post.call_count == 1

    def test_long_unknown_payload_is_returned_as_json(self):
        payload = {"status": "complete", "detail": "nothing recognizable here"}
        client, session = _client([_response(payload)])
        assert client.generate_raw("q") == '{"status":"complete","detail":"nothing recognizable here"}'
        assert session.post.call_count == 1


class TestGenerate:
    """Test the answer-level entry point."""

    def test_extracts_final_answer(self):
        client, _ = _client([_response({"response": "Answer: Paris is the capital [1].", "done": True})])
        assert client.generate("q") == "Paris is the capital [1]."

    @pytest.mark.parametrize("prompt", [None, ""])
    def test_empty_prompt_makes_no_calls(self, prompt):
        client, session = _client([])
        assert client.generate(prompt) == ""
        session.post.assert_not_called()

    def test_model_property(self):
        client, _ = _client([])
        assert client.model == "mistral"


class TestEndpoints:
    """Test endpoint strategies and body decoding."""

    def test_probe_order(self):
        kinds = [e.kind for e in (NativeCompletionEndpoint(), NativeChatEndpoint(), OpenAIChatEndpoint())]
        assert kinds == [EndpointKind.NATIVE_COMPLETION, EndpointKind.NATIVE_CHAT, EndpointKind.OPENAI_CHAT]

    def test_decodes_first_ndjson_line(self):
        resp = MagicMock()
        resp.json.side_effect = ValueError("Extra data")
        resp.text = '\n{"response":"Pa","done":false}\n{"response":"ris","done":false}\n'
        assert decode_payload(resp) == {"response": "Pa", "done": False}

    def test_empty_body_decodes_to_none(self):
        resp = MagicMock()
        resp.json.side_effect = ValueError("Expecting value")
        resp.text = "  \n"
        assert decode_payload(resp) is None
