"""Unit tests for generation payload shape classifiers."""

from pdfchat.llm.classifiers import (
    as_text,
    classify_choices,
    classify_messages,
    classify_output_list,
    classify_payload,
    classify_results,
    serialize_payload,
    streaming_partial,
)
from pdfchat.models.enums import PayloadShape


class TestStreaming:
    """Test the {response, done} shape."""

    def test_partial(self):
        assert streaming_partial({"response": "Pa", "done": False}) == ("Pa", False)

    def test_requires_both_keys(self):
        assert streaming_partial({"response": "Paris"}) is None
        assert streaming_partial({"done": True}) is None

    def test_null_response_is_empty_text(self):
        assert streaming_partial({"response": None, "done": True}).text == ""

    def test_non_dict(self):
        assert streaming_partial(["response", "done"]) is None


class TestOutputList:
    """Test concatenation of output lists."""

    def test_concatenates(self):
        assert classify_output_list({"output": ["Answer: ", "two ", "years"]}) == "Answer: two years"

    def test_blank_output_does_not_match(self):
        assert classify_output_list({"output": [" ", ""]}) is None

    def test_non_list_output(self):
        assert classify_output_list({"output": "text"}) is None


class TestChoices:
    """Test OpenAI-style choices."""

    def test_message_content(self):
        payload = {"choices": [{"message": {"role": "assistant", "content": "Answer: yes"}}]}
        assert classify_choices(payload) == "Answer: yes"

    def test_text_fallback(self):
        assert classify_choices({"choices": [{"text": "Answer: no"}]}) == "Answer: no"

    def test_empty_content_still_matches(self):
        assert classify_choices({"choices": [{"message": {"content": ""}}]}) == ""

    def test_empty_choices(self):
        assert classify_choices({"choices": []}) is None

    def test_choice_without_text(self):
        assert classify_choices({"choices": [{"index": 0}]}) is None


class TestResults:
    """Test results records."""

    def test_first_result_content(self):
        assert classify_results({"results": [{"content": "first"}, {"content": "second"}]}) == "first"

    def test_missing_content(self):
        assert classify_results({"results": [{"score": 1}]}) is None


class TestMessages:
    """Test message list concatenation."""

    def test_text_then_content_per_message(self):
        payload = {"messages": [{"text": "a", "content": "b"}, {"content": "c"}]}
        assert classify_messages(payload) == "abc"

    def test_empty_join_does_not_match(self):
        assert classify_messages({"messages": [{"role": "assistant"}]}) is None

    def test_skips_non_dict_messages(self):
        assert classify_messages({"messages": ["x", {"text": "y"}]}) == "y"


class TestClassifyPayload:
    """Test priority order across classifiers."""

    def test_streaming_wins_over_choices(self):
        payload = {"response": "s", "done": True, "choices": [{"text": "c"}]}
        assert classify_payload(payload) == (PayloadShape.STREAMING, "s")

    def test_output_before_choices(self):
        payload = {"output": ["o"], "choices": [{"text": "c"}]}
        assert classify_payload(payload) == (PayloadShape.OUTPUT_LIST, "o")

    def test_blank_output_falls_through_to_choices(self):
        payload = {"output": [" "], "choices": [{"text": "c"}]}
        assert classify_payload(payload) == (PayloadShape.CHOICES, "c")

    def test_results_before_messages(self):
        payload = {"results": [{"content": "r"}], "messages": [{"text": "m"}]}
        assert classify_payload(payload) == (PayloadShape.RESULTS, "r")

    def test_unknown_shape(self):
        assert classify_payload({"status": "queued"}) is None

    def test_non_dict_payload(self):
        assert classify_payload(["a", "b"]) is None
        assert classify_payload("plain") is None


class TestSerialization:
    """Test text rendering helpers."""

    def test_compact_json(self):
        assert serialize_payload({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_keeps_unicode(self):
        assert serialize_payload({"t": "café"}) == '{"t":"café"}'

    def test_as_text(self):
        assert as_text(None) == ""
        assert as_text("x") == "x"
        assert as_text(3) == "3"
