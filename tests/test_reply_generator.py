"""Reply generation: transport choice, fallback and safe failure messages.

The OpenAI client is replaced by ``FakeOpenAI``, which replays queued results
and records the keyword arguments of every call.
"""

import unittest
from types import SimpleNamespace

import httpx
import openai

from assistant import reply_generator
from assistant.prompts.support.policy import build_policy_prompt
from assistant.reply_generator import (
    COULD_NOT_GENERATE_MESSAGE,
    INVALID_CREDENTIAL_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    ReplyGenerator,
    ReplyOutcome,
)
from tests.fakes import (
    OPENAI_URL,
    FakeOpenAI,
    captured_logs,
    completion,
    make_generator,
    make_history,
    status_response,
)


def responses_payload(output_text="", output=(), response_id="resp_123"):
    return SimpleNamespace(id=response_id, output_text=output_text, output=list(output))


class TestNotConfigured(unittest.IsolatedAsyncioTestCase):

    async def test_empty_key_returns_fixed_message_without_calls(self):
        client = FakeOpenAI()
        generator = make_generator(client, api_key="")

        result = await generator.generate(make_history())

        self.assertEqual(result.text, NOT_CONFIGURED_MESSAGE)
        self.assertIs(result.outcome, ReplyOutcome.NOT_CONFIGURED)
        self.assertEqual(client.response_calls, [])
        self.assertEqual(client.completion_calls, [])

    async def test_missing_key_builds_no_client(self):
        generator = ReplyGenerator(policy=build_policy_prompt(), api_key=None)

        self.assertIsNone(generator.client)
        self.assertEqual(await generator.generate_reply([]), NOT_CONFIGURED_MESSAGE)
        self.assertEqual(
            await generator.generate_reply([{"sender": "user", "text": "hi"}]),
            NOT_CONFIGURED_MESSAGE,
        )

    def test_real_client_never_retries(self):
        generator = ReplyGenerator(policy=build_policy_prompt(), api_key="sk-test", timeout=5.0)

        self.assertIsInstance(generator.client, openai.AsyncOpenAI)
        self.assertEqual(generator.client.max_retries, 0)


class TestResponsesTransport(unittest.IsolatedAsyncioTestCase):
    """Models matching the modern prefix go through the Responses API."""

    async def test_input_is_policy_then_history(self):
        client = FakeOpenAI(responses=[responses_payload(output_text="  Returns are free.  ")])
        generator = make_generator(client, model="gpt-5-nano", max_output_tokens=300)

        result = await generator.generate(make_history())

        self.assertEqual(result.text, "Returns are free.")
        self.assertIs(result.outcome, ReplyOutcome.ANSWERED)
        self.assertEqual(result.model, "gpt-5-nano")
        self.assertFalse(result.used_fallback)
        self.assertFalse(result.anomaly_logged)
        self.assertEqual(client.completion_calls, [])

        (call,) = client.response_calls
        self.assertEqual(call["model"], "gpt-5-nano")
        self.assertEqual(call["max_output_tokens"], 300)
        self.assertEqual(call["input"], [
            {"role": "system", "content": generator.policy.text},
            {"role": "user", "content": "Do you ship to the USA?"},
            {"role": "assistant", "content": "Yes, in 7-12 business days."},
            {"role": "user", "content": "And returns?"},
        ])

    async def test_nested_content_needs_no_fallback(self):
        payload = responses_payload(output=[
            SimpleNamespace(type="reasoning", content=None),
            SimpleNamespace(type="message", content=[SimpleNamespace(text="Nested answer")]),
        ])
        client = FakeOpenAI(responses=[payload])

        result = await make_generator(client).generate(make_history())

        self.assertEqual(result.text, "Nested answer")
        self.assertFalse(result.used_fallback)
        self.assertEqual(client.completion_calls, [])

    async def test_custom_prefix(self):
        client = FakeOpenAI(responses=[responses_payload(output_text="via responses")])
        generator = make_generator(client, model="o4-mini", modern_model_prefix="o4")

        self.assertTrue(generator.uses_responses_api("o4-mini"))
        self.assertFalse(generator.uses_responses_api("gpt-4o-mini"))
        self.assertEqual(await generator.generate_reply(make_history()), "via responses")


class TestChatCompletionsTransport(unittest.IsolatedAsyncioTestCase):

    async def test_parameters(self):
        client = FakeOpenAI(completions=[completion("  Sure thing.  ")])
        generator = make_generator(client, model="gpt-4o-mini", temperature=0.2, max_output_tokens=300)

        result = await generator.generate(make_history())

        self.assertEqual(result.text, "Sure thing.")
        self.assertIs(result.outcome, ReplyOutcome.ANSWERED)
        self.assertEqual(client.response_calls, [])

        (call,) = client.completion_calls
        self.assertEqual(call["model"], "gpt-4o-mini")
        self.assertEqual(call["temperature"], 0.2)
        self.assertEqual(call["max_tokens"], 300)
        self.assertEqual(call["messages"][0], {"role": "system", "content": generator.policy.text})
        self.assertEqual(len(call["messages"]), 4)

    async def test_empty_text_does_not_fall_back(self):
        client = FakeOpenAI(completions=[completion("   ")])

        result = await make_generator(client, model="gpt-4o").generate(make_history())

        self.assertEqual(result.text, COULD_NOT_GENERATE_MESSAGE)
        self.assertIs(result.outcome, ReplyOutcome.NO_TEXT)
        self.assertEqual(len(client.completion_calls), 1)
        self.assertFalse(result.used_fallback)

    async def test_failure_is_classified(self):
        error = openai.RateLimitError(
            "slow down", response=status_response(429, "/chat/completions"), body=None
        )
        client = FakeOpenAI(completions=[error])

        reply = await make_generator(client, model="gpt-4o-mini").generate_reply(make_history())

        self.assertEqual(reply, RATE_LIMITED_MESSAGE)


class TestFallback(unittest.IsolatedAsyncioTestCase):
    """An empty Responses result is retried once on the fallback model."""

    async def test_reasoning_only_output_falls_back(self):
        client = FakeOpenAI(
            responses=[responses_payload(output=[SimpleNamespace(type="reasoning")])],
            completions=[completion("Fallback answer")],
        )
        generator = make_generator(client, model="gpt-5-mini", fallback_model="gpt-4o-mini")
        history = make_history()

        result = await generator.generate(history)

        self.assertEqual(result.text, "Fallback answer")
        self.assertIs(result.outcome, ReplyOutcome.ANSWERED)
        self.assertEqual(result.model, "gpt-4o-mini")
        self.assertTrue(result.used_fallback)
        self.assertTrue(result.anomaly_logged)

        (call,) = client.completion_calls
        self.assertEqual(call["model"], "gpt-4o-mini")
        self.assertEqual(call["temperature"], 0.2)
        self.assertEqual(call["messages"], generator.build_messages(history))

    async def test_exhausted_fallback(self):
        client = FakeOpenAI(responses=[responses_payload()], completions=[completion(None)])

        result = await make_generator(client).generate(make_history())

        self.assertEqual(result.text, COULD_NOT_GENERATE_MESSAGE)
        self.assertIs(result.outcome, ReplyOutcome.NO_TEXT)
        self.assertTrue(result.used_fallback)
        self.assertTrue(result.anomaly_logged)

    async def test_fallback_failure_is_classified(self):
        error = openai.AuthenticationError(
            "bad key", response=status_response(401, "/chat/completions"), body=None
        )
        client = FakeOpenAI(responses=[responses_payload()], completions=[error])

        result = await make_generator(client).generate(make_history())

        self.assertEqual(result.text, INVALID_CREDENTIAL_MESSAGE)
        self.assertTrue(result.used_fallback)
        self.assertEqual(result.model, "gpt-4o-mini")


class TestFailures(unittest.IsolatedAsyncioTestCase):

    async def test_primary_failures_map_to_safe_messages(self):
        cases = [
            (
                openai.AuthenticationError("bad key", response=status_response(401), body=None),
                INVALID_CREDENTIAL_MESSAGE,
                ReplyOutcome.INVALID_CREDENTIAL,
            ),
            (
                openai.RateLimitError("slow down", response=status_response(429), body=None),
                RATE_LIMITED_MESSAGE,
                ReplyOutcome.RATE_LIMITED,
            ),
            (
                openai.InternalServerError("boom", response=status_response(500), body=None),
                UNAVAILABLE_MESSAGE,
                ReplyOutcome.UNAVAILABLE,
            ),
            (
                openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL + "/responses")),
                UNAVAILABLE_MESSAGE,
                ReplyOutcome.UNAVAILABLE,
            ),
            (ValueError("malformed payload"), UNAVAILABLE_MESSAGE, ReplyOutcome.UNAVAILABLE),
        ]
        for error, expected, outcome in cases:
            with self.subTest(error=type(error).__name__):
                client = FakeOpenAI(responses=[error])

                result = await make_generator(client).generate(make_history())

                self.assertEqual(result.text, expected)
                self.assertIs(result.outcome, outcome)
                self.assertFalse(result.used_fallback)
                self.assertEqual(client.completion_calls, [])

    async def test_reply_is_never_empty(self):
        histories = [
            [],
            [{"sender": "user", "text": ""}],
            [{"sender": "user", "text": "x" * 4000}] * 30,
        ]
        for history in histories:
            with self.subTest(size=len(history)):
                client = FakeOpenAI(responses=[responses_payload()], completions=[completion("")])

                reply = await make_generator(client).generate_reply(history)

                self.assertIsInstance(reply, str)
                self.assertTrue(reply)


class TestLogging(unittest.IsolatedAsyncioTestCase):
    """Anomalies and provider failures are logged server-side with their context."""

    def anomaly_events(self, logs):
        return [e for e in logs if e["event"].startswith("responses api returned no text")]

    async def test_anomaly_carries_model_and_response_ids(self):
        client = FakeOpenAI(
            responses=[responses_payload(response_id="resp_9")],
            completions=[completion("Fallback answer")],
        )
        generator = make_generator(client, model="gpt-5-nano", fallback_model="gpt-4o-mini")

        with captured_logs(reply_generator) as logs:
            result = await generator.generate(make_history())

        (event,) = self.anomaly_events(logs)
        self.assertEqual(event["log_level"], "warning")
        self.assertEqual(event["model"], "gpt-5-nano")
        self.assertEqual(event["fallback_model"], "gpt-4o-mini")
        self.assertEqual(event["response_id"], "resp_9")
        self.assertTrue(result.anomaly_logged)

    async def test_anomaly_keeps_id_of_mapping_payload(self):
        client = FakeOpenAI(
            responses=[{"id": "resp_map", "output_text": "", "output": []}],
            completions=[completion("Fallback answer")],
        )

        with captured_logs(reply_generator) as logs:
            await make_generator(client).generate(make_history())

        (event,) = self.anomaly_events(logs)
        self.assertEqual(event["response_id"], "resp_map")

    async def test_answered_reply_logs_no_anomaly(self):
        client = FakeOpenAI(responses=[responses_payload(output_text="Direct")])

        with captured_logs(reply_generator) as logs:
            result = await make_generator(client).generate(make_history())

        self.assertEqual(self.anomaly_events(logs), [])
        self.assertFalse(result.anomaly_logged)

    async def test_failures_log_status(self):
        cases = [
            (openai.AuthenticationError("bad key", response=status_response(401), body=None), 401),
            (openai.RateLimitError("slow down", response=status_response(429), body=None), 429),
            (openai.InternalServerError("boom", response=status_response(503), body=None), 503),
            (openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL + "/responses")), None),
        ]
        for error, status in cases:
            with self.subTest(status=status):
                client = FakeOpenAI(responses=[error])

                with captured_logs(reply_generator) as logs:
                    await make_generator(client, model="gpt-5-nano").generate(make_history())

                (event,) = [e for e in logs if e["event"] == "openai request failed"]
                self.assertEqual(event["log_level"], "error")
                self.assertEqual(event["status"], status)
                self.assertEqual(event["model"], "gpt-5-nano")
                self.assertEqual(event["error_type"], type(error).__name__)


if __name__ == "__main__":
    unittest.main()
