"""Reply generation: one support answer for a bounded conversation history.

Pipeline per call:

1. no API key → fixed "not configured" reply, no network call;
2. primary attempt with ``model``: models of the modern family (name starts
   with ``modern_model_prefix``) go through the Responses API, everything else
   through Chat Completions;
3. a Responses API answer without extractable text is an anomaly: it is logged
   and the request is retried once through Chat Completions with
   ``fallback_model``;
4. provider errors are logged and turned into a safe reply chosen by HTTP
   status (401, 429, anything else).

``generate_reply`` never raises; the caller always gets text it can persist
and show to the user.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional

import structlog
from openai import APIStatusError, AsyncOpenAI

from assistant.extractor import extract_completion_text, extract_response_text, response_id
from assistant.history import ChatTurn, format_history
from assistant.prompts.support.policy import PolicyPrompt

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "LLM is not configured on the server (missing OPENAI_API_KEY). "
    "Please contact support."
)
COULD_NOT_GENERATE_MESSAGE = "Sorry, I could not generate a response. Please try again."
INVALID_CREDENTIAL_MESSAGE = (
    "The AI service is not configured correctly (invalid API key). "
    "Please contact support."
)
RATE_LIMITED_MESSAGE = (
    "The AI service is busy right now (rate limited). Please try again in a minute."
)
UNAVAILABLE_MESSAGE = (
    "Sorry, the AI service is temporarily unavailable. Please try again."
)


class ReplyOutcome(str, Enum):
    ANSWERED = "answered"
    NOT_CONFIGURED = "not_configured"
    NO_TEXT = "no_text"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ReplyResult:
    text: str
    outcome: ReplyOutcome
    model: Optional[str] = None
    used_fallback: bool = False
    anomaly_logged: bool = False


class ReplyGenerator:
    """Turns conversation history into a single support reply."""

    def __init__(
        self,
        *,
        policy: PolicyPrompt,
        api_key: Optional[str] = None,
        model: str = "gpt-5-nano",
        fallback_model: str = "gpt-4o-mini",
        modern_model_prefix: str = "gpt-5",
        max_output_tokens: int = 300,
        temperature: float = 0.2,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        self.policy = policy
        self.api_key = api_key or None
        self.model = model
        self.fallback_model = fallback_model
        self.modern_model_prefix = modern_model_prefix
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.client = client
        if self.client is None and self.api_key:
            # The fallback path is the only retry.
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )

    def uses_responses_api(self, model: str) -> bool:
        return bool(self.modern_model_prefix) and model.startswith(self.modern_model_prefix)

    def build_messages(self, history: Iterable[Any]) -> List[ChatTurn]:
        return [{"role": "system", "content": self.policy.text}, *format_history(history)]

    async def generate_reply(self, history: Iterable[Any]) -> str:
        result = await self.generate(history)
        return result.text

    async def generate(self, history: Iterable[Any]) -> ReplyResult:
        if not self.api_key:
            return ReplyResult(text=NOT_CONFIGURED_MESSAGE, outcome=ReplyOutcome.NOT_CONFIGURED)

        messages = self.build_messages(history)
        model = self.model
        used_fallback = anomaly_logged = False
        try:
            if not self.uses_responses_api(model):
                text = await self._complete_chat(model, messages)
                return self._finish(text, model=model)

            response = await self._create_response(model, messages)
            text = extract_response_text(response)
            if text:
                return self._finish(text, model=model)

            # Some accounts/models only return reasoning items without a final message.
            logger.warning(
                "responses api returned no text; falling back to chat completions",
                model=model,
                fallback_model=self.fallback_model,
                response_id=response_id(response),
            )
            model = self.fallback_model
            used_fallback = anomaly_logged = True
            text = await self._complete_chat(model, messages)
            return self._finish(text, model=model, used_fallback=True, anomaly_logged=True)
        except Exception as e:
            return self._failure(
                e,
                model=model,
                used_fallback=used_fallback,
                anomaly_logged=anomaly_logged,
            )

    async def _create_response(self, model: str, messages: List[ChatTurn]) -> Any:
        input_items = [{"role": "system", "content": self.policy.text}]
        input_items.extend(
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        )
        return await self.client.responses.create(
            model=model,
            input=input_items,
            max_output_tokens=self.max_output_tokens,
        )

    async def _complete_chat(self, model: str, messages: List[ChatTurn]) -> str:
        completion = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
        )
        return extract_completion_text(completion)

    def _finish(
        self,
        text: str,
        *,
        model: str,
        used_fallback: bool = False,
        anomaly_logged: bool = False,
    ) -> ReplyResult:
        if not text:
            return ReplyResult(
                text=COULD_NOT_GENERATE_MESSAGE,
                outcome=ReplyOutcome.NO_TEXT,
                model=model,
                used_fallback=used_fallback,
                anomaly_logged=anomaly_logged,
            )
        return ReplyResult(
            text=text,
            outcome=ReplyOutcome.ANSWERED,
            model=model,
            used_fallback=used_fallback,
            anomaly_logged=anomaly_logged,
        )

    def _failure(
        self,
        error: Exception,
        *,
        model: str,
        used_fallback: bool,
        anomaly_logged: bool,
    ) -> ReplyResult:
        status = error.status_code if isinstance(error, APIStatusError) else None
        logger.error(
            "openai request failed",
            model=model,
            status=status,
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error,
        )

        if status == 401:
            text, outcome = INVALID_CREDENTIAL_MESSAGE, ReplyOutcome.INVALID_CREDENTIAL
        elif status == 429:
            text, outcome = RATE_LIMITED_MESSAGE, ReplyOutcome.RATE_LIMITED
        else:
            text, outcome = UNAVAILABLE_MESSAGE, ReplyOutcome.UNAVAILABLE
        return ReplyResult(
            text=text,
            outcome=outcome,
            model=model,
            used_fallback=used_fallback,
            anomaly_logged=anomaly_logged,
        )
