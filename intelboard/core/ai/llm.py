"""LLM access: provider factory plus a gateway for observability and retry.

The gateway wraps any LlamaIndex LLM as a CustomLLM subclass, so callers
use the ordinary ``complete``/``chat`` API while every call gets:
- Call logging (prompt/response size, latency, model)
- Retry with exponential backoff on transient provider errors
- Per-call purpose tagging (profile, architect ...)
- Thread-safe in-memory metrics
"""

import json
import logging
import re
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional, Sequence

import backoff
import requests
from llama_index.core.base.llms.types import (
    ChatMessage,
    ChatResponse,
    CompletionResponse,
    LLMMetadata,
    MessageRole,
)
from llama_index.core.llms import CustomLLM

from ...api.core.exceptions import ServiceUnavailableError
from ...setting import LLMSettings, get_settings

logger = logging.getLogger(__name__)

# USD per 1M tokens; unknown models (local Ollama) cost nothing
_COST_PER_1M_TOKENS = {
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "_default": {"input": 0.0, "output": 0.0},
}


def _get_retryable_exceptions():
    exceptions = [TimeoutError, ConnectionError]
    try:
        from openai import APITimeoutError, RateLimitError
        exceptions.extend([RateLimitError, APITimeoutError])
    except ImportError:
        pass
    return tuple(exceptions)


# ── Metrics ────────────────────────────────────────────────────────────

@dataclass
class LLMMetrics:
    """Thread-safe in-memory LLM usage metrics."""

    total_calls: int = 0
    total_tokens_in: int = 0
    total_tokens_out: int = 0
    total_latency_ms: float = 0.0
    errors: int = 0
    retries: int = 0
    calls_by_purpose: dict = field(default_factory=lambda: defaultdict(int))
    estimated_cost_usd: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_calls": self.total_calls,
            "total_tokens_in": self.total_tokens_in,
            "total_tokens_out": self.total_tokens_out,
            "total_latency_ms": round(self.total_latency_ms, 1),
            "avg_latency_ms": round(self.total_latency_ms / max(self.total_calls, 1), 1),
            "errors": self.errors,
            "retries": self.retries,
            "calls_by_purpose": dict(self.calls_by_purpose),
            "estimated_cost_usd": round(self.estimated_cost_usd, 4),
        }


# ── Gateway ────────────────────────────────────────────────────────────

class LLMGateway(CustomLLM):
    """Transparent LLM proxy with observability and retry.

    Usage:
        gateway = LLMGateway(OpenAI(model="gpt-4o"), max_retries=3)
        gateway.chat(messages, gateway_purpose="architect")
    """

    # Pydantic fields (CustomLLM is a Pydantic BaseModel)
    _llm: Any = None
    _metrics: LLMMetrics = None
    _lock: threading.Lock = None
    _max_tries: int = 3
    _retryable_exceptions: tuple = None

    def __init__(self, llm: Any, max_retries: int = 3, **kwargs):
        super().__init__(**kwargs)
        # Store as private attrs (bypass Pydantic field validation)
        object.__setattr__(self, "_llm", llm)
        object.__setattr__(self, "_metrics", LLMMetrics())
        object.__setattr__(self, "_lock", threading.Lock())
        object.__setattr__(self, "_max_tries", max(1, max_retries))
        object.__setattr__(self, "_retryable_exceptions", None)
        logger.info(
            f"LLMGateway initialized — wrapping {type(llm).__name__}"
            f" (model={getattr(llm, 'model', 'unknown')})"
        )

    @property
    def metadata(self) -> LLMMetadata:
        return self._llm.metadata

    @property
    def model(self) -> str:
        return getattr(self._llm, "model", "unknown")

    # ── Core methods ──────────────────────────────────────────────────

    def complete(
        self, prompt: str, formatted: bool = False, **kwargs: Any
    ) -> CompletionResponse:
        purpose = kwargs.pop("gateway_purpose", "general")
        t0 = time.time()

        try:
            response = self._retry_call(
                self._llm.complete, prompt, formatted=formatted, **kwargs
            )
        except Exception:
            self._record_error(purpose)
            raise

        latency_ms = (time.time() - t0) * 1000
        self._record(prompt, response.text or "", latency_ms, purpose)
        return response

    def stream_complete(
        self, prompt: str, formatted: bool = False, **kwargs: Any
    ) -> Generator[CompletionResponse, None, None]:
        """Pass-through stream. Metrics recorded after the stream completes."""
        purpose = kwargs.pop("gateway_purpose", "general")
        t0 = time.time()
        collected_text = []

        try:
            for token in self._llm.stream_complete(prompt, formatted=formatted, **kwargs):
                if token.delta:
                    collected_text.append(token.delta)
                yield token
        except Exception:
            self._record_error(purpose)
            raise

        latency_ms = (time.time() - t0) * 1000
        self._record(prompt, "".join(collected_text), latency_ms, purpose)

    def chat(
        self, messages: Sequence[ChatMessage], **kwargs: Any
    ) -> ChatResponse:
        purpose = kwargs.pop("gateway_purpose", "general")
        t0 = time.time()

        try:
            response = self._retry_call(self._llm.chat, messages, **kwargs)
        except Exception:
            self._record_error(purpose)
            raise

        latency_ms = (time.time() - t0) * 1000
        prompt_text = " ".join(m.content or "" for m in messages)
        reply = (response.message.content or "") if response.message else ""
        self._record(prompt_text, reply, latency_ms, purpose)
        return response

    # ── Retry ─────────────────────────────────────────────────────────

    def _retry_call(self, fn, *args, **kwargs):
        """Execute fn with exponential backoff on retryable errors."""
        if self._retryable_exceptions is None:
            object.__setattr__(
                self, "_retryable_exceptions", _get_retryable_exceptions()
            )

        @backoff.on_exception(
            backoff.expo,
            self._retryable_exceptions,
            max_tries=self._max_tries,
            max_time=60,
            on_backoff=self._on_retry,
        )
        def _do_call():
            return fn(*args, **kwargs)

        return _do_call()

    def _on_retry(self, details: dict):
        with self._lock:
            self._metrics.retries += 1
        logger.warning(
            f"LLMGateway retry {details['tries']}/{self._max_tries} "
            f"after {details['wait']:.1f}s — {type(details.get('exception')).__name__}"
        )

    # ── Metrics recording ─────────────────────────────────────────────

    def _record(self, prompt: str, reply: str, latency_ms: float, purpose: str):
        tokens_in = int(len(prompt.split()) * 1.3)  # rough estimate
        tokens_out = int(len(reply.split()) * 1.3)
        costs = _COST_PER_1M_TOKENS.get(self.model, _COST_PER_1M_TOKENS["_default"])
        cost = (tokens_in * costs["input"] + tokens_out * costs["output"]) / 1_000_000

        with self._lock:
            m = self._metrics
            m.total_calls += 1
            m.total_tokens_in += tokens_in
            m.total_tokens_out += tokens_out
            m.total_latency_ms += latency_ms
            m.estimated_cost_usd += cost
            m.calls_by_purpose[purpose] += 1

        logger.debug(
            f"LLM call: purpose={purpose} tokens_in={tokens_in} "
            f"tokens_out={tokens_out} latency={latency_ms:.0f}ms model={self.model}"
        )

    def _record_error(self, purpose: str):
        with self._lock:
            self._metrics.errors += 1
            self._metrics.calls_by_purpose[f"{purpose}_error"] += 1
        logger.error(f"LLM call failed: purpose={purpose} model={self.model}")

    # ── Public metrics API ────────────────────────────────────────────

    def get_metrics(self) -> dict:
        """Return a thread-safe snapshot of current metrics."""
        with self._lock:
            result = self._metrics.to_dict()
            result["model"] = self.model
            return result

    def reset_metrics(self):
        with self._lock:
            object.__setattr__(self, "_metrics", LLMMetrics())
        logger.info("LLMGateway metrics reset")

    @classmethod
    def class_name(cls) -> str:
        return "LLMGateway"


# ── Provider factory ───────────────────────────────────────────────────

_gateway: Optional[Any] = None
_gateway_lock = threading.Lock()


def build_llm(settings: LLMSettings) -> Any:
    """Create the raw LlamaIndex LLM for the configured provider."""
    if settings.provider == "ollama":
        from llama_index.llms.ollama import Ollama
        return Ollama(
            model=settings.model,
            base_url=f"http://{settings.ollama_host}:{settings.ollama_port}",
            temperature=settings.temperature,
            request_timeout=settings.request_timeout,
        )

    if settings.provider != "openai":
        raise ServiceUnavailableError(f"Unknown LLM provider: {settings.provider}")
    if not settings.api_key:
        raise ServiceUnavailableError("AI service is not configured (OPENAI_API_KEY is missing)")

    from llama_index.llms.openai import OpenAI
    return OpenAI(
        model=settings.model,
        api_key=settings.api_key,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.request_timeout,
    )


def get_llm() -> Any:
    """Return the process-wide gateway, creating it on first use."""
    global _gateway
    with _gateway_lock:
        if _gateway is None:
            llm_settings = get_settings().llm
            _gateway = LLMGateway(build_llm(llm_settings), max_retries=llm_settings.max_retries)
        return _gateway


def check_ollama_model(host: str, port: int, model_name: str) -> bool:
    """True if the Ollama server at host:port has ``model_name`` pulled."""
    url = f"http://{host}:{port}/api/tags"
    try:
        response = requests.get(url, timeout=10)
        response.raise_for_status()
        models = response.json().get("models") or []
        return model_name in [m.get("name", "") for m in models]
    except requests.RequestException as e:
        logger.warning(f"Error checking Ollama model {model_name}: {e}")
        return False


# ── Prompting helpers ──────────────────────────────────────────────────

def chat_text(
    llm: Any,
    system_prompt: str,
    user_prompt: str,
    history: Optional[List[Dict[str, str]]] = None,
    purpose: str = "general",
) -> str:
    """One chat round-trip returning the assistant text.

    ``history`` items are ``{"role": "user"|"assistant", "content": ...}``.
    """
    messages = [ChatMessage(role=MessageRole.SYSTEM, content=system_prompt)]
    for item in history or []:
        role = MessageRole.ASSISTANT if item.get("role") == "assistant" else MessageRole.USER
        messages.append(ChatMessage(role=role, content=item.get("content") or ""))
    messages.append(ChatMessage(role=MessageRole.USER, content=user_prompt))

    response = llm.chat(messages, gateway_purpose=purpose)
    return (response.message.content or "") if response.message else ""


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def parse_json_output(raw: str) -> Dict[str, Any]:
    """Parse a JSON object from LLM output, stripping markdown fences.

    Raises:
        ValueError: if no JSON object can be recovered
    """
    cleaned = raw or ""
    fenced = _FENCE_RE.search(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    cleaned = cleaned.strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON parse failed: {e}. Attempting repair.")
        # Try to find the outermost { }
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start < 0 or end <= start:
            raise ValueError("No JSON object in LLM output") from e
        try:
            parsed = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as inner:
            raise ValueError(f"Unparseable JSON in LLM output: {inner}") from inner

    if not isinstance(parsed, dict):
        raise ValueError("LLM output is not a JSON object")
    return parsed
