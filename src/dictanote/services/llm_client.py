"""LLM client for JSON chat completions."""

import httpx
import asyncio
from typing import Any, Dict, Optional

from dictanote.utils.logging import get_logger
from dictanote.models.config import LLMConfig


logger = get_logger(__name__)


def _extract_content_from_openai_response(data: Dict[str, Any]) -> str | None:
    """
    Extract message content from an OpenAI-style chat completion.

    OpenAI-compatible APIs return:
    {
        "choices": [{
            "message": {"role": "assistant", "content": "..."},
            "finish_reason": "stop"
        }]
    }

    Args:
        data: Parsed JSON response body

    Returns:
        Content string if present, None otherwise
    """
    try:
        if "choices" in data and len(data["choices"]) > 0:
            message = data["choices"][0].get("message") or {}
            content = message.get("content")
            if isinstance(content, str):
                return content
    except (KeyError, IndexError, TypeError, AttributeError):
        pass
    return None


def _extract_content_from_ollama_response(data: Dict[str, Any]) -> str | None:
    """
    Extract message content from an Ollama native /api/chat response.

    Ollama returns:
    {
        "model": "...",
        "message": {"role": "assistant", "content": "..."},
        "done": true
    }

    Args:
        data: Parsed JSON response body

    Returns:
        Content string if present, None otherwise
    """
    try:
        content = data["message"]["content"]
        if isinstance(content, str):
            return content
    except (KeyError, TypeError):
        pass
    return None


class LLMClient:
    """
    HTTP client for chat completion APIs.

    Supports OpenAI-compatible APIs and Ollama's native API, with automatic
    retry on connection errors and timeouts.
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize LLM client.

        Args:
            config: LLM configuration (endpoint, API key, model)
        """
        self.config = config
        self.timeout = httpx.Timeout(
            connect=10.0,
            read=60.0,
            write=10.0,
            pool=10.0
        )
        self._is_ollama: bool | None = None  # Cached provider detection

    def _base_url(self) -> str:
        base_url = str(self.config.endpoint).rstrip("/")
        if base_url.endswith("/v1"):
            base_url = base_url[:-3]
        return base_url

    async def _detect_ollama(self) -> bool:
        """
        Detect if the LLM endpoint is Ollama by probing /api/version.

        This detection is cached after the first call.

        Returns:
            True if Ollama detected, False otherwise
        """
        if self._is_ollama is not None:
            return self._is_ollama

        version_url = f"{self._base_url()}/api/version"
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(5.0)) as client:
                logger.debug("llm_provider_detection", version_url=version_url)
                response = await client.get(version_url)

                if response.status_code == 200:
                    logger.info("llm_provider_detected", provider="ollama", version_url=version_url)
                    self._is_ollama = True
                    return True

        except httpx.HTTPError as e:
            logger.debug(
                "llm_provider_detection_failed",
                error=str(e),
                assumed_provider="openai",
            )

        logger.info("llm_provider_detected", provider="openai")
        self._is_ollama = False
        return False

    def _chat_request(
        self,
        is_ollama: bool,
        prompt: str,
        system_prompt: str,
        temperature: float,
        json_mode: bool,
    ) -> tuple[str, Dict[str, Any]]:
        """Build the URL and body of a chat request for the detected provider."""
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
        }

        if is_ollama:
            # Ollama takes sampling settings under "options" and JSON mode as "format"
            payload["options"] = {"num_ctx": self.config.num_ctx, "temperature": temperature}
            if json_mode:
                payload["format"] = "json"
            return self._base_url() + "/api/chat", payload

        payload["temperature"] = temperature
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return str(self.config.endpoint).rstrip("/") + "/chat/completions", payload

    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
            response.raise_for_status()
            return response.json()

    async def complete_json(
        self,
        prompt: str,
        system_prompt: str,
        temperature: Optional[float] = None,
        json_mode: bool = True,
        max_retries: Optional[int] = None,
        retry_delay: float = 2.0,
        request_id: Optional[str] = None,
    ) -> str:
        """
        Request a single (non-streamed) completion expected to hold JSON.

        Connection errors and timeouts are retried up to max_retries times;
        HTTP status errors are raised immediately.

        Args:
            prompt: User prompt for the LLM
            system_prompt: System prompt for the LLM
            temperature: Sampling temperature (defaults to config.temperature)
            json_mode: Ask the provider to force JSON output
            max_retries: Retries on transient errors (defaults to config.max_retries)
            retry_delay: Delay in seconds between retries
            request_id: Optional identifier for this request (for logging/tracing)

        Returns:
            Raw message content from the model (parsing is left to the caller)

        Raises:
            httpx.HTTPError: On network or HTTP errors after retries exhausted
            ValueError: If the response body holds no message content
        """
        request_id = request_id or "unknown"
        temperature = self.config.temperature if temperature is None else temperature
        max_retries = self.config.max_retries if max_retries is None else max_retries

        is_ollama = await self._detect_ollama()
        url, payload = self._chat_request(is_ollama, prompt, system_prompt, temperature, json_mode)
        extract = _extract_content_from_ollama_response if is_ollama else _extract_content_from_openai_response

        logger.info(
            "llm_request_started",
            request_id=request_id,
            model=self.config.model,
            provider="ollama" if is_ollama else "openai",
            url=url,
            prompt_length=len(prompt),
            temperature=temperature,
            json_mode=json_mode,
        )
        logger.debug("llm_request_payload", request_id=request_id, payload=payload)

        for attempt in range(max_retries + 1):
            try:
                data = await self._post(url, payload)
                break
            except (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout) as e:
                if attempt >= max_retries:
                    logger.error("llm_request_failed", request_id=request_id, attempts=attempt + 1, error=str(e))
                    raise
                logger.warning(
                    "llm_request_retry",
                    request_id=request_id,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    error=str(e),
                )
                await asyncio.sleep(retry_delay)
            except httpx.HTTPStatusError as e:
                logger.error(
                    "llm_http_error",
                    request_id=request_id,
                    status_code=e.response.status_code,
                    error=str(e),
                )
                raise

        logger.debug("llm_response_body", request_id=request_id, body=data)

        content = extract(data)
        if content is None:
            logger.error("llm_response_missing_content", request_id=request_id)
            raise ValueError("LLM response did not contain message content")

        logger.info("llm_request_completed", request_id=request_id, content_length=len(content))
        return content
