from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from fastapi import Request
from .errors import GenerationUnavailable
from .settings import settings

logger = logging.getLogger(__name__)


def _chat_messages(prompt: str, system: Optional[str]) -> List[Dict[str, str]]:
	messages: List[Dict[str, str]] = []
	if system:
		messages.append({"role": "system", "content": system})
	messages.append({"role": "user", "content": prompt})
	return messages


def _message_content(response: httpx.Response) -> str:
	try:
		data = response.json()
		content = data["choices"][0]["message"]["content"]
	except (ValueError, KeyError, IndexError, TypeError) as err:
		raise GenerationUnavailable(f"Unexpected completion response: {response.text[:200]}") from err
	if not isinstance(content, str) or not content.strip():
		raise GenerationUnavailable("Completion response had no content")
	return content


class CompletionClient:
	"""Text-completion client for an OpenAI-compatible chat completions API.

	When ``OPENROUTER_API_KEY`` is set, a failed primary call is retried once
	against OpenRouter with the same messages. Every failure surfaces as
	``GenerationUnavailable`` so callers can substitute fallback content.
	"""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.llm_api_key
		if not self.api_key:
			raise ValueError("LLM_API_KEY is not configured")
		self.model = model or settings.llm_model
		self.base_url = base_url or settings.llm_base_url
		timeout = timeout if timeout is not None else settings.llm_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {settings.openrouter_api_key}" if settings.openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=timeout, transport=transport)

	async def complete(
		self,
		prompt: str,
		*,
		system: Optional[str] = None,
		max_tokens: int = 1000,
		temperature: float = 0.2,
	) -> str:
		messages = _chat_messages(prompt, system)
		payload: Dict[str, Any] = {
			"model": self.model,
			"messages": messages,
			"max_tokens": max_tokens,
			"temperature": temperature,
		}
		headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
		try:
			r = await self._client.post(self.base_url, headers=headers, json=payload)
			r.raise_for_status()
			return _message_content(r)
		except httpx.HTTPStatusError as http_err:
			last_error: Exception = http_err
			logger.warning("Completion request failed with status %s", http_err.response.status_code)
		except httpx.RequestError as net_err:
			last_error = net_err
			logger.warning("Completion request failed: %s", net_err)
		except GenerationUnavailable as empty_err:
			last_error = empty_err
			logger.warning("%s", empty_err)
		if not self._fallback_enabled:
			raise GenerationUnavailable(f"Completion call failed: {last_error}") from last_error
		return await self._fallback_complete(payload, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_complete(self, payload: Dict[str, Any], primary_error: Exception) -> str:
		if self._fallback_client is None:
			raise GenerationUnavailable("Fallback requested but OpenRouter is not configured") from primary_error
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		fallback_payload = {**payload, "model": self._openrouter_model}
		try:
			r = await self._fallback_client.post(self._openrouter_base_url, headers=headers, json=fallback_payload)
			r.raise_for_status()
			return _message_content(r)
		except (httpx.HTTPError, GenerationUnavailable) as fallback_err:
			raise GenerationUnavailable(
				f"Primary completion failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err


def get_completion_client(request: Request) -> CompletionClient:
	return request.app.state.llm_client
