"""
HTTP client for the Qmulo LLM server.

The server exposes a single ``POST /generate`` endpoint that takes the whole
conversation as a JSON array of ``{role, content}`` objects and answers with
``{"output": str, "time": float}``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import httpx

from qmulo_chat.conversation.messages import Message
from qmulo_chat.errors import NetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerResponse:
    """Parsed body of a successful ``/generate`` call."""

    output: str
    time: float

    @classmethod
    def from_json(cls, data: Any) -> "ServerResponse":
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        output = data.get("output")
        elapsed = data.get("time")
        if not isinstance(output, str):
            raise ValueError("response is missing a string 'output' field")
        if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
            raise ValueError("response is missing a numeric 'time' field")
        return cls(output=output, time=float(elapsed))


@runtime_checkable
class LLMBackend(Protocol):
    """Anything that can turn a conversation into the next assistant reply."""

    async def generate(self, messages: Sequence[Message]) -> ServerResponse: ...


class HttpLLMBackend(LLMBackend):
    """LLM backend talking to the Qmulo server over HTTP."""

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def generate(self, messages: Sequence[Message]) -> ServerResponse:
        payload = [message.to_dict() for message in messages]
        logger.info(f"Sending {len(payload)} messages to {self.url}")
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.url, json=payload)
            response.raise_for_status()
            parsed = ServerResponse.from_json(response.json())
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"LLM server returned {e.response.status_code} for {self.url}"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to reach LLM server at {self.url}: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Unparsable response from LLM server: {e}") from e

        logger.info(f"LLM server answered in {parsed.time:.2f}s")
        return parsed
