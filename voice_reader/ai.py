from typing import Any, Dict, List, Optional

import requests

from .config import AI_TIMEOUT_SECONDS
from .errors import MAX_ERROR_BODY_CHARS, MalformedResponse, MissingCredential, UpstreamFailure
from .preferences import AIConfig


def chat_completion(
    config: AIConfig,
    messages: List[Dict[str, str]],
    temperature: float,
    max_tokens: int,
    timeout: Optional[float] = None,
    session: Optional[Any] = None,
) -> str:
    if not config.has_credential:
        raise MissingCredential()

    url = f"{config.base_url.rstrip('/')}/chat/completions"
    payload = {
        "model": config.model,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "messages": messages,
    }
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
    }
    http = session if session is not None else requests
    try:
        response = http.post(
            url,
            json=payload,
            headers=headers,
            timeout=timeout if timeout is not None else AI_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise UpstreamFailure(None, str(exc)) from exc

    if not 200 <= response.status_code < 300:
        raise UpstreamFailure(response.status_code, (response.text or "")[:MAX_ERROR_BODY_CHARS])

    try:
        data = response.json()
    except ValueError as exc:
        raise MalformedResponse("AI response was not valid JSON.") from exc

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponse() from exc
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponse()
    return content.strip()
