from typing import Any, Callable, Dict, Mapping, Optional

from .ai import chat_completion
from .errors import NoContent
from .preferences import AIConfig

MAX_SUMMARY_INPUT_CHARS = 12000
SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 350

SUMMARY_SYSTEM_PROMPT = (
    "You are an accessibility assistant describing a web page to someone who cannot see it. "
    "Write 4 to 6 warm, empathetic sentences in plain spoken language that explain what the page is "
    "about and what matters most on it. Do not use lists, markdown, or links. "
    "Use only the supplied page content."
)


def truncate_content(content: str, limit: int = MAX_SUMMARY_INPUT_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit]


def build_summary_messages(content: str, metadata: Optional[Mapping[str, Any]] = None) -> list:
    metadata = metadata or {}
    title = str(metadata.get("title") or "").strip() or "(untitled)"
    url = str(metadata.get("url") or "").strip() or "(unknown)"
    user_prompt = (
        f"Page title: {title}\n"
        f"Page URL: {url}\n\n"
        f"Page content:\n{truncate_content(content)}"
    )
    return [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class SummarizationGateway:
    """Turns extracted page text into a short spoken description.

    Every failure is raised to the caller; deciding to fall back to the
    original text is the reading session's job.
    """

    def __init__(
        self,
        config_loader: Callable[[], AIConfig],
        completion: Callable[..., str] = chat_completion,
    ) -> None:
        self._config_loader = config_loader
        self._completion = completion

    def summarize(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        if not content or not content.strip():
            raise NoContent()
        config = self._config_loader()
        return self._completion(
            config,
            build_summary_messages(content, metadata),
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS,
        )
