from typing import Optional

MAX_ERROR_BODY_CHARS = 300


class VoiceReaderError(RuntimeError):
    pass


class EmptyContent(VoiceReaderError):
    def __init__(self, message: str = "No readable content found on this page.") -> None:
        super().__init__(message)


class NoContent(VoiceReaderError):
    def __init__(self, message: str = "No content was provided to summarize.") -> None:
        super().__init__(message)


class MissingCredential(VoiceReaderError):
    def __init__(self, message: str = "No AI API key is configured.") -> None:
        super().__init__(message)


class UpstreamFailure(VoiceReaderError):
    def __init__(self, status: Optional[int], body: str = "") -> None:
        self.status = status
        self.body = (body or "")[:MAX_ERROR_BODY_CHARS]
        if status is None:
            message = f"AI request failed: {self.body}"
        else:
            message = f"AI request failed with HTTP {status}: {self.body}"
        super().__init__(message.rstrip(": "))


class MalformedResponse(VoiceReaderError):
    def __init__(self, message: str = "AI response did not contain any text.") -> None:
        super().__init__(message)


class EmptyQuery(VoiceReaderError):
    def __init__(self, message: str = "No website was named.") -> None:
        super().__init__(message)


class EngineFailure(VoiceReaderError):
    pass


class BrowserCommandError(VoiceReaderError):
    pass
