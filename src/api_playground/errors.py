"""Error taxonomy for the API playground core."""


class PlaygroundError(Exception):
    """Base class for all errors raised by api_playground."""


class UnsupportedFormat(PlaygroundError):
    """Structured input does not match any known documentation format."""

    def __init__(self, detected: str = "unknown"):
        self.detected = detected
        super().__init__(f"Unsupported document type: {detected}")


class MalformedInput(PlaygroundError):
    """Input could not be decoded where valid structured content was required."""


class InvalidDocument(PlaygroundError):
    """A parsed document failed validation and cannot become a context."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid documentation structure: " + "; ".join(self.errors))


class ContextNotFound(PlaygroundError):
    def __init__(self, context_id: str):
        self.context_id = context_id
        super().__init__(f"Context not found: {context_id}")


class BlockedHost(PlaygroundError):
    """Target URL points at a local or private network."""


class FetchError(PlaygroundError):
    def __init__(self, url: str, status_code: int, reason: str):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Failed to fetch documentation [{status_code}] {url}: {reason}")


class DocumentTooLarge(PlaygroundError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Documentation too large ({size} bytes, max {limit})")


class AiResponseError(PlaygroundError):
    """The AI completion did not return a usable structured result."""
