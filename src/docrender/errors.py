"""Exception hierarchy for render sessions.

Configuration, fetch and engine failures escalate to the caller.
Resource resolution failures are recovered inside the resolution loop.
"""


class DocRenderError(Exception):
    """Base class for all docrender errors."""

    pass


class ConfigurationError(DocRenderError):
    """Raised when a render request carries neither document text nor a URL."""

    pass


class FetchError(DocRenderError):
    """Raised when the top-level document cannot be fetched by URL."""

    def __init__(self, url: str, status: int | None = None, message: str | None = None):
        self.url = url
        self.status = status
        if message is None:
            suffix = f" ({status})" if status is not None else ""
            message = f"Failed to fetch HTML from URL: {url}{suffix}"
        self._message = message
        super().__init__(message)

    def __reduce__(self):
        return (self.__class__, (self.url, self.status, self._message))


class EngineError(DocRenderError):
    """Raised when the rendering engine fails; `phase` names the failing command."""

    def __init__(self, phase: str, message: str):
        self.phase = phase
        self._message = message
        super().__init__(f"Engine failed during {phase}: {message}")

    def __reduce__(self):
        return (self.__class__, (self.phase, self._message))


class ResourceResolutionFailure(DocRenderError):
    """A single resource could not be resolved. Never escapes the resolution loop."""

    def __init__(self, url: str, reason: str = "unavailable"):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to resolve resource: {url} ({reason})")

    def __reduce__(self):
        return (self.__class__, (self.url, self.reason))
