from typing import Any


class ChefError(Exception):
    pass


class ExtractionEmpty(ChefError):
    """The model gave no parseable dishes, even after retrying."""

    def __init__(self, raw_text: str, attempts: int = 1) -> None:
        super().__init__(f"No dishes extracted after {attempts} attempt(s).")
        self.raw_text = raw_text
        self.attempts = attempts


class UpstreamRequestFailed(ChefError):
    def __init__(self, service: str, reason: str) -> None:
        super().__init__(f"{service} request failed: {reason}")
        self.service = service
        self.reason = reason


class MalformedPayload(ChefError):
    def __init__(self, service: str, payload: Any) -> None:
        super().__init__(f"Unexpected {service} payload: {payload!r}")
        self.service = service
        self.payload = payload
