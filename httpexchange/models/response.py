"""Outgoing response value object."""

from http import HTTPStatus

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from httpexchange.core.exceptions import InvalidInput


def reason_for(status_code: int) -> str:
    """Standard reason phrase for a status code, empty when unregistered."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class Response(BaseModel):
    """HTTP response: status line, headers and body.

    Frozen; `with_status`, `with_header` and `with_body` return new instances.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int = 200
    reason_phrase: str = ""
    headers: dict[str, str] = {}
    body: bytes = b""

    def __init__(self, **data) -> None:
        try:
            super().__init__(**data)
        except ValidationError as ex:
            raise InvalidInput(str(ex)) from ex

    @field_validator("status_code")
    @classmethod
    def check_status_code(cls, value: int) -> int:
        if not 100 <= value <= 599:
            raise ValueError(f"Status code must be between 100 and 599, got {value}")
        return value

    @field_validator("reason_phrase")
    @classmethod
    def check_reason_phrase(cls, value: str) -> str:
        if "\r" in value or "\n" in value:
            raise ValueError("Reason phrase must not contain line breaks")
        return value

    @model_validator(mode="after")
    def default_reason_phrase(self) -> "Response":
        if not self.reason_phrase:
            object.__setattr__(self, "reason_phrase", reason_for(self.status_code))
        return self

    @classmethod
    def create(cls, status_code: int = 200, reason_phrase: str = "", **kwargs) -> "Response":
        return cls(status_code=status_code, reason_phrase=reason_phrase, **kwargs)

    def with_status(self, status_code: int, reason_phrase: str = "") -> "Response":
        return self.create(status_code, reason_phrase, headers=self.headers, body=self.body)

    def with_header(self, name: str, value: str) -> "Response":
        return self.create(
            self.status_code,
            self.reason_phrase,
            headers={**self.headers, name: value},
            body=self.body,
        )

    def with_body(self, body: bytes | str) -> "Response":
        if isinstance(body, str):
            body = body.encode("utf-8")
        return self.create(self.status_code, self.reason_phrase, headers=self.headers, body=body)

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status_code} {self.reason_phrase}".rstrip()
