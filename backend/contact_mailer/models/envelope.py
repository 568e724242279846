"""Response envelope returned to the hosting layer."""

from pydantic import BaseModel, Field


class ResponseEnvelope(BaseModel):
    """
    {statusCode, headers, body} — the API Gateway proxy response shape.

    body is already-serialized JSON text.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    status_code: int = Field(alias="statusCode")
    headers: dict[str, str]
    body: str

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
