"""Email module data models."""

from pydantic import BaseModel, ConfigDict


class EmailMessage(BaseModel):
    """A fully composed message, ready for any provider."""

    to: str
    subject: str
    text: str
    html: str

    model_config = ConfigDict(frozen=True)
