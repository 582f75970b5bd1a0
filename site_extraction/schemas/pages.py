from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator


class PageType(StrEnum):
    homepage = "homepage"
    about = "about"
    contact = "contact"
    services = "services"
    team = "team"
    faq = "faq"
    other = "other"


class DiscoveredPage(BaseModel):
    """One fetched page as handed over by the crawler."""

    model_config = ConfigDict(frozen=True)

    url: str
    page_type: PageType
    html: str

    @field_validator("url", "html")
    @classmethod
    def _replace_lone_surrogates(cls, value: str) -> str:
        # JSON bodies may carry "\ud800", which no UTF-8 encoder accepts
        return value.encode("utf-8", "replace").decode("utf-8")
