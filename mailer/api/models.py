"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Wire names are camelCase to match the frontend widgets.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubscribeRequest(ApiModel):
    """Request model for a newsletter sign-up."""

    email: EmailStr
    captcha_token: str | None = Field(default=None, alias="captchaToken")
    mailing_lists: list[str] = Field(default_factory=list, alias="mailingLists")
    language: str = Field(default="en", pattern=r"^[a-z]{2}(-[A-Za-z]{2})?$")
    referer: str | None = None


class SubscribeResponse(ApiModel):
    """Response model for an accepted sign-up."""

    success: bool = True
    double_opt_in: bool = Field(alias="doubleOptIn")
    email: str


class MailingListResponse(ApiModel):
    id: str
    name: str
    description: str = ""
    is_public: bool = Field(alias="isPublic")


class MailingListStatusResponse(MailingListResponse):
    subscribed: bool


class SubscriptionStatusResponse(ApiModel):
    """Response model for the subscription control panel."""

    success: bool = True
    email: str
    subscribed: bool
    opt_in_status: str = Field(alias="optInStatus")
    mailing_lists: list[MailingListStatusResponse] = Field(alias="mailingLists")
    referer: str | None = None


class UpdateSubscriptionRequest(ApiModel):
    """Request model for subscribing or unsubscribing a confirmed contact."""

    email: EmailStr
    subscribe: bool
    mailing_lists: dict[str, bool] | None = Field(default=None, alias="mailingLists")


class UpdateSubscriptionResponse(ApiModel):
    success: bool = True
    email: str
    subscribed: bool


class CaptchaConfigurationResponse(ApiModel):
    """Settings the frontend needs to render the CAPTCHA widget."""

    provider: str
    site_key: str = Field(alias="siteKey")
    branding: str


class CompanyResponse(ApiModel):
    name: str
    address: str
    logo: str | None = None


class SuccessResponse(ApiModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    reason: str | None = None
