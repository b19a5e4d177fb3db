"""
API v1 routes.

Defines REST endpoints for newsletter sign-up and subscription management.
Failures are raised as SubscriptionError and rendered by the application's
exception handler.
"""

import logging

from fastapi import APIRouter, Depends, Request

from mailer.api.dependencies import (
    get_app_settings,
    get_authenticated_email,
    get_remote_ip,
    get_subscription_service,
)
from mailer.api.models import (
    CaptchaConfigurationResponse,
    CompanyResponse,
    ErrorResponse,
    MailingListResponse,
    MailingListStatusResponse,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionStatusResponse,
    SuccessResponse,
    UpdateSubscriptionRequest,
    UpdateSubscriptionResponse,
)
from mailer.config.settings import Settings
from mailer.domain import models
from mailer.domain.exceptions import Forbidden
from mailer.domain.subscription import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

_auth_errors = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
}


@router.post(
    "/subscription",
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "CAPTCHA rejected"},
        429: {"model": ErrorResponse, "description": "Try again later"},
        503: {"model": ErrorResponse, "description": "Upstream service unavailable"},
    },
    summary="Subscribe to the newsletter",
    description="Verify the CAPTCHA and send a double opt-in confirmation email "
    "unless the contact already belongs to every requested mailing list.",
)
async def subscribe(
    request_data: SubscribeRequest,
    remote_ip: str | None = Depends(get_remote_ip),
    service: SubscriptionService = Depends(get_subscription_service),
) -> SubscribeResponse:
    result = await service.subscribe(
        models.SubscribeRequest(
            email=request_data.email,
            captcha_token=request_data.captcha_token,
            mailing_lists=frozenset(request_data.mailing_lists),
            language=request_data.language,
            referer=request_data.referer,
            remote_ip=remote_ip,
        )
    )
    return SubscribeResponse(double_opt_in=result.requires_confirmation, email=result.email)


@router.get(
    "/subscription",
    response_model=SubscriptionStatusResponse,
    responses={
        **_auth_errors,
        404: {"model": ErrorResponse, "description": "Contact not found"},
    },
    summary="Get subscription status",
    description="Return the authenticated contact's subscription merged "
    "with the full mailing-list catalog.",
)
async def get_subscription(
    email: str = Depends(get_authenticated_email),
    service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionStatusResponse:
    status = await service.get_status(email)
    return SubscriptionStatusResponse(
        email=status.email,
        subscribed=status.subscribed,
        opt_in_status=status.opt_in_status.value,
        mailing_lists=[
            MailingListStatusResponse(
                id=item.id,
                name=item.name,
                description=item.description,
                is_public=item.is_public,
                subscribed=item.subscribed,
            )
            for item in status.mailing_lists
        ],
        referer=status.referer,
    )


@router.put(
    "/subscription",
    response_model=UpdateSubscriptionResponse,
    responses={
        **_auth_errors,
        403: {"model": ErrorResponse, "description": "Email does not match token"},
    },
    summary="Update subscription",
    description="Subscribe (optionally updating mailing lists) or unsubscribe "
    "the contact identified by the bearer token.",
)
async def update_subscription(
    request_data: UpdateSubscriptionRequest,
    email: str = Depends(get_authenticated_email),
    service: SubscriptionService = Depends(get_subscription_service),
) -> UpdateSubscriptionResponse:
    if request_data.email.strip().lower() != email.strip().lower():
        raise Forbidden("Email address from request does not match JWT.")
    result = await service.apply_update(
        models.UpdateSubscriptionRequest(
            email=request_data.email,
            subscribe=request_data.subscribe,
            mailing_lists=request_data.mailing_lists,
        )
    )
    return UpdateSubscriptionResponse(email=result.email, subscribed=result.subscribed)


@router.get(
    "/lists",
    response_model=list[MailingListResponse],
    summary="List public mailing lists",
)
async def get_mailing_lists(
    service: SubscriptionService = Depends(get_subscription_service),
) -> list[MailingListResponse]:
    return [
        MailingListResponse(
            id=item.id, name=item.name, description=item.description, is_public=item.is_public
        )
        for item in await service.list_mailing_lists()
    ]


@router.get(
    "/captcha",
    response_model=CaptchaConfigurationResponse,
    summary="CAPTCHA widget configuration",
)
async def get_captcha_configuration(
    settings: Settings = Depends(get_app_settings),
) -> CaptchaConfigurationResponse:
    return CaptchaConfigurationResponse(
        provider=settings.captcha_provider.value,
        site_key=settings.captcha_site_key,
        branding=settings.captcha_branding,
    )


@router.get("/company", response_model=CompanyResponse, summary="Company information")
async def get_company(settings: Settings = Depends(get_app_settings)) -> CompanyResponse:
    return CompanyResponse(
        name=settings.company_name,
        address=settings.company_address,
        logo=settings.company_logo,
    )


@router.post("/honeypot", response_model=SuccessResponse, include_in_schema=False)
async def honeypot(
    request: Request, remote_ip: str | None = Depends(get_remote_ip)
) -> SuccessResponse:
    body = await request.body()
    logger.warning("Honeypot request from %s: %r", remote_ip, body[:1024])
    return SuccessResponse()
