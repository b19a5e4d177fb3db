"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
and the authenticated identity into routes. Long-lived collaborators
(HTTP client, adapters, verifier, token authority) are created once in
the application lifespan and stored in app.state.
"""

from fastapi import Depends, Header, Request

from mailer.config.settings import Settings
from mailer.domain.subscription import SubscriptionService
from mailer.domain.tokens import TokenAuthority, extract_bearer_token


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_token_authority(request: Request) -> TokenAuthority:
    return request.app.state.tokens


def get_subscription_service(request: Request) -> SubscriptionService:
    """
    Create subscription service with injected dependencies.

    Wires together the contact store, mail dispatcher, token authority
    and CAPTCHA verifier for the domain service.
    """
    state = request.app.state
    settings: Settings = state.settings
    return SubscriptionService(
        contacts=state.contacts,
        mailer=state.mailer,
        tokens=state.tokens,
        verifier=state.verifier,
        base_url=settings.url,
        unsubscribe_clears_lists=settings.unsubscribe_clears_lists,
    )


def get_authenticated_email(
    authorization: str | None = Header(default=None),
    tokens: TokenAuthority = Depends(get_token_authority),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """
    Authenticate the bearer token and return the confirmed email.

    The token must have been issued for the host of the configured
    public URL, the same host confirmation links are built from. The
    Host header of the request plays no part.

    Raises:
        MissingToken: no Bearer Authorization header
        InvalidToken / ExpiredToken / MissingSubject: token rejected
    """
    token = extract_bearer_token(authorization)
    return tokens.validate(token, settings.issuer_host)


def resolve_client_ip(
    forwarded_for: str | None, peer: str | None, number_of_proxies: int
) -> str | None:
    """
    Resolve the visitor address behind `number_of_proxies` trusted proxies.

    The peer is the nearest proxy. Every proxy appends the address it
    received the request from to X-Forwarded-For, so the entry
    `number_of_proxies` from the right was written by the outermost
    trusted proxy and names the visitor. Entries left of it are
    client-supplied and ignored. A chain shorter than the trusted count
    yields its leftmost entry.
    """
    if number_of_proxies <= 0 or not forwarded_for:
        return peer
    addresses = [address.strip() for address in forwarded_for.split(",") if address.strip()]
    if not addresses:
        return peer
    if len(addresses) < number_of_proxies:
        return addresses[0]
    return addresses[-number_of_proxies]


def get_remote_ip(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str | None:
    peer = request.client.host if request.client else None
    return resolve_client_ip(
        request.headers.get("x-forwarded-for"), peer, settings.number_of_proxies
    )
