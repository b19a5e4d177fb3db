"""CAPTCHA adapters - Site-verify transports."""

from .httpx_transport import HttpxCaptchaTransport

__all__ = ["HttpxCaptchaTransport"]
