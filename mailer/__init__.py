"""mailer - Newsletter sign-up with bot verification and double opt-in."""

__version__ = "0.1.0"
