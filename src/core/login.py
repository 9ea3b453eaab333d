"""Login/session state machine (core domain).

Drives authentication against the transport with a bounded number of
one-time-code attempts. Rate-limit waits do not consume an attempt; any error
other than a bad code or a rate limit is fatal and propagates immediately.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from core.ports import AuthenticatorPort, CredentialPrompt

LOGGER = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 3


class LoginState(str, Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class LoginError(Exception):
    """Base class for authentication failures the state machine can retry."""


class InvalidCodeError(LoginError):
    """The one-time code was rejected (or has expired)."""


class RateLimitedError(LoginError):
    """The server asked us to wait before trying again."""

    def __init__(self, seconds: int) -> None:
        super().__init__(f"A wait of {seconds} seconds is required")
        self.seconds = seconds


class LoginManager:
    """Idle -> Authenticating -> Authenticated | Failed."""

    def __init__(
        self,
        authenticator: AuthenticatorPort,
        prompt: CredentialPrompt,
        phone: str,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._authenticator = authenticator
        self._prompt = prompt
        self._phone = phone
        self._max_attempts = max_attempts
        self._sleep = sleep
        self.state = LoginState.IDLE
        self.failed_attempts = 0

    async def login(self) -> bool:
        """Return True once authenticated, False after exhausting attempts."""

        LOGGER.info("Starting login process")
        while self.failed_attempts < self._max_attempts:
            self.state = LoginState.AUTHENTICATING
            LOGGER.info("Login attempt %s of %s", self.failed_attempts + 1, self._max_attempts)
            try:
                await self._authenticator.authenticate(self._phone, self._prompt)
            except InvalidCodeError:
                self.failed_attempts += 1
                LOGGER.warning("Invalid login code (%s/%s)", self.failed_attempts, self._max_attempts)
                continue
            except RateLimitedError as exc:
                LOGGER.warning("Rate limited: waiting %s seconds before trying again", exc.seconds)
                await self._sleep(exc.seconds)
                continue
            except Exception:
                self.state = LoginState.FAILED
                LOGGER.error("Unrecoverable error during login")
                raise

            self.state = LoginState.AUTHENTICATED
            LOGGER.info("Login successful")
            return True

        self.state = LoginState.FAILED
        LOGGER.error("Max login attempts reached. Please try again later.")
        return False
