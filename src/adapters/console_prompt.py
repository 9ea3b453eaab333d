"""Terminal credential prompt used during interactive login."""

from __future__ import annotations

import os
from getpass import getpass


class ConsolePrompt:
    """Ask for the login code on stdin; the 2FA password may come from the env."""

    def request_code(self) -> str:
        return input("Please enter the code you received: ").strip()

    def request_second_factor(self) -> str:
        password = os.getenv("2FA")
        if password:
            return password
        return getpass("Please enter your 2FA password: ")
