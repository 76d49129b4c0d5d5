"""
Azure CLI identity session.

Work IQ authenticates against Microsoft Graph on its own using the Azure CLI
account; this module only tracks whether such an account is signed in.
"""

import subprocess
from typing import List, Optional

from loguru import logger

from meeting_prep.config import AuthConfig, get_config
from meeting_prep.errors import AuthenticationError


class AzureCliSession:
    """Signed-in state of the local Azure CLI."""

    def __init__(self, config: Optional[AuthConfig] = None):
        self.config = config or get_config().auth
        self._user_name: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self._user_name is not None

    @property
    def user_name(self) -> Optional[str]:
        return self._user_name

    def _run(self, args: List[str], timeout: float) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self.config.az_command, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    def check(self) -> bool:
        """Refresh the cached state from ``az account show``."""
        try:
            result = self._run(
                ["account", "show", "--query", "user.name", "-o", "tsv"],
                self.config.check_timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"Azure CLI account check failed: {e}")
            self._user_name = None
            return False

        name = result.stdout.strip() if result.returncode == 0 else ""
        self._user_name = name or None
        return self.is_authenticated

    def login(self) -> str:
        """
        Run the interactive ``az login`` (opens the system browser).

        Returns:
            The signed-in user name

        Raises:
            AuthenticationError: login failed or no account is readable afterwards
        """
        try:
            result = self._run(["login", "--allow-no-subscriptions"], self.config.login_timeout)
        except subprocess.TimeoutExpired as e:
            raise AuthenticationError("Azure CLI login failed", "az login timed out") from e
        except OSError as e:
            raise AuthenticationError("Azure CLI login failed", str(e)) from e

        if result.returncode != 0:
            raise AuthenticationError("Azure CLI login failed", result.stderr.strip() or None)

        if not self.check():
            raise AuthenticationError("Azure CLI login failed", "az login succeeded but couldn't read account")

        logger.info(f"Signed in as: {self._user_name}")
        return self._user_name

    def logout(self):
        """Sign out; the local state is cleared even if ``az logout`` fails."""
        try:
            self._run(["logout"], self.config.logout_timeout)
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.warning(f"Azure CLI logout failed: {e}")
        self._user_name = None

    def status(self) -> dict:
        return {"authenticated": self.is_authenticated, "name": self._user_name}


# Global session instance
_session: Optional[AzureCliSession] = None


def get_auth_session() -> AzureCliSession:
    """Get the global session, checking the CLI state on first use."""
    global _session
    if _session is None:
        _session = AzureCliSession()
        _session.check()
    return _session


def reset_auth_session():
    """Reset the global session instance."""
    global _session
    _session = None
