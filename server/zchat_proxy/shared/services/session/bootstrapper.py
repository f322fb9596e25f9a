"""
Session Bootstrapper - obtains a usable upstream session for one request.
"""

import re
from typing import Tuple

import httpx
import jwt
from loguru import logger

from ...clients.upstream import UpstreamClient
from ...core.config import Settings
from ...core.exceptions import UpstreamUnavailableError
from ...models.internal import ZChatSession


FE_VERSION_PATTERN = re.compile(r"prod-fe-\d+\.\d+\.\d+")

AUTH_PATH = "/api/v1/auths/"
GUEST_AUTH_PATH = "/api/v1/auths/guest"


class SessionBootstrapper:
    """
    Builds a fresh ZChatSession: frontend version, bearer token and identity.

    Everything except total unreachability of the auth endpoints degrades to
    defaults instead of failing the request.
    """

    def __init__(self, upstream: UpstreamClient, settings: Settings):
        self.upstream = upstream
        self.settings = settings

    async def discover_version(self) -> str:
        """Scrape the ``prod-fe-x.y.z`` build tag from the landing page."""
        logger.info("Scraping frontend version from upstream landing page")
        try:
            response = await self.upstream.get("/")
        except UpstreamUnavailableError as e:
            logger.error(f"Version scrape failed, using default: {e}")
            return self.settings.default_fe_version

        if not response.is_success:
            logger.warning(f"Landing page returned {response.status_code}, using default version")
            return self.settings.default_fe_version

        match = FE_VERSION_PATTERN.search(response.text)
        if not match:
            logger.warning("No frontend version found on landing page, using default")
            return self.settings.default_fe_version

        return match.group(0)

    @staticmethod
    def _token_from(response: httpx.Response) -> str:
        if not response.is_success:
            return ""
        try:
            data = response.json()
        except ValueError:
            logger.warning("Auth response was not JSON")
            return ""
        if not isinstance(data, dict):
            return ""
        token = data.get("token") or ""
        return token if isinstance(token, str) else ""

    async def authenticate(self) -> str:
        """
        Who-am-I lookup first, guest registration as fallback.

        Returns:
            The bearer token, or "" when neither call produced one

        Raises:
            UpstreamUnavailableError: If neither auth endpoint could be reached
        """
        headers = self.upstream.browser_headers()
        token = ""
        lookup_unreachable = False

        try:
            response = await self.upstream.get(AUTH_PATH, headers=headers)
            token = self._token_from(response)
            if not response.is_success:
                logger.debug(f"Auth lookup returned {response.status_code}, trying guest auth")
        except UpstreamUnavailableError:
            lookup_unreachable = True

        if token:
            return token

        try:
            response = await self.upstream.post_json(GUEST_AUTH_PATH, {}, headers=headers)
            token = self._token_from(response)
            if not response.is_success:
                logger.warning(f"Guest auth returned {response.status_code}")
        except UpstreamUnavailableError:
            if lookup_unreachable:
                raise
            logger.error("Guest auth endpoint unreachable")

        return token

    @staticmethod
    def decode_identity(token: str) -> Tuple[str, str]:
        """
        Read ``id`` and ``email`` claims from the bearer token.

        The signature is NOT verified: the token is only echoed back to the
        service that issued it, and the claims just label the session.

        Returns:
            (user_id, user_name), or ("", "Guest") when the token is unreadable
        """
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.warning(f"Token decode failed, continuing without identity: {e}")
            return "", "Guest"

        user_id = claims.get("id") or ""
        email = claims.get("email") or "Guest"
        user_name = str(email).split("@")[0]
        return str(user_id), user_name

    async def bootstrap(self) -> ZChatSession:
        """Create a populated session for one proxied request."""
        fe_version = await self.discover_version()

        logger.info("Initializing upstream session")
        session = ZChatSession(
            model=self.settings.default_model,
            salt_key=self.settings.salt_key,
            fe_version=fe_version,
        )

        session.token = await self.authenticate()
        if session.token:
            session.user_id, session.user_name = self.decode_identity(session.token)
            logger.info(f"Connected. UserID: {session.user_id[:8]}... (Name: {session.user_name})")
        else:
            logger.warning("No token in auth response")

        return session
