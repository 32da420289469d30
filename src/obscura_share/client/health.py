"""
Remote library health probing.

Before a remote library is used, the client confirms the host is reachable
and accepts our credentials. Each attempt probes the configured URL and, if
that fails, the same URL with the other protocol (http <-> https), since
hosts are often registered before HTTPS is switched on or off.
"""

import asyncio
from typing import Optional

import aiohttp

from ..core.logging import get_logger
from ..errors import NetworkError
from ..models.remote import RemoteLibraryConnection, TokenPair, parse_remote_token


logger = get_logger(__name__)


HEALTH_PATH = "/api/health"
DEFAULT_TIMEOUT = 3.0
DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_DELAY = 1.0


def swap_protocol(url: str) -> Optional[str]:
    """Return ``url`` with http and https swapped, or None for other schemes."""
    if url.startswith("https://"):
        return "http://" + url[len("https://"):]
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return None


class HealthProber:
    """
    Probes a remote host's health endpoint with bounded retries.

    Holds no state between probes; the only cancellation is the per-request
    timeout.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the prober.

        Args:
            timeout: Deadline for each request in seconds
            session: Optional session to reuse; one is created per probe otherwise
        """
        self.timeout = timeout
        self._session = session

    async def _request(self, session: aiohttp.ClientSession, url: str, pair: TokenPair) -> None:
        try:
            async with session.get(
                f"{url}{HEALTH_PATH}",
                headers=pair.auth_headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(f"Health check returned {response.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            raise NetworkError(str(e) or type(e).__name__) from e

    async def check_health(self, session: aiohttp.ClientSession, url: str, pair: TokenPair) -> bool:
        """
        Probe one URL once.

        Returns:
            True if the host answered with a 2xx status
        """
        try:
            await self._request(session, url, pair)
        except NetworkError as e:
            logger.debug("Health check failed", url=url, error=str(e))
            return False
        return True

    async def probe(
        self,
        base_url: str,
        pair: TokenPair,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        name: str = "",
    ) -> Optional[str]:
        """
        Find a working base URL for a remote host.

        Args:
            base_url: URL the remote library was registered with
            pair: Credentials to present
            max_retries: Number of attempts
            retry_delay: Seconds to wait between attempts
            name: Display name used in log messages

        Returns:
            The URL that answered (possibly with the protocol swapped),
            or None if every attempt failed
        """
        current_url = base_url[:-1] if base_url.endswith("/") else base_url
        alternate_url = swap_protocol(current_url)
        label = name or current_url

        if self._session is not None:
            return await self._probe_with(self._session, current_url, alternate_url, pair, max_retries, retry_delay, label)

        async with aiohttp.ClientSession() as session:
            return await self._probe_with(session, current_url, alternate_url, pair, max_retries, retry_delay, label)

    async def _probe_with(
        self,
        session: aiohttp.ClientSession,
        current_url: str,
        alternate_url: Optional[str],
        pair: TokenPair,
        max_retries: int,
        retry_delay: float,
        label: str,
    ) -> Optional[str]:
        for attempt in range(1, max_retries + 1):
            if await self.check_health(session, current_url, pair):
                logger.info("Remote connection established", remote=label, attempt=attempt, max_retries=max_retries)
                return current_url

            logger.warning("Remote health attempt failed", remote=label, url=current_url,
                           attempt=attempt, max_retries=max_retries)

            # The alternate protocol is tried once per failed attempt
            if alternate_url is not None:
                logger.info("Trying alternate protocol", url=alternate_url)
                if await self.check_health(session, alternate_url, pair):
                    logger.info("Remote connection established using alternate protocol", remote=label, url=alternate_url)
                    return alternate_url

            if attempt < max_retries:
                await asyncio.sleep(retry_delay)

        logger.error("Failed to connect to remote library", remote=label, attempts=max_retries)
        return None


async def probe_health(
    remote_lib: RemoteLibraryConnection,
    my_user_token: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[str]:
    """
    Wait for a remote library to become reachable.

    Args:
        remote_lib: The registered remote library
        my_user_token: This installation's user token, used when the stored
            token is a bare access token
        max_retries: Number of attempts
        retry_delay: Seconds to wait between attempts
        timeout: Deadline for each request in seconds

    Returns:
        A working base URL, or None if the host could not be reached
    """
    pair = parse_remote_token(remote_lib.token, my_user_token)
    prober = HealthProber(timeout=timeout)
    return await prober.probe(
        remote_lib.url,
        pair,
        max_retries=max_retries,
        retry_delay=retry_delay,
        name=remote_lib.name,
    )
