"""
Refresh coordinator: at most one refresh call in flight.

The first caller that needs a token while Idle moves the coordinator to Refreshing and runs the
refresh; callers arriving while Refreshing wait on a future. When the refresh settles, resolve()
goes back to Idle and releases every waiter at once, in arrival order, with the same outcome.
Runs on a single event loop: the Idle check and the switch to Refreshing have no await between them.
"""
import asyncio
import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable

from soj_client.config import REFRESH_TIMEOUT
from soj_client.credential_store import CredentialStore
from soj_client.errors import RefreshError
from soj_client.session import SessionTerminator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshedTokens:
    access_token: str
    # Set when the server rotated the refresh token
    refresh_token: str | None = None


# refresh token -> new tokens; raises on any failure
Refresher = Callable[[str], Awaitable[RefreshedTokens]]


class RefreshState(enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshCoordinator:
    def __init__(
        self,
        store: CredentialStore,
        refresher: Refresher,
        terminator: SessionTerminator,
        timeout: float = REFRESH_TIMEOUT,
    ):
        self.store = store
        self.refresher = refresher
        self.terminator = terminator
        self.timeout = timeout
        self._state = RefreshState.IDLE
        self._waiters: deque[asyncio.Future] = deque()
        self.refresh_count = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    async def acquire_token(self, rejected_token: str | None = None) -> str:
        """
        Return a fresh access token. Raises RefreshError if the refresh fails; the session
        has already been terminated by then.

        rejected_token is the token the server just refused. If the store already holds a
        different one (a refresh finished while that request was on the wire), it is returned
        without starting another refresh.
        """
        if self._state is RefreshState.REFRESHING:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        current = self.store.access_token
        if rejected_token is not None and current and current != rejected_token:
            logger.debug("Access token already refreshed; reusing it")
            return current

        self._state = RefreshState.REFRESHING
        refresh_token = self.store.refresh_token
        if not refresh_token:
            error = RefreshError("No refresh token")
            self.resolve(error=error)
            raise error

        self.refresh_count += 1
        logger.info("Access token rejected; refreshing")
        try:
            tokens = await asyncio.wait_for(self.refresher(refresh_token), timeout=self.timeout)
        except asyncio.CancelledError:
            # The refreshing caller went away; queued requests must not hang on it
            self.resolve(error=RefreshError("Refresh cancelled"), terminate=False)
            raise
        except asyncio.TimeoutError:
            error = RefreshError(f"Refresh timed out after {self.timeout}s")
        except RefreshError as e:
            error = e
        except Exception as e:
            error = RefreshError(f"Refresh failed: {e}")
            error.__cause__ = e
        else:
            error = self.resolve(tokens=tokens)
            if error is None:
                return tokens.access_token
            raise error

        self.resolve(error=error)
        raise error

    def resolve(
        self,
        tokens: RefreshedTokens | None = None,
        error: RefreshError | None = None,
        terminate: bool = True,
    ) -> RefreshError | None:
        """
        Settle the in-flight refresh: back to Idle, then drain all waiters in FIFO order.
        Success writes the new tokens to the store first; failure terminates the session once.
        Every waiter is settled even if the store or the terminator raises.
        Returns the error the waiters were failed with, or None on success.
        """
        waiters = list(self._waiters)
        self._waiters.clear()
        self._state = RefreshState.IDLE

        if error is None:
            try:
                self._store_tokens(tokens)
            except RefreshError as e:
                error = e
            except Exception as e:
                logger.error("Could not store refreshed token: %s", e)
                error = RefreshError(f"Could not store refreshed token: {e}")
                error.__cause__ = e
            else:
                logger.info("Access token refreshed; releasing %d queued request(s)", len(waiters))
                for waiter in waiters:
                    if not waiter.done():
                        waiter.set_result(tokens.access_token)
                return None

        logger.warning("Token refresh failed: %s; failing %d queued request(s)", error, len(waiters))
        try:
            if terminate:
                self.terminator.terminate(reason=str(error))
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_exception(error)
        return error

    def _store_tokens(self, tokens: RefreshedTokens | None) -> None:
        if tokens is None or not tokens.access_token:
            raise RefreshError("Refresh returned no access token")
        self.store.update_access_token(tokens.access_token)
        if tokens.refresh_token:
            self.store.update_refresh_token(tokens.refresh_token)
