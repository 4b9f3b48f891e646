"""Terminal status callback to the caller-supplied endpoint."""

import httpx

from ..errors import NotificationError
from ..logging import get_logger
from ..models.timeline import ProcessResult

logger = get_logger(__name__)

LOG_MESSAGE_CHARS = 200


class Notifier:
    """
    Best-effort delivery of the run's outcome.

    ``notify`` never raises: by the time it runs the work is done, and a
    failed callback is only logged.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
    ):
        self._http = http_client or httpx.AsyncClient()
        self.timeout_seconds = timeout_seconds

    async def notify(
        self,
        parent_id: str,
        callback_url: str,
        auth_token: str,
        status: ProcessResult,
        message: str,
        user_id: str | None = None,
    ) -> bool:
        """
        POST the outcome; returns True on a 2xx response.
        """
        body = {
            'accountId': parent_id,
            'loggedinUserId': user_id,
            'status': 'Completed',
            'processResult': status.value,
            'message': message,
        }
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {auth_token}',
        }
        log = logger.bind(callback_url=callback_url, process_result=status.value)
        log.info('callback_sending', message=message[:LOG_MESSAGE_CHARS])

        try:
            response = await self._http.post(
                callback_url,
                json=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = NotificationError(
                f'Callback rejected with HTTP {e.response.status_code}',
                context={'body': e.response.text[:LOG_MESSAGE_CHARS]},
            )
            log.error('callback_failed', error=str(error))
            return False
        except httpx.TimeoutException as e:
            log.error('callback_failed', error=f'Timed out after {self.timeout_seconds}s: {e}')
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = NotificationError(f'No response received from callback URL: {e}')
            log.error('callback_failed', error=str(error), error_type=type(e).__name__)
            return False

        log.info('callback_sent', status_code=response.status_code)
        return True

    async def close(self) -> None:
        await self._http.aclose()
