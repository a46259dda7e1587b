# =======================================================================================
# lockmaster/services/ttlock_client.py - TTLock Cloud API Client
# =======================================================================================
import asyncio
import hashlib
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional
import httpx
from ..config import config
from ..models.enums import TTLockAddType
from ..models.schemas import TTLockLock
from ..utils.clock import as_utc
from ..utils.exceptions import TTLockAuthError, TTLockError, TTLockNotConfiguredError

logger = logging.getLogger(__name__)

# the vendor answers a reused PIN with this errcode; retrying cannot help
DUPLICATE_PASSCODE = -3007

# keyboardPwdType 3: valid between startDate and endDate
PERIOD_PASSCODE = 3

TOKEN_REFRESH_MARGIN = 60


def now_ms() -> int:
    return int(time.time() * 1000)


def to_ms(value: datetime) -> int:
    return int(as_utc(value).timestamp() * 1000)


def md5_password(password: str) -> str:
    return hashlib.md5(password.encode("utf-8")).hexdigest()


class TTLockClient:
    """
    Thin async wrapper over the TTLock open API.

    Transport errors and 5xx answers are retried up to `retry_attempts` times;
    a vendor `errcode` other than 0 is final and raises TTLockError.
    """

    def __init__(self, client_id: str, client_secret: str, username: str, password: str,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 retry_attempts: Optional[int] = None, retry_delay: Optional[float] = None,
                 page_size: Optional[int] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.base_url = (base_url or config.TTLOCK_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.TTLOCK_TIMEOUT
        self.retry_attempts = max(1, retry_attempts or config.TTLOCK_RETRY_ATTEMPTS)
        self.retry_delay = retry_delay if retry_delay is not None else config.TTLOCK_RETRY_DELAY
        self.page_size = page_size or config.TTLOCK_PAGE_SIZE
        self._transport = transport
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Optional[str]]] = None, **kwargs) -> "TTLockClient":
        """Build a client from settings; non-empty overrides win over config."""
        overrides = overrides or {}
        values = {
            "client_id": overrides.get("client_id") or config.TTLOCK_CLIENT_ID,
            "client_secret": overrides.get("client_secret") or config.TTLOCK_CLIENT_SECRET,
            "username": overrides.get("username") or config.TTLOCK_USERNAME,
            "password": overrides.get("password") or config.TTLOCK_PASSWORD,
        }
        missing = [k for k, v in values.items() if not v]
        if missing:
            raise TTLockNotConfiguredError(
                f"TTLock account is not configured (missing {', '.join(missing)})"
            )
        return cls(**values, **kwargs)

    # ---------- transport ----------

    async def _post(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", path, data=data)

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        last_error: Optional[Exception] = None
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                     transport=self._transport) as http:
            for attempt in range(1, self.retry_attempts + 1):
                try:
                    response = await http.request(method, path, **kwargs)
                    logger.debug("TTLock %s %s -> %s (attempt %d)",
                                 method, path, response.status_code, attempt)
                    if response.status_code >= 500:
                        last_error = TTLockError(f"TTLock returned HTTP {response.status_code}")
                    elif response.status_code >= 400:
                        raise TTLockError(f"TTLock rejected {path} with HTTP {response.status_code}")
                    else:
                        try:
                            return response.json()
                        except ValueError as e:
                            raise TTLockError(f"TTLock returned a non-JSON body for {path}") from e
                except httpx.TransportError as e:
                    logger.warning("TTLock %s %s failed (attempt %d/%d): %s",
                                   method, path, attempt, self.retry_attempts, e)
                    last_error = e
                if attempt < self.retry_attempts:
                    await asyncio.sleep(self.retry_delay)

        raise TTLockError(f"TTLock {path} failed after {self.retry_attempts} attempt(s)") from last_error

    @staticmethod
    def _check(payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        # success bodies usually omit errcode entirely
        errcode = payload.get("errcode", 0)
        if errcode != 0:
            message = payload.get("errmsg") or "unknown error"
            if errcode == DUPLICATE_PASSCODE:
                message = "Passcode already exists on this lock"
            raise TTLockError(f"TTLock {action} failed: {message}", errcode=errcode)
        return payload

    # ---------- auth ----------

    def _token_valid(self) -> bool:
        return self._token is not None and time.time() < self._token_expires_at

    async def get_access_token(self) -> str:
        if self._token_valid():
            return self._token

        try:
            payload = await self._post("/oauth2/token", {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "username": self.username,
                "password": md5_password(self.password),
                "grant_type": "password",
            })
        except TTLockError as e:
            raise TTLockAuthError(f"TTLock authentication failed: {e}") from e

        token = payload.get("access_token")
        if not token:
            message = payload.get("errmsg") or payload.get("description") or "no access token returned"
            raise TTLockAuthError(f"TTLock authentication failed: {message}", errcode=payload.get("errcode"))

        expires_in = int(payload.get("expires_in", 7200))
        self._token = token
        self._token_expires_at = time.time() + expires_in - TOKEN_REFRESH_MARGIN
        logger.info("Obtained TTLock token for %s (expires in %ss)", self.username, expires_in)
        return token

    async def _signed(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "clientId": self.client_id,
            "accessToken": await self.get_access_token(),
            **fields,
            "date": now_ms(),
        }

    # ---------- locks ----------

    async def list_locks(self) -> List[TTLockLock]:
        """All locks on the account, following the vendor's pagination."""
        locks: List[TTLockLock] = []
        page = 1
        while True:
            params = await self._signed({"pageNo": page, "pageSize": self.page_size})
            payload = self._check(await self._get("/v3/lock/list", params), "lock list")
            items = payload.get("list") or []
            locks.extend(TTLockLock.model_validate(item) for item in items)

            pages = payload.get("pages")
            if not items or len(items) < self.page_size or (pages is not None and page >= pages):
                break
            page += 1

        logger.info("TTLock account %s has %d lock(s)", self.username, len(locks))
        return locks

    # ---------- keys ----------

    async def add_passcode(self, lock_id: int, passcode: str, name: str,
                           start: datetime, end: datetime) -> int:
        data = await self._signed({
            "lockId": lock_id,
            "keyboardPwd": str(passcode),
            "keyboardPwdName": name,
            "keyboardPwdType": PERIOD_PASSCODE,
            "startDate": to_ms(start),
            "endDate": to_ms(end),
            "addType": TTLockAddType.GATEWAY.value,
        })
        payload = self._check(await self._post("/v3/keyboardPwd/add", data), "passcode add")
        if "keyboardPwdId" not in payload:
            raise TTLockError("TTLock did not return a passcode id")
        logger.info("Added TTLock passcode %s on lock %s", payload["keyboardPwdId"], lock_id)
        return payload["keyboardPwdId"]

    async def add_card(self, lock_id: int, card_number: str, name: str,
                       start: datetime, end: datetime) -> int:
        data = await self._signed({
            "lockId": lock_id,
            "cardNumber": card_number,
            "cardName": name,
            "startDate": to_ms(start),
            "endDate": to_ms(end),
            "addType": TTLockAddType.GATEWAY.value,
        })
        payload = self._check(await self._post("/v3/identityCard/add", data), "card add")
        if "cardId" not in payload:
            raise TTLockError("TTLock did not return a card id")
        logger.info("Added TTLock card %s on lock %s", payload["cardId"], lock_id)
        return payload["cardId"]
