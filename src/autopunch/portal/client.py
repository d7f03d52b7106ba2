from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Optional

import requests

from ..core.constants import USER_AGENT
from ..core.enums import Action
from ..core.exceptions import ActionError, LoginError
from .http_client import create_session
from .model import PunchOutcome
from .token import extract_verification_token

logger = logging.getLogger(__name__)

_JSON_ACCEPT = "application/json, text/javascript, */*; q=0.01"


@dataclass(frozen=True)
class PortalConfig:
    origin: str
    tenant: str
    zone_id: str
    timeout: float = 20.0

    @property
    def login_page_url(self) -> str:
        return f"{self.origin}/{self.tenant}/Security/Login"

    @property
    def login_api_url(self) -> str:
        return f"{self.origin}/API/ACL/ValidateLoginCreadentials"

    @property
    def submit_url(self) -> str:
        return f"{self.origin}/{self.tenant}/API/Dashboard/SubmitAttendance1"


def _cookie_header(response) -> str:
    return "; ".join(f"{name}={value}" for name, value in response.cookies.items())


class PortalClient:
    """Login + attendance submission against the portal.

    Every ``punch`` performs the full handshake from scratch on its own HTTP
    session; nothing is kept between calls.
    """

    def __init__(
        self,
        config: PortalConfig,
        *,
        session_factory: Callable[[], requests.Session] = create_session,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._config = config
        self._session_factory = session_factory
        self._clock = clock

    def punch(self, username: str, secret: str, action: Action) -> PunchOutcome:
        session = self._session_factory()
        try:
            cookies = self.login(session, username, secret)
            logger.info("Portal login succeeded for %s, submitting %s", username, action.value)
            return self.submit(session, cookies, action)
        except (LoginError, ActionError) as e:
            logger.warning("Portal %s failed for %s: %s", action.value, username, e)
            return PunchOutcome(success=False, message=str(e))
        except requests.RequestException as e:
            logger.warning("Portal transport error for %s: %s", username, e)
            return PunchOutcome(success=False, message=str(e) or "Failed to reach attendance portal")
        finally:
            session.close()

    def login(self, session: requests.Session, username: str, secret: str) -> str:
        """Run the login handshake and return the authoritative cookie header."""
        cfg = self._config
        try:
            page = session.get(
                cfg.login_page_url,
                headers={"User-Agent": USER_AGENT},
                timeout=cfg.timeout,
            )
        except requests.RequestException as e:
            raise LoginError(f"Could not load login page: {e}")

        page_cookies = _cookie_header(page)
        token = extract_verification_token(page.text)

        form = {
            "Username": username,
            "Password": secret,
            "LoginType": "Normal",
            "IsWebRequest": "true",
            "IsValidateMobile": "",
            "__RequestVerificationToken": token,
        }
        try:
            response = session.post(
                cfg.login_api_url,
                data=form,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
                    "User-Agent": USER_AGENT,
                    "Cookie": page_cookies,
                    "Accept": _JSON_ACCEPT,
                    "X-Requested-With": "XMLHttpRequest",
                    "Referer": cfg.login_page_url,
                    "Origin": cfg.origin,
                },
                timeout=cfg.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            raise LoginError(f"Login request failed: {e}")

        if response.status_code >= 400:
            raise LoginError(f"Login failed with HTTP {response.status_code}")

        body = self._json_body(response)
        if body.get("Status") != "Success" and not body.get("RedirectUrl"):
            raise LoginError(body.get("Message") or "Login failed")

        return _cookie_header(response) or page_cookies

    def submit(self, session: requests.Session, cookies: str, action: Action) -> PunchOutcome:
        cfg = self._config
        params = {
            "checkIn": "true" if action.is_check_in else "false",
            "remarks": "",
            "zone": cfg.zone_id,
            "singleInOutPunch": "false",
            "ishomepage": "true",
        }
        try:
            response = session.get(
                cfg.submit_url,
                params=params,
                headers={
                    "User-Agent": USER_AGENT,
                    "Cookie": cookies,
                    "Accept": _JSON_ACCEPT,
                    "X-Requested-With": "XMLHttpRequest",
                },
                timeout=cfg.timeout,
            )
        except requests.RequestException as e:
            raise ActionError(f"Attendance submission failed: {e}")

        received_at = self._clock()
        if not 200 <= response.status_code < 300:
            raise ActionError(f"Failed to mark attendance (HTTP {response.status_code})")

        label = "punch in" if action.is_check_in else "punch out"
        return PunchOutcome(success=True, message=f"Successfully marked {label}", timestamp=received_at)

    @staticmethod
    def _json_body(response) -> Mapping:
        try:
            body: Optional[object] = response.json()
        except ValueError:
            raise LoginError("Unexpected login response from portal")
        if not isinstance(body, dict):
            raise LoginError("Unexpected login response from portal")
        return body
