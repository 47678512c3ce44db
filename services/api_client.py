# -*- coding: utf-8 -*-
"""
Census API Client - HTTP access to the census backend
=====================================================

Covers the endpoints the field client needs: login, the batch export
endpoints and the reference-data endpoint.
"""

import json
import mimetypes
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import urllib3

from services.exceptions import ApiException, NetworkException
from utils.logger import get_logger

# Suppress SSL warnings for self-signed certificates in development
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logger = get_logger(__name__)

TOKEN_KEYS = ("token", "access_token", "jwt", "accessToken")


def extract_token(payload: Any) -> Optional[str]:
    """
    Pull the session token out of a login response.

    The backend has answered with several key names over time, and some
    deployments return the bare token as the response body.
    """
    if isinstance(payload, dict):
        for key in TOKEN_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None
    if isinstance(payload, str):
        text = payload.strip().strip('"')
        return text or None
    return None


class CensusApiClient:
    """
    Client for the census backend.

    Unlike a long-lived UI session, no login happens on construction:
    the authentication service logs in once per sync session and hands
    the token over with set_access_token().

    Usage:
        client = CensusApiClient()
        client.set_access_token(token)
        client.post_batch("/contribuables/batch", dtos, {0: [Path("id.jpg")]})
    """

    def __init__(self, base_url: str = None, timeout: int = None,
                 export_timeout: int = None, verify_ssl: bool = None):
        from app.config import Config

        self.base_url = (base_url or Config.API_BASE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else Config.API_TIMEOUT
        self.export_timeout = export_timeout if export_timeout is not None else Config.EXPORT_TIMEOUT
        self.verify_ssl = Config.API_VERIFY_SSL if verify_ssl is None else verify_ssl
        self.access_token: Optional[str] = None

    # ==================== Authentication ====================

    def set_access_token(self, token: Optional[str]):
        self.access_token = token

    def clear_access_token(self):
        self.access_token = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def login(self, username: str, password: str) -> Optional[str]:
        """
        Log in and keep the returned token for later calls.

        Returns:
            The token, or None when the response carried none
        """
        from app.config import Config

        result = self._request(
            "POST",
            Config.LOGIN_ENDPOINT,
            json_data={"email": username, "password": password},
            authenticated=False,
            log_body=False,
        )
        token = extract_token(result)
        if token:
            self.access_token = token
            logger.info(f"Logged in as {username}")
        else:
            logger.warning("Login response did not contain a token")
        return token

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    # ==================== Transport ====================

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Any] = None,
        params: Optional[Dict] = None,
        files: Optional[List] = None,
        timeout: Optional[int] = None,
        authenticated: bool = True,
        log_body: bool = True
    ) -> Any:
        """
        Run one HTTP request with error mapping.

        Args:
            method: HTTP method
            endpoint: API endpoint (e.g., "/reftypes/all")
            json_data: JSON payload
            params: Query parameters
            files: multipart parts, as accepted by requests
            timeout: seconds; defaults to the client timeout

        Returns:
            Parsed JSON body, the raw text when the body is not JSON, or None
        """
        url = f"{self.base_url}{endpoint}"

        logger.info(f"[API REQ] {method} {endpoint}")
        if params:
            logger.info(f"[API REQ] Params: {params}")
        if json_data is not None and log_body:
            logger.debug(f"[API REQ] Body: {json.dumps(json_data, ensure_ascii=False, default=str)[:1000]}")

        try:
            response = requests.request(
                method=method,
                url=url,
                json=json_data,
                params=params,
                files=files,
                headers=self._headers(authenticated),
                timeout=timeout or self.timeout,
                verify=self.verify_ssl
            )
            response.raise_for_status()

            result = None
            if response.text:
                try:
                    result = response.json()
                except ValueError:
                    result = response.text

            logger.info(f"[API RES] {response.status_code} {endpoint}")
            if result and log_body:
                res_str = result if isinstance(result, str) else json.dumps(result, ensure_ascii=False, default=str)
                if len(res_str) > 1000:
                    logger.debug(f"[API RES] Body (truncated): {res_str[:1000]}...")
                else:
                    logger.debug(f"[API RES] Body: {res_str}")

            return result

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else 0
            response_data = {}
            response_text = ''
            if e.response is not None:
                try:
                    response_data = e.response.json()
                except ValueError:
                    response_text = (e.response.text or '')[:500]
            logger.error(f"[API ERR] {status_code} {method} {endpoint} | Response: {response_data or response_text}")
            message = response_text or str(e)
            if isinstance(response_data, dict) and response_data.get("message"):
                message = str(response_data["message"])
            raise ApiException(
                message=message,
                status_code=status_code,
                response_data=response_data if isinstance(response_data, dict) else {"body": response_data},
                context=endpoint
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error(f"[API ERR] Network error: {endpoint} - {e}")
            raise NetworkException(
                message=str(e),
                original_error=e,
                context=endpoint
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"[API ERR] Request failed: {endpoint} - {e}")
            raise NetworkException(
                message=str(e),
                original_error=e,
                context=endpoint
            )

    # ==================== Export ====================

    def post_batch(
        self,
        endpoint: str,
        dtos: List[Dict[str, Any]],
        attachments: Optional[Dict[int, List[Path]]] = None
    ) -> Any:
        """
        Send one chunk as multipart/form-data.

        The "data" part holds the JSON array of DTOs. Files for the DTO at
        position i go in parts named files_<i>; paths that no longer exist
        are skipped rather than failing the chunk.

        Raises:
            ApiException: non-2xx answer (the whole chunk is refused)
            NetworkException: connection lost or timed out
        """
        attachments = attachments or {}
        with ExitStack() as stack:
            parts = [("data", (None, json.dumps(dtos, ensure_ascii=False, default=str), "application/json"))]
            file_count = 0
            for index in sorted(attachments):
                for path in attachments[index]:
                    path = Path(path)
                    if not path.is_file():
                        logger.warning(f"Attachment missing, not sent: {path}")
                        continue
                    mime_type = mimetypes.guess_type(str(path))[0] or "application/octet-stream"
                    handle = stack.enter_context(open(path, "rb"))
                    parts.append((f"files_{index}", (path.name, handle, mime_type)))
                    file_count += 1

            logger.info(f"[API REQ] POST {endpoint} records={len(dtos)} files={file_count}")
            return self._request(
                "POST",
                endpoint,
                files=parts,
                timeout=self.export_timeout,
                log_body=False,
            )

    # ==================== Reference data ====================

    def get_reference_data(self) -> Any:
        """Fetch every lookup table in one call."""
        from app.config import Config
        return self._request("GET", Config.REFERENCE_ENDPOINT)
