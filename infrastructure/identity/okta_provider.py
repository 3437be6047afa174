import logging
from typing import Any, Dict, Tuple

import requests

import errors

log = logging.getLogger(__name__)

OKTA_API_BASE_URL = "https://{org_name}.okta.com/api/v1"


class OktaProvider:
    """
    Thin JSON transport for the Okta authentication API.
    Non-2xx responses are returned as-is: Okta puts the error code and summary
    in the body, and classifying them is up to the caller.
    """

    def __init__(self, org_name: str, api_key: str = "", timeout: float = 10.0):
        self.org_name = org_name
        self.api_key = api_key
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return OKTA_API_BASE_URL.format(org_name=self.org_name)

    @property
    def authn_url(self) -> str:
        return f"{self.base_url}/authn"

    def post(self, url: str, body: Dict[str, Any]) -> Tuple[int, bytes]:
        """
        POSTs the body as JSON and returns (status_code, raw_body).
        Raises TransportError on any network-level failure; never retries.
        """
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"SSWS {self.api_key}"

        try:
            response = requests.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as ex:
            e = errors.TransportError(url, ex)
            log.error(e.message, extra={"url": url})
            raise e from ex

        log.debug(f"POST {url} -> HTTP {response.status_code}", extra={"url": url, "response": response.text})
        return response.status_code, response.content
