import logging

import requests

log = logging.getLogger(__name__)

PUBLIC_IP_URL = "http://ip-api.com/json/"


class PublicIPProvider:
    def __init__(self, url: str = PUBLIC_IP_URL, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def get_public_ip(self) -> str:
        """
        Returns this host's public IP address as reported by ip-api.com,
        or an empty string if it cannot be determined.
        """
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            log.warning(f"Unable to determine public IP address: {e}", extra={"url": self.url})
            return ""

        ip = data.get("query") if isinstance(data, dict) else None
        if not isinstance(ip, str) or not ip:
            log.warning("Public IP lookup returned no address", extra={"url": self.url})
            return ""
        return ip
