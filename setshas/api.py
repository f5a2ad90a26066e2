"""
Interaction with the Gitea REST API

Only the few endpoints needed to find a green commit are wrapped. See
https://gitea.com/api/swagger for the full API.
"""
import logging
import requests

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ApiError(Exception):
    def __init__(self, url, status_code=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.url = url
        self.status_code = status_code

    def __str__(self):
        reason = super().__str__()
        if self.status_code is None:
            return f"Request to {self.url} failed: {reason or 'request failed'}"
        if reason:
            return f"Request to {self.url} failed with status {self.status_code}: {reason}"
        return f"Request to {self.url} failed with status {self.status_code}"


def api_root(base_url):
    """
    Return the API root for a server url, e.g.

        https://gitea.com -> https://gitea.com/api/v1
    """
    base_url = base_url.rstrip("/")
    if base_url.endswith(API_PREFIX):
        return base_url
    return base_url + API_PREFIX


class GiteaClient:
    def __init__(self, base_url, token=None, session=None):
        self.root = api_root(base_url)
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json"
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    def get(self, path, params=None):
        url = self.root + path
        logger.debug(f"GET {url} {params or ''}")
        try:
            resp = self.session.get(url, params=params)
        except requests.RequestException as e:
            raise ApiError(url, None, str(e)) from e

        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise ApiError(url, resp.status_code) from e

        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(url, resp.status_code, "invalid JSON in response") from e

    def list_commits(self, owner, repo, sha, page=1, limit=10):
        """
        List commits reachable from `sha`, newest first.
        """
        return self.get(
            f"/repos/{owner}/{repo}/commits",
            params={
                "sha": sha,
                "stat": "false",
                "verification": "false",
                "files": "false",
                "page": page,
                "limit": limit,
            },
        )

    def get_combined_status(self, owner, repo, ref):
        """
        Combined commit status for `ref`. The `state` key is one of
        pending, success, error, failure or warning.
        """
        return self.get(f"/repos/{owner}/{repo}/commits/{ref}/status")

    def get_pull_request(self, owner, repo, index):
        return self.get(f"/repos/{owner}/{repo}/pulls/{index}")
