import logging
from typing import Any

import requests
from jsonschema import ValidationError, validate

from domain.models import RepositoryReference
from infrastructure.observability.logging_utils import log_event, safe_message


logger = logging.getLogger(__name__)

API_ROOT = "https://api.github.com"

_TAG_LIST_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name", "commit"],
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "commit": {
                "type": "object",
                "required": ["sha"],
                "properties": {"sha": {"type": "string", "minLength": 1}},
            },
        },
    },
}

_PULL_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["number"],
    "properties": {
        "number": {"type": "integer"},
        "html_url": {"type": "string"},
        "url": {"type": "string"},
    },
}


class GitHubAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_details(response: requests.Response) -> str:
    error_details = response.text
    try:
        error_payload = response.json()
        api_message = error_payload.get("message", "")
        api_errors = error_payload.get("errors", "")
        error_details = f"{api_message} | errors={api_errors}"
    except (ValueError, AttributeError):
        pass
    return safe_message(error_details)


class GitHubClient:
    def __init__(
        self,
        *,
        token: str | None,
        owner: str,
        repo: str,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base = f"{API_ROOT}/repos/{self.owner}/{self.repo}"
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"

    @classmethod
    def for_reference(
        cls,
        reference: RepositoryReference,
        *,
        token: str | None,
        session: requests.Session | None = None,
    ) -> "GitHubClient":
        return cls(token=token, owner=reference.owner, repo=reference.name, session=session)

    def _request(self, method: str, path: str, event: str, **kwargs: Any) -> Any:
        try:
            response = self.session.request(method, f"{self.base}{path}", **kwargs)
        except requests.RequestException as error:
            log_event(logger, logging.ERROR, f"{event}_failed", details=str(error))
            raise GitHubAPIError(safe_message(f"GitHub request failed: {error}")) from error

        if response.status_code >= 400:
            safe_error_details = _error_details(response)
            log_event(
                logger,
                logging.ERROR,
                f"{event}_failed",
                status_code=response.status_code,
                details=safe_error_details,
            )
            raise GitHubAPIError(
                f"GitHub request failed ({response.status_code}): {safe_error_details}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as error:
            raise GitHubAPIError(
                f"GitHub returned a non-JSON body ({response.status_code})",
                status_code=response.status_code,
            ) from error

    def list_tags(self) -> list[dict[str, Any]]:
        log_event(logger, logging.INFO, "github.tags.list", repository=f"{self.owner}/{self.repo}")
        payload = self._request("GET", "/tags", "github.tags.list")
        try:
            validate(instance=payload, schema=_TAG_LIST_SCHEMA)
        except ValidationError as error:
            raise GitHubAPIError(f"Unexpected tag list payload: {error.message}") from error
        return payload

    def create_pr(self, head: str, base: str, title: str, body: str) -> dict[str, Any]:
        log_event(logger, logging.INFO, "github.pr.create", head=head, base=base, title=title)
        payload = {"title": title, "head": head, "base": base, "body": body}
        pull_request = self._request("POST", "/pulls", "github.pr.create", json=payload)
        try:
            validate(instance=pull_request, schema=_PULL_REQUEST_SCHEMA)
        except ValidationError as error:
            raise GitHubAPIError(f"Unexpected pull request payload: {error.message}") from error
        return pull_request
