from typing import Callable

from domain.errors import APIError, AuthError
from domain.models import PullRequestRecord, RepositoryReference
from infrastructure.github.github_client import GitHubAPIError, GitHubClient


_AUTH_STATUS_CODES = {401, 403}


class PullRequestGateway:
    def __init__(self, client_factory: Callable[[RepositoryReference], GitHubClient]) -> None:
        self.client_factory = client_factory

    def create(
        self,
        reference: RepositoryReference,
        branch_name: str,
        base_branch: str,
        title: str,
        body: str,
    ) -> PullRequestRecord:
        client = self.client_factory(reference)
        try:
            pull_request = client.create_pr(head=branch_name, base=base_branch, title=title, body=body)
        except GitHubAPIError as error:
            if error.status_code in _AUTH_STATUS_CODES:
                raise AuthError(str(error)) from error
            raise APIError(str(error)) from error
        return PullRequestRecord(
            number=pull_request["number"],
            url=str(pull_request.get("html_url") or pull_request.get("url") or ""),
        )
