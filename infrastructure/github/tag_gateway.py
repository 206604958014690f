from typing import Callable

from domain.errors import TransientAPIError
from domain.models import RepositoryReference, TagState
from infrastructure.github.github_client import GitHubAPIError, GitHubClient


class TagGateway:
    def __init__(self, client_factory: Callable[[RepositoryReference], GitHubClient]) -> None:
        self.client_factory = client_factory

    def list_tags(self, reference: RepositoryReference) -> list[TagState]:
        client = self.client_factory(reference)
        try:
            raw_tags = client.list_tags()
        except GitHubAPIError as error:
            raise TransientAPIError(str(error)) from error
        return [TagState(name=tag["name"], commit_sha=tag["commit"]["sha"]) for tag in raw_tags]
