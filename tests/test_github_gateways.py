import unittest
from typing import Any

import requests

from domain.errors import APIError, AuthError, TransientAPIError
from domain.models import PullRequestRecord, RepositoryReference, TagState
from infrastructure.github.github_client import GitHubAPIError, GitHubClient
from infrastructure.github.pr_gateway import PullRequestGateway
from infrastructure.github.tag_gateway import TagGateway


TARGET = RepositoryReference(owner="acme", name="widgets")


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self.headers: dict[str, str] = {}
        self.response = response
        self.requests: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.requests.append((method, url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _factory(session: _FakeSession, token: str | None = "ghp_secret"):
    return lambda reference: GitHubClient.for_reference(reference, token=token, session=session)


class GitHubClientTests(unittest.TestCase):
    def test_client_sets_auth_header_only_with_token(self) -> None:
        with_token = GitHubClient(token="ghp_secret", owner="acme", repo="widgets", session=_FakeSession(_FakeResponse(200, [])))
        anonymous = GitHubClient(token=None, owner="acme", repo="widgets", session=_FakeSession(_FakeResponse(200, [])))

        self.assertEqual(with_token.session.headers["Authorization"], "Bearer ghp_secret")
        self.assertNotIn("Authorization", anonymous.session.headers)
        self.assertEqual(anonymous.base, "https://api.github.com/repos/acme/widgets")

    def test_list_tags_rejects_unexpected_payload(self) -> None:
        client = GitHubClient(token=None, owner="acme", repo="widgets", session=_FakeSession(_FakeResponse(200, {"message": "?"})))

        with self.assertRaises(GitHubAPIError):
            client.list_tags()

    def test_error_status_carries_code_and_api_message(self) -> None:
        session = _FakeSession(_FakeResponse(404, {"message": "Not Found", "errors": []}))
        client = GitHubClient(token=None, owner="acme", repo="widgets", session=session)

        with self.assertRaises(GitHubAPIError) as raised_error:
            client.list_tags()

        self.assertEqual(raised_error.exception.status_code, 404)
        self.assertIn("Not Found", str(raised_error.exception))


class TagGatewayTests(unittest.TestCase):
    def test_list_tags_preserves_api_order(self) -> None:
        session = _FakeSession(
            _FakeResponse(
                200,
                [
                    {"name": "v2", "commit": {"sha": "b"}},
                    {"name": "v1", "commit": {"sha": "a"}},
                ],
            )
        )

        tags = TagGateway(_factory(session, token=None)).list_tags(TARGET)

        self.assertEqual(tags, [TagState(name="v2", commit_sha="b"), TagState(name="v1", commit_sha="a")])
        method, url, _ = session.requests[0]
        self.assertEqual((method, url), ("GET", "https://api.github.com/repos/acme/widgets/tags"))

    def test_transport_failure_becomes_transient_error(self) -> None:
        session = _FakeSession(requests.ConnectionError("network down"))

        with self.assertRaises(TransientAPIError):
            TagGateway(_factory(session)).list_tags(TARGET)

    def test_server_error_becomes_transient_error(self) -> None:
        session = _FakeSession(_FakeResponse(502, None, text="Bad gateway"))

        with self.assertRaises(TransientAPIError):
            TagGateway(_factory(session)).list_tags(TARGET)


class PullRequestGatewayTests(unittest.TestCase):
    def test_create_posts_payload_and_returns_record(self) -> None:
        session = _FakeSession(
            _FakeResponse(201, {"number": 7, "html_url": "https://github.com/acme/widgets/pull/7"})
        )

        record = PullRequestGateway(_factory(session)).create(
            TARGET, "tt-1.4.0", "master", "Update to 1.4.0", "Update to 1.4.0"
        )

        self.assertEqual(record, PullRequestRecord(number=7, url="https://github.com/acme/widgets/pull/7"))
        method, url, kwargs = session.requests[0]
        self.assertEqual((method, url), ("POST", "https://api.github.com/repos/acme/widgets/pulls"))
        self.assertEqual(
            kwargs["json"],
            {"title": "Update to 1.4.0", "head": "tt-1.4.0", "base": "master", "body": "Update to 1.4.0"},
        )

    def test_unauthorized_becomes_auth_error(self) -> None:
        for status_code in (401, 403):
            with self.subTest(status_code=status_code):
                session = _FakeSession(_FakeResponse(status_code, {"message": "Bad credentials"}))
                with self.assertRaises(AuthError):
                    PullRequestGateway(_factory(session)).create(TARGET, "tt-1", "master", "t", "b")

    def test_duplicate_pull_request_becomes_api_error(self) -> None:
        session = _FakeSession(
            _FakeResponse(422, {"message": "Validation Failed", "errors": [{"message": "A pull request already exists"}]})
        )

        with self.assertRaises(APIError) as raised_error:
            PullRequestGateway(_factory(session)).create(TARGET, "tt-1", "master", "t", "b")

        self.assertIn("already exists", str(raised_error.exception))


if __name__ == "__main__":
    unittest.main()
