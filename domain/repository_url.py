from domain.errors import InvalidURL
from domain.models import RepositoryReference


SUPPORTED_HOST = "github.com"
_SCHEME_PREFIXES = ("https://", "http://", "git://")


def parse_repository_url(url: str) -> RepositoryReference:
    """Split ``[https://|http://|git://]github.com/owner/name[.git][/...]``."""
    remainder = url.strip()
    for prefix in _SCHEME_PREFIXES:
        if remainder.startswith(prefix):
            remainder = remainder[len(prefix):]
            break

    host, _, path = remainder.partition("/")
    if host != SUPPORTED_HOST:
        raise InvalidURL(f"Unsupported host for repository URL '{url}'; expected {SUPPORTED_HOST}")

    segments = path.split("/")
    if len(segments) < 2:
        raise InvalidURL(f"Repository URL '{url}' must include owner and repository name")

    owner = segments[0]
    name = segments[1].removesuffix(".git")
    if not owner or not name:
        raise InvalidURL(f"Repository URL '{url}' must include owner and repository name")

    return RepositoryReference(owner=owner, name=name)


def clone_url(reference: RepositoryReference) -> str:
    return f"https://{SUPPORTED_HOST}/{reference.owner}/{reference.name}.git"
