import logging
from typing import Callable, Sequence

from domain.errors import TransientAPIError
from domain.models import RepositoryReference, TagState


logger = logging.getLogger(__name__)

ListTags = Callable[[RepositoryReference], Sequence[TagState]]


class TagWatcher:
    """Remembers the newest observed tag of one monitored repository.

    The first entry returned by ``list_tags`` is taken as the latest tag; the
    hosting API's ordering is trusted as-is.
    """

    def __init__(self, list_tags: ListTags) -> None:
        self._list_tags = list_tags
        self._reference: RepositoryReference | None = None
        self._last_tag: TagState | None = None
        self._baseline_known = False

    @property
    def last_tag(self) -> TagState | None:
        return self._last_tag

    def _latest(self) -> TagState | None:
        if self._reference is None:
            raise RuntimeError("TagWatcher.initialize() must run before polling")
        tags = self._list_tags(self._reference)
        return tags[0] if tags else None

    def initialize(self, reference: RepositoryReference) -> bool:
        """Record the current latest tag; returns False when the tag list could not be fetched."""
        self._reference = reference
        try:
            latest = self._latest()
        except TransientAPIError as error:
            logger.warning("Could not list tags for %s: %s", reference.full_name, error)
            return False

        self._last_tag = latest
        self._baseline_known = True
        if latest is None:
            logger.info("No tags yet for %s", reference.full_name)
        else:
            logger.info("Last known tag for %s: %s (%s)", reference.full_name, latest.name, latest.commit_sha)
        return True

    def poll(self) -> bool:
        try:
            current = self._latest()
        except TransientAPIError as error:
            logger.warning("Tag poll failed: %s", error)
            return False

        if not self._baseline_known:
            # Startup listing failed, so this listing becomes the baseline instead of a change.
            self._baseline_known = True
            self._last_tag = current
            logger.info("Tag baseline established: %s", current.name if current else "no tags")
            return False

        if current is None:
            logger.info("No tags yet")
            return False

        if self._last_tag is not None and current.commit_sha == self._last_tag.commit_sha:
            logger.info("No new tag (latest is still %s)", current.name)
            return False

        self._last_tag = current
        logger.info("New tag: %s (%s)", current.name, current.commit_sha)
        return True

    def current_tag_name(self) -> str:
        if self._last_tag is None:
            return ""
        return self._last_tag.name
