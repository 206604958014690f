from pathlib import Path
from typing import Protocol


class ContentMutator(Protocol):
    name: str

    def mutate(self, root: Path, tag: str) -> list[Path]:
        """Apply the version change for ``tag`` under ``root`` and return the modified files."""
