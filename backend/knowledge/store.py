"""
Knowledge base — named text blobs supplied as extra context to the
root-cause analysis call.

Backed by a single JSON file. Adding a file with an existing name
replaces it.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class KnowledgeFile:
    name: str
    content: str
    uploaded_at: str


@dataclass(frozen=True)
class KnowledgeFileInfo:
    name: str
    uploaded_at: str


class KnowledgeStore:
    """File-backed store of knowledge documents."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> list[KnowledgeFile]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return [KnowledgeFile(**item) for item in payload]
        except (json.JSONDecodeError, TypeError) as exc:
            logger.error("knowledge.store_unreadable", path=str(self.path), error=str(exc))
            return []

    def _write(self, files: list[KnowledgeFile]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps([asdict(f) for f in files], indent=2), encoding="utf-8")

    def add(self, name: str, content: str, uploaded_at: str | None = None) -> KnowledgeFile:
        entry = KnowledgeFile(
            name=name,
            content=content,
            uploaded_at=uploaded_at or datetime.now(timezone.utc).isoformat(),
        )
        others = [f for f in self._read() if f.name != name]
        self._write([*others, entry])
        logger.info("knowledge.file_added", name=name, chars=len(content))
        return entry

    def delete(self, name: str) -> bool:
        """Remove a file by name. Returns False if no such file."""
        files = self._read()
        remaining = [f for f in files if f.name != name]
        if len(remaining) == len(files):
            return False
        self._write(remaining)
        return True

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def list_files(self) -> list[KnowledgeFileInfo]:
        """File names and upload times, newest first."""
        files = sorted(self._read(), key=lambda f: f.uploaded_at, reverse=True)
        return [KnowledgeFileInfo(name=f.name, uploaded_at=f.uploaded_at) for f in files]

    def content(self) -> str:
        """All file contents concatenated with start/end markers."""
        return "\n\n".join(
            f"--- Start of {f.name} ---\n\n{f.content}\n\n--- End of {f.name} ---" for f in self._read()
        )
