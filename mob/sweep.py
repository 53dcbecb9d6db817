"""Maintenance sweeps over a turf: code review items and bug markers become beads."""

from __future__ import annotations

import os
import re
import stat
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from .bead_store import BeadStore
from .models import Bead, BeadStatus, BeadType

_CODE_EXTENSIONS = frozenset(
    {
        ".go", ".js", ".ts", ".jsx", ".tsx", ".py", ".rb", ".java", ".c", ".cpp", ".h",
        ".hpp", ".rs", ".swift", ".kt", ".scala", ".php", ".cs", ".sh", ".bash", ".zsh",
    }
)

_SKIPPED_DIRS = frozenset({"vendor", "node_modules"})

_REVIEW_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"fmt\.Println"), "Debug print statement left in code"),
    (re.compile(r"console\.log"), "Debug console.log left in code"),
    (re.compile(r"panic\("), "Potential unhandled panic"),
    (re.compile(r"// nolint"), "Linter directive that may need review"),
)

_MARKER_PATTERN = re.compile(r"(?i)(TODO|FIXME|HACK|XXX|BUG)[\s:]*(.*)")

_COMMIT_PATTERNS = ("WIP", "TODO", "FIXME", "HACK", "XXX", "TEMP", "TEMPORARY")

_RECENT_COMMITS = 20


class SweepType(StrEnum):
    REVIEW = "review"
    BUGS = "bugs"
    ALL = "all"


@dataclass
class SweepResult:
    """What one sweep found and which beads it created."""

    type: SweepType
    turf: str
    started_at: datetime
    completed_at: datetime | None = None
    items_found: int = 0
    beads: list[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class Issue:
    """A finding from a sweep."""

    file: str
    type: str
    description: str
    line: int = 0
    context: str = ""


def is_code_file(ext: str) -> bool:
    """Return True if the file extension (with its dot) marks a source file."""
    return ext in _CODE_EXTENSIONS


def _extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _now() -> datetime:
    return datetime.now().astimezone()


def _walk_code_files(path: str, name: str) -> Iterator[str]:
    """Yield code files under ``path`` in name order, skipping hidden and vendored dirs."""
    try:
        mode = os.lstat(path).st_mode
    except OSError:
        return
    if stat.S_ISDIR(mode):
        if name.startswith(".") or name in _SKIPPED_DIRS:
            return
        try:
            children = sorted(os.listdir(path))
        except OSError:
            return
        for child in children:
            yield from _walk_code_files(os.path.join(path, child), child)
    elif is_code_file(_extension(name)):
        yield path


def _bead_type_for(issue_type: str) -> BeadType:
    match issue_type.upper():
        case "FIXME" | "BUG":
            return BeadType.BUG
        case "HACK" | "XXX":
            return BeadType.CHORE
        case _:
            return BeadType.TASK


def _priority_for(issue_type: str) -> int:
    match issue_type.upper():
        case "FIXME" | "BUG":
            return 1
        case "HACK":
            return 2
        case _:
            return 3


class Sweeper:
    """Runs sweeps over one turf and files what it finds in a bead store."""

    def __init__(self, turf_path: str | os.PathLike[str], bead_store: BeadStore) -> None:
        self.turf_path = os.fspath(turf_path)
        self.bead_store = bead_store

    def review(self) -> SweepResult:
        """Look at recent commit messages and debug leftovers in code."""
        result = SweepResult(type=SweepType.REVIEW, turf=self.turf_path, started_at=_now())

        issues: list[Issue] = []
        if self._is_git_repo():
            issues.extend(self._analyze_recent_commits())
        issues.extend(self._find_code_review_issues())

        for issue in issues:
            bead = self._create_bead(issue, BeadType.REVIEW)
            if bead is not None:
                result.beads.append(bead.id)

        result.items_found = len(issues)
        result.completed_at = _now()
        result.summary = (
            f"Code review sweep completed: found {len(issues)} potential issues"
        )
        return result

    def bugs(self) -> SweepResult:
        """Hunt for TODO, FIXME, HACK, XXX and BUG markers."""
        result = SweepResult(type=SweepType.BUGS, turf=self.turf_path, started_at=_now())

        issues = self._find_bug_markers()
        for issue in issues:
            bead = self._create_bead(issue, _bead_type_for(issue.type))
            if bead is not None:
                result.beads.append(bead.id)

        result.items_found = len(issues)
        result.completed_at = _now()
        result.summary = (
            f"Bug sweep completed: found {len(issues)} items (TODOs, FIXMEs, HACKs)"
        )
        return result

    def all(self) -> list[SweepResult]:
        """Run the review sweep and then the bugs sweep."""
        return [self.review(), self.bugs()]

    def _is_git_repo(self) -> bool:
        return (Path(self.turf_path) / ".git").is_dir()

    def _recent_commit_subjects(self) -> list[str]:
        """Return the newest commit subjects, read from the HEAD reflog."""
        reflog = Path(self.turf_path) / ".git" / "logs" / "HEAD"
        try:
            lines = reflog.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError:
            return []
        subjects: list[str] = []
        for line in reversed(lines):
            _, tab, message = line.partition("\t")
            if not tab or not message.startswith("commit"):
                continue
            _, colon, subject = message.partition(": ")
            subjects.append(subject if colon else message)
            if len(subjects) == _RECENT_COMMITS:
                break
        return subjects

    def _analyze_recent_commits(self) -> list[Issue]:
        issues = []
        for subject in self._recent_commit_subjects():
            line = subject.strip()
            if not line:
                continue
            upper = line.upper()
            if any(pattern in upper for pattern in _COMMIT_PATTERNS):
                issues.append(
                    Issue(
                        file="git history",
                        type="COMMIT",
                        description=f"Commit message indicates incomplete work: {line}",
                    )
                )
        return issues

    def _code_files(self) -> Iterator[str]:
        root_name = os.path.basename(os.path.normpath(self.turf_path))
        return _walk_code_files(self.turf_path, root_name)

    def _find_code_review_issues(self) -> list[Issue]:
        issues = []
        for path in self._code_files():
            try:
                content = Path(path).read_bytes().decode("utf-8", errors="replace")
            except OSError:
                continue
            rel_path = os.path.relpath(path, self.turf_path)
            for number, line in enumerate(content.split("\n"), start=1):
                for pattern, description in _REVIEW_PATTERNS:
                    if pattern.search(line):
                        issues.append(
                            Issue(
                                file=rel_path,
                                line=number,
                                type="REVIEW",
                                description=description,
                                context=line.strip(),
                            )
                        )
        return issues

    def _find_bug_markers(self) -> list[Issue]:
        issues = []
        for path in self._code_files():
            try:
                content = Path(path).read_bytes().decode("utf-8", errors="replace")
            except OSError:
                continue
            lines = content.split("\n")
            if lines and lines[-1] == "":
                lines.pop()
            rel_path = os.path.relpath(path, self.turf_path)
            for number, raw in enumerate(lines, start=1):
                line = raw.removesuffix("\r")
                match = _MARKER_PATTERN.search(line)
                if match is None:
                    continue
                issues.append(
                    Issue(
                        file=rel_path,
                        line=number,
                        type=match.group(1).upper(),
                        description=match.group(2).strip(),
                        context=line.strip(),
                    )
                )
        return issues

    def _create_bead(self, issue: Issue, bead_type: BeadType) -> Bead | None:
        if issue.line > 0:
            title = f"[{issue.type}] {issue.file}:{issue.line}"
        else:
            title = f"[{issue.type}] {issue.file}"

        description = issue.description
        if issue.context:
            description = f"{issue.description}\n\nContext:\n{issue.context}"

        bead = Bead(
            title=title,
            description=description,
            status=BeadStatus.OPEN,
            priority=_priority_for(issue.type),
            type=bead_type,
            turf=self.turf_path,
            discovered_from="sweep",
        )
        try:
            return self.bead_store.create(bead)
        except OSError:
            return None