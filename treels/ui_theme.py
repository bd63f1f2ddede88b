"""Output theme definitions and selection helpers."""

from __future__ import annotations

from dataclasses import dataclass

from .git_status import GitStatus


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    header: str
    branch: str
    directory: str
    file: str
    symlink: str
    size: str
    partial: str
    permissions: str
    owner: str
    modified: str
    git_modified: str
    git_added: str
    git_deleted: str
    git_renamed: str
    git_untracked: str
    git_ignored: str
    git_conflicted: str

    def status_color(self, status: GitStatus | None) -> str:
        """Return the colour for one status code; clean rows stay uncoloured."""
        if status is None or status is GitStatus.CLEAN:
            return ""
        return {
            GitStatus.MODIFIED: self.git_modified,
            GitStatus.ADDED: self.git_added,
            GitStatus.DELETED: self.git_deleted,
            GitStatus.RENAMED: self.git_renamed,
            GitStatus.UNTRACKED: self.git_untracked,
            GitStatus.IGNORED: self.git_ignored,
            GitStatus.CONFLICTED: self.git_conflicted,
        }[status]


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    header="\033[1;4m",
    branch="\033[2m",
    directory="\033[1;34m",
    file="",
    symlink="\033[36m",
    size="\033[38;5;109m",
    partial="\033[2;38;5;109m",
    permissions="\033[38;5;250m",
    owner="\033[38;5;180m",
    modified="\033[38;5;110m",
    git_modified="\033[38;5;214m",
    git_added="\033[38;5;42m",
    git_deleted="\033[31m",
    git_renamed="\033[38;5;81m",
    git_untracked="\033[38;5;42m",
    git_ignored="\033[2m",
    git_conflicted="\033[1;31m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    header="",
    branch="",
    directory="",
    file="",
    symlink="",
    size="",
    partial="",
    permissions="",
    owner="",
    modified="",
    git_modified="",
    git_added="",
    git_deleted="",
    git_renamed="",
    git_untracked="",
    git_ignored="",
    git_conflicted="",
)


def resolve_theme(*, no_color: bool = False) -> UITheme:
    """Return concrete theme for the requested color mode."""
    if no_color:
        return PLAIN_THEME
    return DEFAULT_THEME


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "PLAIN_THEME",
    "resolve_theme",
]
