"""Shared fixtures: throwaway upstream repositories built with GitPython."""

import tempfile
from pathlib import Path

import pytest
from git import Actor, Repo

ACTOR = Actor("Upstream Dev", "dev@example.com")


class UpstreamRepo:
    """A small git repo whose history tests can extend commit by commit."""

    def __init__(self, root: Path):
        self.root = root
        self.repo = Repo.init(root)

    def commit(self, files: dict, message: str = "update", tag: str | None = None) -> str:
        """Write (or delete, for ``None``) files, commit, and optionally tag."""
        for rel, content in files.items():
            path = self.root / rel
            if content is None:
                self.repo.index.remove([rel], working_tree=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            self.repo.index.add([rel])
        commit = self.repo.index.commit(message, author=ACTOR, committer=ACTOR)
        if tag:
            self.repo.create_tag(tag)
        return commit.hexsha

    def rename(self, old: str, new: str, message: str = "move", tag: str | None = None) -> str:
        content = (self.root / old).read_text()
        self.repo.index.remove([old], working_tree=True)
        return self.commit({new: content}, message=message, tag=tag)


@pytest.fixture
def upstream():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield UpstreamRepo(Path(tmpdir))


@pytest.fixture
def kimi_repo(upstream):
    """Upstream with v1 and v2 tags around a handful of typical changes."""
    upstream.commit(
        {
            "src/kimi_cli/llm.py": "def chat():\n    return 'v1'\n",
            "src/kimi_cli/ui/shell.py": "def prompt():\n    pass\n",
            "src/kimi_cli/auth/login.py": "def login():\n    pass\n",
            "README.md": "# kimi\n",
        },
        message="initial",
        tag="v1",
    )
    upstream.commit(
        {
            "src/kimi_cli/llm.py": "def chat():\n    return 'v2'\n",
            "src/kimi_cli/ui/shell.py": "def prompt():\n    return '>'\n",
            "src/kimi_cli/tools/grep.py": "def grep(pattern):\n    return []\n",
            "README.md": "# kimi cli\n",
        },
        message="fix typo",  # title says nothing about what really changed
        tag="v2",
    )
    return upstream
