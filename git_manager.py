import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

import git
from git import GitCommandError

from git_graph_data import CommitRecord
from git_log_parser import FIELD_SEP, GRAPH_LOG_FORMAT, parse_graph_log

SUMMARY_LOG_FORMAT = FIELD_SEP.join(["%h", "%s", "%ar", "%an"])

_REMOTE_PREFIX = "origin/"


class GitOperationError(Exception):
    """git 命令失败，message 为 git 输出的错误信息"""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.command = command


@dataclass
class FileChange:
    path: str
    status: str  # 'M' | 'A' | 'D' | 'R' | '?' ...
    staged: bool


@dataclass
class RepoStatus:
    current_branch: str
    is_clean: bool
    staged: List[FileChange] = field(default_factory=list)
    unstaged: List[FileChange] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    ahead: int = 0
    behind: int = 0


@dataclass
class BranchInfo:
    name: str
    current: bool
    remote: Optional[str] = None
    local: bool = True


@dataclass
class DiffFileStat:
    path: str
    additions: int
    deletions: int
    status: str


@dataclass
class CommitDiff:
    files: List[DiffFileStat]
    diff: str


def is_git_repo(path: str) -> bool:
    """判断路径是否位于 Git 工作区内"""
    try:
        git.Repo(path, search_parent_directories=True)
        return True
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        return False


def _error_text(error: GitCommandError) -> str:
    """从 GitCommandError 中取出可读的错误信息（优先 stderr）"""
    for raw in (error.stderr, error.stdout):
        text = (raw or "").strip()
        for prefix in ("stderr:", "stdout:"):
            if text.startswith(prefix):
                text = text[len(prefix) :].strip().strip("'").strip()
        if text:
            return text
    return str(error)


def _porcelain_path(raw_path: str) -> str:
    # 重命名记录形如 "old -> new"
    if " -> " in raw_path:
        raw_path = raw_path.split(" -> ", 1)[1]
    return raw_path.strip('"')


class GitManager:
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self.repo: Optional[git.Repo] = None

    def initialize(self) -> bool:
        """初始化 Git 仓库"""
        try:
            self.repo = git.Repo(self.repo_path)
            return True
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            logging.warning("Not a git repository: %s", self.repo_path)
            return False

    def _git(self, *args: str) -> str:
        """执行 git 命令并返回 stdout；失败时抛出 GitOperationError"""
        if not self.repo:
            raise GitOperationError("Repository not initialized.")
        command = " ".join(args)
        try:
            logging.debug("git %s (cwd=%s)", command, self.repo_path)
            return self.repo.git.execute(["git", *args])
        except GitCommandError as e:
            message = _error_text(e)
            logging.error("git %s failed: %s", command, message)
            raise GitOperationError(message, command=command) from e

    # ---- status & branches ----

    def _has_upstream(self) -> bool:
        """当前分支是否配置了上游分支；detached HEAD 没有上游"""
        if self.repo.head.is_detached:
            return False
        return self.repo.active_branch.tracking_branch() is not None

    def get_status(self) -> RepoStatus:
        """获取工作区状态：当前分支、暂存/未暂存/未跟踪文件、ahead/behind"""
        branch = self._git("branch", "--show-current").strip()
        status_output = self._git("status", "--porcelain")

        ahead_behind = "0\t0"
        if self._has_upstream():
            try:
                ahead_behind = self._git("rev-list", "--left-right", "--count", "@{u}...HEAD")
            except GitOperationError:
                # 上游分支已被删除
                pass
        counts = ahead_behind.split()
        behind = int(counts[0]) if len(counts) > 0 else 0
        ahead = int(counts[1]) if len(counts) > 1 else 0

        staged: List[FileChange] = []
        unstaged: List[FileChange] = []
        untracked: List[str] = []

        for line in status_output.splitlines():
            if len(line) < 4:
                continue
            index_status = line[0]
            work_status = line[1]
            file_path = _porcelain_path(line[3:])

            if index_status == "?":
                untracked.append(file_path)
                continue
            if index_status not in (" ", "?"):
                staged.append(FileChange(path=file_path, status=index_status, staged=True))
            if work_status not in (" ", "?"):
                unstaged.append(FileChange(path=file_path, status=work_status, staged=False))

        return RepoStatus(
            current_branch=branch or "HEAD",
            is_clean=not staged and not unstaged and not untracked,
            staged=staged,
            unstaged=unstaged,
            untracked=untracked,
            ahead=ahead,
            behind=behind,
        )

    def get_branches(self) -> List[BranchInfo]:
        """获取本地与远程分支；远程分支在没有同名本地分支时以本地名展示"""
        output = self._git("branch", "-a", "--format=%(refname:short)|%(HEAD)|%(upstream:short)")
        remote_names = {remote.name for remote in self.repo.remotes}
        branches: List[BranchInfo] = []
        seen: set[str] = set()

        for line in output.splitlines():
            if not line.strip():
                continue
            name, head, remote = (line.split("|") + ["", ""])[:3]
            # 跳过 detached HEAD 与 origin/HEAD 之类的符号引用
            if name.startswith("(") or name in remote_names or name.endswith("/HEAD"):
                continue

            if name.startswith(_REMOTE_PREFIX):
                local_name = name[len(_REMOTE_PREFIX) :]
                if local_name not in seen:
                    branches.append(BranchInfo(name=local_name, current=False, remote=name, local=False))
                    seen.add(local_name)
                continue

            if name not in seen:
                branches.append(BranchInfo(name=name, current=head == "*", remote=remote or None))
                seen.add(name)

        return sorted(branches, key=lambda b: (not b.current, b.name.lower()))

    def get_branch_names(self) -> List[str]:
        return [branch.name for branch in self.get_branches()]

    # ---- working tree ----

    def checkout(self, branch: str):
        """切换分支"""
        self._git("checkout", branch)

    def stage_files(self, files: List[str]):
        """暂存文件"""
        if not files:
            return
        self._git("add", "--", *files)

    def unstage_files(self, files: List[str]):
        """取消暂存"""
        if not files:
            return
        self._git("reset", "HEAD", "--", *files)

    def stage_all(self):
        """暂存所有变更"""
        self._git("add", "-A")

    def discard_changes(self, files: List[str]):
        """丢弃工作区的修改"""
        if not files:
            return
        self._git("checkout", "--", *files)

    def commit(self, message: str) -> str:
        """提交暂存区，返回新提交的短哈希"""
        output = self._git("commit", "-m", message)
        return parse_commit_output(output) or self._git("rev-parse", "--short", "HEAD").strip()

    # ---- remotes ----

    def push(self):
        """推送仓库；当前分支没有上游时自动设置 upstream"""
        if not self.repo:
            raise GitOperationError("Repository not initialized.")
        if not self.repo.head.is_detached and not self.repo.active_branch.tracking_branch():
            self._git("push", "--set-upstream", "origin", self.repo.active_branch.name)
        else:
            self._git("push")

    def pull(self) -> str:
        """拉取仓库"""
        return self._git("pull").strip()

    def fetch(self):
        """获取所有远程的更新"""
        self._git("fetch", "--all", "--prune")

    # ---- branches ----

    def create_branch(self, name: str):
        """创建新分支并切换过去"""
        self._git("checkout", "-b", name)

    def delete_branch(self, name: str, force: bool = False):
        """删除本地分支"""
        self._git("branch", "-D" if force else "-d", name)

    def delete_remote_branch(self, name: str):
        """删除远程分支"""
        if name.startswith(_REMOTE_PREFIX):
            name = name[len(_REMOTE_PREFIX) :]
        self._git("push", "origin", "--delete", name)

    def merge(self, branch: str) -> str:
        """合并指定分支到当前分支"""
        return self._git("merge", branch).strip()

    def rebase(self, branch: str) -> str:
        """把当前分支变基到指定分支"""
        return self._git("rebase", branch).strip()

    def abort_merge(self):
        self._git("merge", "--abort")

    def abort_rebase(self):
        self._git("rebase", "--abort")

    # ---- history ----

    def _summary_log(self, *args: str) -> List[dict]:
        output = self._git("log", *args, f"--pretty=format:{SUMMARY_LOG_FORMAT}")
        commits = []
        for line in output.splitlines():
            parts = line.split(FIELD_SEP)
            if len(parts) < 4:
                continue
            commits.append({"hash": parts[0], "message": parts[1], "date": parts[2], "author": parts[3]})
        return commits

    def get_recent_commits(self, limit: int = 10) -> List[dict]:
        """获取最近的提交 (hash, message, date, author)"""
        if not self.repo or not self.repo.head.is_valid():
            return []
        return self._summary_log(f"-{limit}")

    def search_commits(self, query: str, limit: int = 20) -> List[dict]:
        """按提交信息搜索所有分支上的提交（不区分大小写）"""
        return self._summary_log("--all", "-i", f"--grep={query}", f"-{limit}")

    def get_commit_graph(self, limit: int = 100) -> List[CommitRecord]:
        """获取用于绘制提交图的提交记录（拓扑顺序，新的在前）"""
        try:
            output = self._git("log", "--all", "--topo-order", f"-{limit}", f"--pretty=format:{GRAPH_LOG_FORMAT}")
        except GitOperationError:
            if self.repo and not self.repo.head.is_valid():
                # 空仓库，还没有任何提交
                return []
            raise
        return parse_graph_log(output)

    def get_commit_diff(self, commit_hash: str) -> CommitDiff:
        """获取某次提交修改的文件统计与完整 diff"""
        numstat = self._git("show", commit_hash, "--numstat", "--format=")
        diff_output = self._git("show", commit_hash, "--format=", "--no-color")

        files: List[DiffFileStat] = []
        for line in numstat.splitlines():
            parts = line.split("\t", 2)
            if len(parts) != 3:
                continue
            added, deleted, path = parts
            # 二进制文件的增删行数为 "-"
            additions = int(added) if added.isdigit() else 0
            deletions = int(deleted) if deleted.isdigit() else 0
            if additions > 0 and deletions > 0:
                status = "M"
            elif additions > 0:
                status = "A"
            else:
                status = "D"
            files.append(DiffFileStat(path=path.strip(), additions=additions, deletions=deletions, status=status))

        return CommitDiff(files=files, diff=diff_output)

    def get_file_diff(self, path: str, staged: bool = False) -> str:
        """获取单个文件的 diff（暂存区或工作区）"""
        if staged:
            return self._git("diff", "--cached", "--", path)
        return self._git("diff", "--", path)

    def get_repo_name(self) -> str:
        return os.path.basename(os.path.abspath(self.repo_path))


_COMMIT_LINE = re.compile(r"^\[(?P<branch>[^\]\s]+)(?: \(root-commit\))? (?P<hash>[0-9a-f]+)\]")


def parse_commit_output(output: str) -> Optional[str]:
    """从 `git commit` 的输出中解析短哈希，例如 "[main 1a2b3c4] message" """
    match = _COMMIT_LINE.search(output.strip())
    return match.group("hash") if match else None


_DIFF_HEADER = re.compile(r"^diff --git a/(?P<old>.+?) b/(?P<new>.+)$")


def split_diff_by_file(diff: str) -> dict:
    """把多文件的 unified diff 按文件拆开，键为新路径"""
    sections = {}
    current = None
    for line in diff.splitlines(keepends=True):
        match = _DIFF_HEADER.match(line.rstrip("\n"))
        if match:
            current = match.group("new")
            sections[current] = ""
        if current is not None:
            sections[current] += line
    return sections
