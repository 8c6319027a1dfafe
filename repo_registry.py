"""
仓库列表 - 持久化用户跟踪的本地 Git 工作区（添加/删除/收藏/排序）
"""

import json
import logging
import os
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from git_manager import is_git_repo

# 没有设置顺序的仓库排在最后
DEFAULT_ORDER = 999


class RepoRegistryError(Exception):
    """仓库列表操作失败（路径无效、重复添加等）"""


@dataclass
class Repo:
    id: str
    name: str
    path: str
    added_at: str
    favorite: bool = False
    order: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Repo":
        return cls(
            id=data["id"],
            name=data.get("name") or os.path.basename(data["path"]),
            path=data["path"],
            added_at=data.get("added_at") or data.get("addedAt", ""),
            favorite=bool(data.get("favorite", False)),
            order=data.get("order"),
        )


@dataclass
class RepoRegistry:
    """基于 JSON 文件的仓库记录存储，每次操作都重新读取文件"""

    repos_file: str
    validator: Callable[[str], bool] = field(default=is_git_repo)

    def _ensure_dir(self):
        directory = os.path.dirname(self.repos_file)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

    def get_repos(self) -> List[Repo]:
        """读取全部仓库；文件不存在或损坏时返回空列表"""
        self._ensure_dir()
        if not os.path.exists(self.repos_file):
            return []
        try:
            with open(self.repos_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [Repo.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError):
            logging.exception("读取仓库列表失败：%s", self.repos_file)
            return []

    def save_repos(self, repos: List[Repo]):
        self._ensure_dir()
        with open(self.repos_file, "w", encoding="utf-8") as f:
            json.dump([asdict(repo) for repo in repos], f, ensure_ascii=False, indent=2)

    def add_repo(self, path: str) -> Repo:
        """添加仓库；路径必须是 Git 仓库且不能重复"""
        if not path or not path.strip():
            raise RepoRegistryError("Path is required")
        path = os.path.abspath(os.path.expanduser(path.strip()))
        if not self.validator(path):
            raise RepoRegistryError("Not a valid git repository")

        repos = self.get_repos()
        if any(repo.path == path for repo in repos):
            raise RepoRegistryError("Repository already added")

        new_repo = Repo(
            id=str(uuid.uuid4()),
            name=os.path.basename(path.rstrip(os.sep)) or path,
            path=path,
            added_at=datetime.now(timezone.utc).isoformat(),
        )
        repos.append(new_repo)
        self.save_repos(repos)
        logging.info("Added repository %s (%s)", new_repo.name, new_repo.path)
        return new_repo

    def remove_repo(self, repo_id: str):
        repos = self.get_repos()
        self.save_repos([repo for repo in repos if repo.id != repo_id])

    def get_repo_by_id(self, repo_id: str) -> Optional[Repo]:
        return next((repo for repo in self.get_repos() if repo.id == repo_id), None)

    def toggle_favorite(self, repo_id: str) -> Optional[Repo]:
        """切换收藏状态，返回更新后的仓库（找不到时返回 None）"""
        repos = self.get_repos()
        repo = next((r for r in repos if r.id == repo_id), None)
        if repo:
            repo.favorite = not repo.favorite
            self.save_repos(repos)
        return repo

    def reorder_repos(self, ordered_ids: List[str]):
        """按传入的 id 顺序设置 order；未知 id 忽略"""
        repos = self.get_repos()
        by_id = {repo.id: repo for repo in repos}
        for index, repo_id in enumerate(ordered_ids):
            if repo_id in by_id:
                by_id[repo_id].order = index
        self.save_repos(repos)

    def get_sorted_repos(self) -> List[Repo]:
        """收藏的在前，然后按 order 排序"""
        repos = self.get_repos()
        return sorted(
            repos,
            key=lambda r: (not r.favorite, r.order if r.order is not None else DEFAULT_ORDER),
        )
