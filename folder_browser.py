"""
文件夹浏览 - 列出目录下的子文件夹并标记哪些是 Git 仓库，供选择仓库使用
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from git_manager import is_git_repo


@dataclass
class FolderEntry:
    name: str
    path: str
    is_git_repo: bool


@dataclass
class BrowseResult:
    current: str
    parent: str
    folders: List[FolderEntry] = field(default_factory=list)


def expand_path(path: Optional[str]) -> str:
    """空路径返回用户主目录，"~" 开头的路径展开"""
    if not path:
        return os.path.expanduser("~")
    if path.startswith("~"):
        return os.path.expanduser(path)
    return path


def list_folders(path: Optional[str] = None) -> BrowseResult:
    """
    列出 path 下的子文件夹（跳过隐藏和无法访问的文件夹）。
    Git 仓库排在前面，其余按名称排序。
    目录不存在时抛出 FileNotFoundError。
    """
    directory = expand_path(path)
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Directory not found: {directory}")

    folders: List[FolderEntry] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if not entry.is_dir():
                    continue
                full_path = os.path.join(directory, entry.name)
                os.stat(full_path)
                folders.append(
                    FolderEntry(
                        name=entry.name,
                        path=full_path,
                        is_git_repo=is_git_repo(full_path),
                    )
                )
            except OSError:
                logging.debug("Skipping inaccessible folder %s", entry.path)

    folders.sort(key=lambda f: (not f.is_git_repo, f.name.lower()))
    return BrowseResult(current=directory, parent=os.path.dirname(directory.rstrip(os.sep)) or directory, folders=folders)
