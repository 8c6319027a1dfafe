"""
仓库操作分发 - 按名称执行 Git 操作，统一返回成功/失败信息，不向调用方抛出异常
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from git_manager import GitManager, GitOperationError


@dataclass
class ActionResult:
    success: bool
    message: str
    payload: Any = None


class ActionValidationError(Exception):
    """操作参数不合法"""


def _required(data: dict, key: str, error_message: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ActionValidationError(error_message)
    return value.strip()


def _checkout(manager: GitManager, data: dict) -> ActionResult:
    branch = _required(data, "branch", "Branch name is required")
    manager.checkout(branch)
    return ActionResult(True, f"Switched to {branch}")


def _stage(manager: GitManager, data: dict) -> ActionResult:
    if data.get("all"):
        manager.stage_all()
    else:
        manager.stage_files(list(data.get("files") or []))
    return ActionResult(True, "Files staged")


def _unstage(manager: GitManager, data: dict) -> ActionResult:
    manager.unstage_files(list(data.get("files") or []))
    return ActionResult(True, "Files unstaged")


def _commit(manager: GitManager, data: dict) -> ActionResult:
    message = _required(data, "message", "Commit message is required")
    commit_hash = manager.commit(message)
    return ActionResult(True, f"Committed: {commit_hash}", payload=commit_hash)


def _push(manager: GitManager, data: dict) -> ActionResult:
    manager.push()
    return ActionResult(True, "Pushed to remote")


def _pull(manager: GitManager, data: dict) -> ActionResult:
    output = manager.pull()
    return ActionResult(True, output or "Already up to date")


def _fetch(manager: GitManager, data: dict) -> ActionResult:
    manager.fetch()
    return ActionResult(True, "Fetched from remote")


def _discard(manager: GitManager, data: dict) -> ActionResult:
    manager.discard_changes(list(data.get("files") or []))
    return ActionResult(True, "Changes discarded")


def _create_branch(manager: GitManager, data: dict) -> ActionResult:
    name = _required(data, "name", "Branch name is required")
    manager.create_branch(name)
    return ActionResult(True, f"Created and switched to {name}")


def _merge(manager: GitManager, data: dict) -> ActionResult:
    branch = _required(data, "branch", "Branch name is required")
    output = manager.merge(branch)
    return ActionResult(True, output or f"Merged {branch}")


def _rebase(manager: GitManager, data: dict) -> ActionResult:
    branch = _required(data, "branch", "Branch name is required")
    output = manager.rebase(branch)
    return ActionResult(True, output or f"Rebased onto {branch}")


def _abort_merge(manager: GitManager, data: dict) -> ActionResult:
    manager.abort_merge()
    return ActionResult(True, "Merge aborted")


def _abort_rebase(manager: GitManager, data: dict) -> ActionResult:
    manager.abort_rebase()
    return ActionResult(True, "Rebase aborted")


def _delete_branch(manager: GitManager, data: dict) -> ActionResult:
    branch = _required(data, "branch", "Branch name is required")
    manager.delete_branch(branch, force=bool(data.get("force")))
    return ActionResult(True, f"Deleted branch {branch}")


def _delete_remote_branch(manager: GitManager, data: dict) -> ActionResult:
    branch = _required(data, "branch", "Branch name is required")
    manager.delete_remote_branch(branch)
    return ActionResult(True, f"Deleted remote branch {branch}")


def _search_commits(manager: GitManager, data: dict) -> ActionResult:
    query = _required(data, "query", "Search query is required")
    results = manager.search_commits(query, int(data.get("limit") or 20))
    return ActionResult(True, f"{len(results)} commits found", payload=results)


def _get_file_diff(manager: GitManager, data: dict) -> ActionResult:
    path = _required(data, "path", "File path is required")
    diff = manager.get_file_diff(path, bool(data.get("staged", False)))
    return ActionResult(True, "", payload=diff)


ACTIONS: dict[str, Callable[[GitManager, dict], ActionResult]] = {
    "checkout": _checkout,
    "stage": _stage,
    "unstage": _unstage,
    "commit": _commit,
    "push": _push,
    "pull": _pull,
    "fetch": _fetch,
    "discard": _discard,
    "create-branch": _create_branch,
    "merge": _merge,
    "rebase": _rebase,
    "abort-merge": _abort_merge,
    "abort-rebase": _abort_rebase,
    "delete-branch": _delete_branch,
    "delete-remote-branch": _delete_remote_branch,
    "search-commits": _search_commits,
    "get-file-diff": _get_file_diff,
}


def dispatch_action(manager: Optional[GitManager], action: str, **data) -> ActionResult:
    """执行名为 action 的操作。

    参数：
        manager: 已初始化的 GitManager
        action: 操作名称，见 ACTIONS
        data: 操作参数（branch, files, message, name, query, path ...）

    返回：
        ActionResult；失败时 success 为 False，message 为错误信息
    """
    handler = ACTIONS.get(action)
    if handler is None:
        logging.warning("Unknown action: %s", action)
        return ActionResult(False, f"Unknown action: {action}")
    if manager is None or manager.repo is None:
        return ActionResult(False, "Repository not found")

    try:
        result = handler(manager, data)
    except ActionValidationError as e:
        logging.info("Action %s rejected: %s", action, e)
        return ActionResult(False, str(e))
    except GitOperationError as e:
        logging.error("Action %s failed: %s", action, e.message)
        return ActionResult(False, e.message)

    logging.info("Action %s on %s: %s", action, manager.repo_path, result.message)
    return result
