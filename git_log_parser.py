# git_log_parser.py

import logging

from git_graph_data import CommitRecord

# Delimiters for parsing git log output
FIELD_SEP = "\x01"
ENTRY_SEP = "\x02"

# Git log format string
# %H: commit hash
# %h: abbreviated hash
# %s: subject
# %an: author name
# %ar: author date, relative
# %P: parent hashes (space separated)
# %D: decorations without the surrounding parentheses
GRAPH_LOG_FORMAT = FIELD_SEP.join(["%H", "%h", "%s", "%an", "%ar", "%P", "%D"]) + ENTRY_SEP

_FIELD_COUNT = 7


def parse_decorations(raw_refs: str) -> tuple[list[str], list[str], bool]:
    """
    Splits a %D decoration string into (branches, tags, is_head).

    Example: "HEAD -> main, tag: v1.1, origin/main, origin/HEAD"
    Output: (['main'], ['v1.1'], True)

    Remote branches lose their "origin/" prefix so they merge with the local
    branch of the same name; duplicates keep their first position. Symbolic
    refs such as origin/HEAD are dropped and do not mark the commit as HEAD.
    """
    branches: list[str] = []
    tags: list[str] = []
    is_head = False

    raw_refs = raw_refs.strip()
    if not raw_refs:
        return branches, tags, is_head

    for ref in raw_refs.split(", "):
        ref = ref.strip()
        if not ref:
            continue
        if ref == "HEAD" or ref.startswith("HEAD -> "):
            is_head = True
        if ref.startswith("tag: "):
            tags.append(ref[len("tag: ") :])
        elif "HEAD -> " in ref:
            branches.append(ref.replace("HEAD -> ", ""))
        elif ref != "HEAD" and not ref.endswith("/HEAD"):
            branches.append(ref.replace("origin/", "", 1))

    return list(dict.fromkeys(branches)), tags, is_head


def parse_graph_log(log_output: str) -> list[CommitRecord]:
    """
    Parses `git log --pretty=format:GRAPH_LOG_FORMAT` output into CommitRecords,
    keeping the order git printed them in.
    """
    commits: list[CommitRecord] = []
    if not log_output.strip():
        return commits

    for entry in log_output.split(ENTRY_SEP):
        entry = entry.strip("\n")
        if not entry.strip():
            continue

        parts = entry.split(FIELD_SEP)
        if len(parts) < _FIELD_COUNT:
            logging.debug("Skipping malformed log entry: %r", entry)
            continue

        sha, short_sha, subject, author, date, parents_str, raw_refs = parts[:_FIELD_COUNT]
        branches, tags, is_head = parse_decorations(raw_refs)

        commits.append(
            CommitRecord(
                hash=sha.strip(),
                short_hash=short_sha,
                message=subject,
                author=author,
                date=date,
                parents=tuple(parents_str.split()),
                branches=tuple(branches),
                tags=tuple(tags),
                is_head=is_head,
            )
        )

    return commits
