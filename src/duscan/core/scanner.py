"""Parallel directory traversal that builds a size-aggregated tree."""

from __future__ import annotations

import logging
import os
import stat
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator

from duscan.core.stats import ScanStats
from duscan.models.tree import TreeNode

log = logging.getLogger(__name__)

DEFAULT_MAX_CHILDREN = 100

# Each nested directory costs a handful of Python frames, so stay well
# below the interpreter's recursion limit before switching to a loop.
DEFAULT_MAX_RECURSION_DEPTH = 128


def default_workers() -> int:
    """Worker count used when none is given (same rule as ThreadPoolExecutor)."""
    return min(32, (os.cpu_count() or 1) + 4)


class ScanError(Exception):
    """Raised when the metadata of a scanned path cannot be read."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"{path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


@dataclass(slots=True)
class _Frame:
    """A directory whose children are still being walked iteratively."""

    path: str
    pending: Iterator[str]
    children: list[TreeNode] = field(default_factory=list)


@dataclass(slots=True)
class _Pool:
    """Thread pool of one scan and the number of its idle workers."""

    executor: ThreadPoolExecutor
    idle: threading.BoundedSemaphore


class ScanEngine:
    """Walks a directory tree and aggregates sizes bottom-up.

    Sibling entries are scanned concurrently on a thread pool.  A child
    is handed to the pool only while a worker is idle; otherwise the
    current thread scans it inline.  A directory waiting for its children
    therefore only ever waits on tasks that are already running.

    Each call to :meth:`scan` gets its own pool, so one engine may run
    several scans at once.  They share ``stats``.
    """

    def __init__(
        self,
        stats: ScanStats,
        max_children: int | None = DEFAULT_MAX_CHILDREN,
        workers: int | None = None,
        follow_symlinks: bool = False,
        max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH,
    ) -> None:
        if max_children is not None and max_children < 0:
            raise ValueError(f"max_children must be >= 0, got {max_children}")
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        if max_recursion_depth < 1:
            raise ValueError(f"max_recursion_depth must be >= 1, got {max_recursion_depth}")

        self.stats = stats
        self.max_children = max_children
        self.workers = workers or default_workers()
        self.follow_symlinks = follow_symlinks
        self.max_recursion_depth = max_recursion_depth

    def scan(self, path: str | os.PathLike[str]) -> TreeNode:
        """Scan *path* and return its fully aggregated, pruned tree.

        Raises:
            ScanError: If the metadata of *path* itself cannot be read.
                Every failure below the root is counted in ``stats``,
                logged and skipped instead.
        """
        root = os.fspath(path)
        log.info("Scanning %s with %d worker(s)", root, self.workers)

        if self.workers == 1:
            node = self._scan_path(root, 0, None)
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="duscan") as executor:
                pool = _Pool(executor, threading.BoundedSemaphore(self.workers))
                node = self._scan_path(root, 0, pool)

        log.debug("Finished %s: %r", root, self.stats)
        return node

    def _stat(self, path: str, follow: bool = False) -> os.stat_result:
        try:
            if follow or self.follow_symlinks:
                return os.stat(path)
            st = os.lstat(path)
        except OSError as exc:
            raise ScanError(path, exc) from exc

        if stat.S_ISLNK(st.st_mode):
            # Unfollowed links stay leaves, sized by their target when it
            # is a file.  Dangling links and links to directories keep
            # their own metadata.
            try:
                target = os.stat(path)
            except OSError:
                return st
            if not stat.S_ISDIR(target.st_mode):
                return target
        return st

    def _scan_path(self, path: str, depth: int, pool: _Pool | None) -> TreeNode:
        # The root itself is always resolved, like `du -H`.
        st = self._stat(path, follow=depth == 0)

        if not stat.S_ISDIR(st.st_mode):
            self.stats.add_file()
            return TreeNode.file(path, st.st_size)

        self.stats.add_dir()
        if depth >= self.max_recursion_depth:
            return self._walk_iterative(path)

        children = self._scan_children(self._list_dir(path), depth + 1, pool)
        return TreeNode.directory(path, children, self.max_children)

    def _list_dir(self, path: str) -> list[str]:
        """Return the paths of the immediate entries of *path*.

        A directory that cannot be opened yields no entries.  An error
        while iterating keeps whatever was listed before it.
        """
        try:
            it = os.scandir(path)
        except OSError as exc:
            self.stats.add_error()
            log.warning("Error reading directory %s: %s", path, exc)
            return []

        paths: list[str] = []
        with it:
            while True:
                try:
                    entry = next(it)
                except StopIteration:
                    break
                except OSError as exc:
                    self.stats.add_error()
                    log.warning("Error accessing directory entry in %s: %s", path, exc)
                    break
                paths.append(entry.path)
        return paths

    def _scan_children(self, paths: list[str], depth: int, pool: _Pool | None) -> list[TreeNode]:
        """Scan sibling entries, fanning out to idle workers when possible."""
        children: list[TreeNode] = []
        futures: list[Future[TreeNode | None]] = []

        for child_path in paths:
            if pool is not None and pool.idle.acquire(blocking=False):
                futures.append(pool.executor.submit(self._pooled_child, child_path, depth, pool))
                continue
            child = self._scan_child(child_path, depth, pool)
            if child is not None:
                children.append(child)

        for future in futures:
            child = future.result()
            if child is not None:
                children.append(child)
        return children

    def _pooled_child(self, path: str, depth: int, pool: _Pool) -> TreeNode | None:
        try:
            return self._scan_child(path, depth, pool)
        finally:
            pool.idle.release()

    def _scan_child(self, path: str, depth: int, pool: _Pool | None) -> TreeNode | None:
        try:
            return self._scan_path(path, depth, pool)
        except ScanError as exc:
            self._record_failure(exc)
            return None

    def _record_failure(self, exc: ScanError) -> None:
        self.stats.add_error()
        log.warning("Error scanning %s: %s", exc.path, exc.cause)

    def _walk_iterative(self, path: str) -> TreeNode:
        """Walk the subtree under *path* with an explicit stack.

        Used past ``max_recursion_depth``.  *path* must already be known
        to be a directory and already counted in ``stats``.
        """
        stack = [_Frame(path, iter(self._list_dir(path)))]
        while True:
            frame = stack[-1]
            child_path = next(frame.pending, None)

            if child_path is None:
                stack.pop()
                node = TreeNode.directory(frame.path, frame.children, self.max_children)
                if not stack:
                    return node
                stack[-1].children.append(node)
                continue

            try:
                st = self._stat(child_path)
            except ScanError as exc:
                self._record_failure(exc)
                continue

            if stat.S_ISDIR(st.st_mode):
                self.stats.add_dir()
                stack.append(_Frame(child_path, iter(self._list_dir(child_path))))
            else:
                self.stats.add_file()
                frame.children.append(TreeNode.file(child_path, st.st_size))


def scan(
    path: str | os.PathLike[str],
    stats: ScanStats,
    max_children: int | None = DEFAULT_MAX_CHILDREN,
    *,
    workers: int | None = None,
    follow_symlinks: bool = False,
    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH,
) -> TreeNode:
    """Scan *path* and return its size-aggregated tree.

    Args:
        path: File or directory to scan.
        stats: Counters updated while the scan runs.
        max_children: Children kept per directory; the rest are folded
            into ``other_count``/``other_size``.  ``None`` keeps all.
        workers: Thread pool size.  ``1`` scans on the calling thread.
        follow_symlinks: Follow symbolic links instead of reporting them
            as leaves.
        max_recursion_depth: Depth past which subtrees are walked
            iteratively on a single thread.

    Raises:
        ScanError: If *path* itself cannot be stat'ed.
    """
    engine = ScanEngine(
        stats,
        max_children=max_children,
        workers=workers,
        follow_symlinks=follow_symlinks,
        max_recursion_depth=max_recursion_depth,
    )
    return engine.scan(path)
