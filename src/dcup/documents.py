"""Enumerate and clean up the editor documents that belong to a session.

Snapshots are recomputed on every call: documents open and close with
user activity, so nothing here is cached.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from dcup.editor import Document, Editor
from dcup.errors import DocumentCleanupError
from dcup.logger import logger
from dcup.types import RemoteAddress


@dataclass
class DocumentFailure:
    """A document that could not be saved or closed."""

    document: Document
    path: str | None
    stage: str  # "save" or "close"
    error: Exception


def _normalize(path: str) -> PurePosixPath:
    # normpath collapses ".." and "."; PurePosixPath alone keeps them
    return PurePosixPath(posixpath.normpath(path))


def is_within(path: str, root: str) -> bool:
    """True when *path* is *root* itself or lies below it."""
    p = _normalize(path)
    r = _normalize(root)
    return p == r or r in p.parents


def local_documents(editor: Editor, root: str) -> set[Document]:
    """Open documents backed by a local path at or under *root*."""
    found: set[Document] = set()
    for doc in editor.documents():
        path = doc.path
        if not path or RemoteAddress.parse(path) is not None:
            continue
        if is_within(path, root):
            found.add(doc)
    return found


def remote_documents(editor: Editor, host: str) -> set[Document]:
    """Open documents backed by a remote address whose host is exactly *host*."""
    found: set[Document] = set()
    for doc in editor.documents():
        path = doc.path
        if not path:
            continue
        address = RemoteAddress.parse(path)
        if address is not None and address.host == host:
            found.add(doc)
    return found


def save_and_close(docs: Iterable[Document]) -> list[DocumentFailure]:
    """Save then close every document, collecting failures instead of stopping.

    A document that fails to save is left open so its changes are not lost.
    """
    failures: list[DocumentFailure] = []
    closed = 0
    for doc in docs:
        path = doc.path
        stage = "save"
        try:
            doc.save()
            stage = "close"
            doc.close()
        except Exception as exc:
            logger.warning("Document cleanup failed", path=path, stage=stage, err=str(exc))
            failures.append(DocumentFailure(document=doc, path=path, stage=stage, error=exc))
        else:
            closed += 1
    logger.info("Documents closed", closed=closed, failed=len(failures))
    return failures


def raise_for_failures(failures: list[DocumentFailure]) -> None:
    if failures:
        raise DocumentCleanupError(failures)
