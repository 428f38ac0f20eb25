from .formatter import (
    FormattedOutput,
    RelayedFile,
    ResultFormatter,
    chunk_lines,
    natural_key,
)
from .media import MediaRelay, StagedFile, UploadRequest
from .workspace import Workspace, WorkspaceManager

__all__ = [
    "FormattedOutput",
    "RelayedFile",
    "ResultFormatter",
    "chunk_lines",
    "natural_key",
    "MediaRelay",
    "StagedFile",
    "UploadRequest",
    "Workspace",
    "WorkspaceManager",
]
