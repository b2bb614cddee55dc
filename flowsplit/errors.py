# flowsplit/errors.py
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class FlowsplitError(Exception):
    """Base class for every error surfaced to the CLI as a one-line message."""


class InvalidWorkflow(FlowsplitError):
    """Workflow document is missing a `nodes` list or is otherwise malformed."""


class InvalidNode(FlowsplitError):
    """Node lacks `parameters` where they are required."""


class MissingManifest(FlowsplitError):
    def __init__(self, folder: Union[str, Path]):
        self.folder = Path(folder)
        super().__init__(f"No workflow.json manifest in {self.folder}")


class ParseError(FlowsplitError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot parse {self.path}: {reason}")


class DuplicateNodeIndex(FlowsplitError):
    def __init__(self, index: int, first: Union[str, Path], second: Union[str, Path]):
        self.index = index
        self.files = (Path(first), Path(second))
        super().__init__(
            f"Node index {index} is claimed by both {Path(first).name} and {Path(second).name}"
        )


class RemoteApiError(FlowsplitError):
    """Transport or HTTP failure talking to the workflow store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"n8n API error: {message}")
