"""Exception types for frame tree construction and queries.

Structural errors (``NoRoot``, ``MultipleRoots``, ``CycleDetected``,
``MalformedEdge``) are raised by ``build`` and returned as values by
``validate``. ``UnknownFrame`` is raised per query and leaves the tree
usable. ``DegenerateRotation`` flags a quaternion that cannot be normalized.
"""

from typing import Iterable, Optional, Tuple


class TreeError(ValueError):
    """Base exception for all frame tree errors.

    Errors of the same type with the same fields compare equal, which keeps
    the output of ``validate`` easy to inspect.
    """

    def _key(self) -> Tuple:
        return ()

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash((type(self), self._key()))


class NoRoot(TreeError):
    """No frame qualifies as the root of the tree."""

    def __init__(self):
        super().__init__("frame tree has no root frame")


class MultipleRoots(TreeError):
    """More than one frame has no parent: the snapshot is a forest."""

    def __init__(self, names: Iterable[str]):
        self.names = tuple(sorted(names))
        super().__init__(f"frame tree has multiple roots: {list(self.names)}")

    def _key(self):
        return self.names


class CycleDetected(TreeError):
    """Walking parents from ``frame`` never reaches a root."""

    def __init__(self, frame: str):
        self.frame = frame
        super().__init__(f"cycle detected walking parents from frame '{frame}'")

    def _key(self):
        return (self.frame,)


class MalformedEdge(TreeError):
    """The edge stored under ``frame`` is unusable."""

    def __init__(self, frame: str, reason: str = "empty parent frame name"):
        self.frame = frame
        self.reason = reason
        super().__init__(f"malformed edge for frame '{frame}': {reason}")

    def _key(self):
        return (self.frame, self.reason)


class DegenerateRotation(TreeError):
    """A rotation quaternion has (near) zero norm and cannot be normalized."""

    def __init__(self, frame: Optional[str] = None):
        self.frame = frame
        where = f" for frame '{frame}'" if frame is not None else ""
        super().__init__(f"degenerate rotation quaternion{where}")

    def _key(self):
        return (self.frame,)


class UnknownFrame(TreeError, LookupError):
    """A queried frame name is not part of the tree."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"frame '{name}' not found in frame tree")

    def _key(self):
        return (self.name,)


__all__ = [
    "TreeError",
    "NoRoot",
    "MultipleRoots",
    "CycleDetected",
    "MalformedEdge",
    "DegenerateRotation",
    "UnknownFrame",
]
