"""Reference frame tree.

A :class:`Frame` knows its parent and how to compute the transform from
the parent to itself at an epoch.  Transforms between any two frames of
the same tree are composed through their closest common ancestor.

A frame is *pseudo-inertial* when it may be used to define an orbit (no
rotation rate with respect to inertial space beyond slow precession and
nutation).  Covariance conversions use this flag to choose between a pure
rotation and the full Jacobian including rotation-rate coupling.
"""

from __future__ import annotations

import logging
from typing import Callable

from covjax.epoch import Epoch
from covjax.frames._transform import Transform

logger = logging.getLogger(__name__)


class Frame:
    """Node of the reference frame tree.

    Frames are compared by identity.

    Args:
        name (str): Frame name.
        parent (Frame | None): Parent frame, ``None`` for the root.
        provider (Callable[[Epoch], Transform] | None): Function returning
            the transform from the parent frame to this frame. Required for
            every frame except the root.
        pseudo_inertial (bool): Whether the frame can define orbits.
    """

    __slots__ = ('name', 'parent', '_provider', 'pseudo_inertial', 'depth')

    def __init__(self, name: str, parent: Frame | None = None,
                 provider: Callable[[Epoch], Transform] | None = None,
                 pseudo_inertial: bool = True) -> None:
        if (parent is None) != (provider is None):
            raise ValueError("A frame needs both a parent and a transform provider, or neither")
        self.name = name
        self.parent = parent
        self._provider = provider
        self.pseudo_inertial = pseudo_inertial
        self.depth = 0 if parent is None else parent.depth + 1

    def __repr__(self):
        return f'Frame({self.name})'

    def __str__(self):
        return self.name

    def _transform_from_ancestor(self, ancestor: Frame, epoch: Epoch) -> Transform:
        transform = Transform.identity()
        chain = []
        frame = self
        while frame is not ancestor:
            chain.append(frame)
            frame = frame.parent
        for frame in reversed(chain):
            transform = transform.compose(frame._provider(epoch))
        return transform

    def _common_ancestor(self, other: Frame) -> Frame:
        a, b = self, other
        while a.depth > b.depth:
            a = a.parent
        while b.depth > a.depth:
            b = b.parent
        while a is not b:
            a, b = a.parent, b.parent
            if a is None or b is None:
                raise ValueError(f"Frames {self} and {other} belong to different trees")
        return a

    def transform_to(self, other: Frame, epoch: Epoch) -> Transform:
        """Transform mapping coordinates in this frame to ``other``.

        Args:
            other (Frame): Destination frame.
            epoch (Epoch): Evaluation epoch.

        Returns:
            Transform: Kinematic transform from ``self`` to ``other``.
        """
        if other is self:
            return Transform.identity()
        ancestor = self._common_ancestor(other)
        logger.debug("Transform %s -> %s through %s", self, other, ancestor)
        up = self._transform_from_ancestor(ancestor, epoch).inverse()
        down = other._transform_from_ancestor(ancestor, epoch)
        return up.compose(down)
