"""
Optional inference backends for pose_kit.

Backends are kept in a separate module so decoding and suppression stay
lightweight and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
