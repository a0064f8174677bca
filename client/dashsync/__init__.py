"""Realtime dashboard synchronisation client for the recruitment platform."""

from dashsync.container import DashsyncContainer, build_container

__all__ = ["DashsyncContainer", "build_container"]
