"""Realtime notification infrastructure package."""

from .design_change_notifier import ChannelClosedError, DesignChangeNotifier

__all__ = ["ChannelClosedError", "DesignChangeNotifier"]
