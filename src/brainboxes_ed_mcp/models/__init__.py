"""Data models for device parameters and line states."""

from .device import DeviceInfo, LineStates
