"""Publish VRChat Package Manager (VPM) packages to GitHub."""

__version__ = "0.1.0"
