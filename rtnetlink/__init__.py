"""Manage Linux network links and IP addresses over rtnetlink with asyncio."""

__version__ = "0.12.0"