"""Shipnotes - release notes builder for GitHub and GitLab repositories."""

__version__ = "0.3.0"
