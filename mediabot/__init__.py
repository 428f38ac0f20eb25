"""
Top-level package for the Discord media upload bot.

This package hosts:
- config loading and validation
- the upload relay (workspaces, media relay, result formatting)
- the HTTP server the web uploader posts to
- Discord client and slash commands (including the YouTube playlist importer)
"""

__version__ = "1.0.0"
