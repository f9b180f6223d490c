"""claude-burnrate: usage and cost analytics for Claude Code."""

__version__ = "0.1.0"
