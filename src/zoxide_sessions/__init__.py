"""
Zoxide Session Picker

Jump to, or create, a Zellij session rooted at a frequently-visited directory.
Directories come ranked from zoxide; live and resurrectable sessions come from
Zellij. Both are merged into one list searchable with fuzzy matching.

Configuration: ~/.config/zoxide-sessions/config.toml
"""

__version__ = "1.0.0"
