"""ANSI rendering helpers for terminal output.

Only SGR coloring is produced; the engine never parses escape sequences
coming back from child processes, it passes them through untouched.
"""

from __future__ import annotations

import os

RESET = "\x1b[0m"
RED = "\x1b[31m"
BLUE = "\x1b[34m"
BOLD_GREEN = "\x1b[1;32m"
BOLD_CYAN = "\x1b[1;36m"
YELLOW = "\x1b[33m"

NEWLINE = "\r\n"

# Move back, blank the cell, move back again
ERASE = "\b \b"

BANNER = "".join([
    f"{BOLD_CYAN}╭─────────────────────────────────────────────╮{RESET}{NEWLINE}",
    f"{BOLD_CYAN}│           CodeFlow Terminal                 │{RESET}{NEWLINE}",
    f"{BOLD_CYAN}│  Full shell with AI agent integration       │{RESET}{NEWLINE}",
    f"{BOLD_CYAN}╰─────────────────────────────────────────────╯{RESET}{NEWLINE}",
    f"{BOLD_GREEN}Tip: built-ins are cd, pwd and ls; everything else is spawned{RESET}{NEWLINE}",
    f"{YELLOW}Browser automation available via the agent server{RESET}{NEWLINE}{NEWLINE}",
])


def prompt(cwd: str) -> str:
    """Render the prompt for a working directory: basename plus ``$``."""
    name = os.path.basename(cwd.rstrip(os.sep)) or os.sep
    return f"{BOLD_GREEN}{name}{RESET} $ "


def alert(text: str) -> str:
    """Wrap text so it renders in the alert color."""
    return f"{RED}{text}{RESET}"


def error_line(message: str) -> str:
    return alert(message) + NEWLINE


def directory_entry(name: str) -> str:
    return f"{BLUE}{name}/{RESET}"
