"""
Context about the user's machine that is handed to the model along with the
command description: OS details, the working directory listing and, when
enabled, the most recent shell history.
"""

import os
import platform
import subprocess
import sys

from typing import List, Tuple

from loguru import logger

from .config import ContextConfig


LISTING_UNAVAILABLE = "Unable to get directory listing"


def _memory_mb() -> Tuple[str, str]:
    """Returns (total, free) physical memory in MB, or "unknown" for each."""
    try:
        page_size = os.sysconf("SC_PAGE_SIZE")
        total = os.sysconf("SC_PHYS_PAGES") * page_size
    except (AttributeError, ValueError, OSError):
        return "unknown", "unknown"

    try:
        free = str(round(os.sysconf("SC_AVPHYS_PAGES") * page_size / 1024 / 1024))
    except (ValueError, OSError):
        free = "unknown"

    return str(round(total / 1024 / 1024)), free


def get_environment_context() -> str:
    total_memory, free_memory = _memory_mb()
    cpu = platform.processor() or platform.machine() or "unknown"

    return f"""
Operating System: {platform.system()} {platform.release()} ({sys.platform} - {platform.machine()})
Python Version: {platform.python_version()}
Shell: {os.getenv("SHELL") or "unknown"}
Current Working Directory: {os.getcwd()}
Home Directory: {os.path.expanduser("~")}
CPU Info: {cpu} ({os.cpu_count() or 1} cores)
Total Memory: {total_memory} MB
Free Memory: {free_memory} MB
"""


def get_directory_listing() -> Tuple[str, str]:
    """
    Lists the current directory the way the user's shell would.

    Returns:
        A `(command, output)` tuple. `command` is the listing command shown to
        the model (`ls` or `dir /b`).
    """
    if sys.platform == "win32":
        list_command = "dir /b"
        argv = ["cmd", "/c", "dir", "/b"]
    else:
        list_command = "ls"
        argv = ["ls"]

    try:
        result = subprocess.run(argv, capture_output=True, text=True, check=True)
        return list_command, result.stdout
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("Directory listing failed: {}", e)
        return list_command, LISTING_UNAVAILABLE


def get_history_file() -> str:
    histfile = os.getenv("HISTFILE")
    if histfile:
        return os.path.expanduser(histfile)

    home = os.path.expanduser("~")
    if os.path.basename(os.getenv("SHELL", "")) == "zsh":
        return os.path.join(home, ".zsh_history")
    return os.path.join(home, ".bash_history")


def parse_history_line(line: str) -> str:
    # zsh extended history: ": 1700000000:0;git status"
    if line.startswith(": ") and ";" in line:
        metadata, command = line.split(";", 1)
        if metadata[2:].split(":")[0].isdigit():
            return command.strip()
    return line.strip()


def read_recent_commands(history_file: str, limit: int) -> List[str]:
    if limit <= 0:
        return []

    with open(history_file, "r", encoding="utf-8", errors="replace") as f:
        raw_lines = f.read().splitlines()

    commands = []
    for raw_line in raw_lines:
        # bash HISTTIMEFORMAT timestamps
        if raw_line.startswith("#") and raw_line[1:].isdigit():
            continue
        command = parse_history_line(raw_line)
        if command:
            commands.append(command)

    return commands[-limit:]


def build_context_history(context_config: ContextConfig) -> str:
    if not context_config.enabled:
        return ""

    history_file = get_history_file()
    try:
        commands = read_recent_commands(
            history_file, context_config.max_history_commands
        )
    except OSError as e:
        logger.warning("Could not read shell history from {}: {}", history_file, e)
        return ""

    if not commands:
        return ""

    history = "\n".join(commands)
    return f"""
--- RECENT COMMAND HISTORY ---
{history}
--- END RECENT COMMAND HISTORY ---
"""
