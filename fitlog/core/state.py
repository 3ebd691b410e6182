"""Runtime state container for CLI context."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from rich.console import Console


@dataclass
class CLIState:
    """Per-invocation CLI flags plus the loaded configuration."""

    json_output: bool
    plain_output: bool
    verbose: bool
    quiet: bool
    config_path: Path
    config: Dict[str, Any]
    console: Console

    def setting(self, section: str, key: str, default: Any = None) -> Any:
        """Read one value from a config section, falling back to ``default``."""
        value = self.config.get(section, {}).get(key)
        return default if value is None else value
