"""Convenience entry point to run the confseal TUI.

Allows starting the application with `python main.py [records.json]` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import confseal` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from confseal.frontend.cli.commands import main as cli_main


def main() -> int:
    """Run the confseal Textual application."""
    return cli_main(["tui", *sys.argv[1:]])


if __name__ == "__main__":
    sys.exit(main())
