"""shellmate module entry point."""

from __future__ import annotations

from shellmate.cli.app import main

if __name__ == "__main__":
    main()
