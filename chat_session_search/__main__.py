"""Allow running as ``python -m chat_session_search``."""

from __future__ import annotations

import sys

from chat_session_search.cli import main

if __name__ == "__main__":
    sys.exit(main())
