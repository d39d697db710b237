"""
Common utilities for backend scripts.

This module sets up the Python path for script execution and configures
logging. Import this module at the top of any script that needs to import
from the backend package.

Usage:
    import scripts._common  # noqa: F401
    # Now you can import from db, models, repositories, etc.
"""

import sys
from pathlib import Path

# Add backend root to path for imports when run as a module (python -m scripts.foo)
# from somewhere other than the backend root
BACKEND_ROOT = Path(__file__).parent.parent
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from core.config import settings  # noqa: E402
from core.logging import configure_logging  # noqa: E402

configure_logging(settings.APP_ENV, settings.DEBUG)
