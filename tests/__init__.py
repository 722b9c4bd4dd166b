"""
Test suite for the tierpark parking lot.

unit/        - spots, floors, the lot aggregate, service, commands, messaging
integration/ - end-to-end scenarios, concurrency and the terminal
"""

import sys
from pathlib import Path

# Make the src layout importable without an editable install
SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
