"""
Main entry point for the court booking desk.
"""

import sys
from courtdesk.cli import main

if __name__ == "__main__":
    sys.exit(main())
