"""Module entry point: ``python -m xconvert``."""
import sys

from xconvert.app import main

sys.exit(main())
