"""Allow running as `python -m videomover`."""
import sys

from .cli import main

sys.exit(main())
