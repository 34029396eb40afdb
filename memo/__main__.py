"""
Allow ``python -m memo``.

Author: memo contributors
"""

import sys

from memo.cli import main

sys.exit(main())
