"""Allow ``python -m interview_admin``."""

import sys

from interview_admin.cli import main

sys.exit(main())
