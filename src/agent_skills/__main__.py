"""Allow ``python -m agent_skills``."""

import sys

from agent_skills.cli import main

sys.exit(main())
