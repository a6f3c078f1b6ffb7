"""``python -m scripts``: load the demo survey, its reviewers and records.

Same as ``python -m scripts.seed``. Safe to re-run; a seeded database is
left as it is.
"""

import asyncio

from scripts.seed import _run_seed

if __name__ == "__main__":
    asyncio.run(_run_seed())
