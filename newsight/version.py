"""Canonical version string for the NewSight voice stack.

Usage:
    from newsight.version import NEWSIGHT_VERSION, NEWSIGHT_CONTRACT
    app = FastAPI(..., version=NEWSIGHT_VERSION)
"""

NEWSIGHT_VERSION = "1.0.0"
NEWSIGHT_CONTRACT = "v1.0.0"  # wire contract of the gateway endpoints
