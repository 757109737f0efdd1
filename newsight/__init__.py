"""
NewSight — voice-first accessibility dialogue.

A guided setup conversation that tunes display settings by voice, and a
news command session that reads headlines and articles aloud.  Remote
speech, language and news services are optional; every turn completes on
local rules and text when they are degraded.
"""

from newsight.version import NEWSIGHT_CONTRACT, NEWSIGHT_VERSION

__version__ = NEWSIGHT_VERSION

__all__ = ["NEWSIGHT_VERSION", "NEWSIGHT_CONTRACT", "__version__"]
