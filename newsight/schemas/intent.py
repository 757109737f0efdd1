"""
Classification wire schemas.

Request:  {utterance, label_set, context}
Response: {label, parameter?}
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class IntentRequest(BaseModel):
    utterance: str = ""
    label_set: List[str] = Field(default_factory=list)
    context: Dict[str, Any] = Field(default_factory=dict)


class IntentResponse(BaseModel):
    label: str
    parameter: Optional[str] = None
    source: str = "remote"
