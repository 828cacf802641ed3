"""Prompt construction for batch classification.

The service receives one instruction plus a compact JSON array of the
batch's bookmarks and must answer with a single JSON object.
"""

import json
from typing import Any

CLASSIFICATION_INSTRUCTIONS = """\
Analyze these {count} Twitter bookmarks and categorize them into themes. For each bookmark, provide:
1. A theme/category (max 3 words)
2. A brief insight or key takeaway (1 sentence)
3. One actionable next step
4. Whether it's likely a thread (based on text patterns, ellipsis, numbering, "thread" mentions)

Return ONLY valid JSON in this exact format with no markdown, preamble, or explanation:
{{
  "themes": [
    {{
      "name": "Theme Name",
      "description": "Brief description",
      "color": "#hexcolor"
    }}
  ],
  "bookmarks": [
    {{
      "id": "original_id",
      "theme": "Theme Name",
      "insight": "Key takeaway",
      "action": "Next step",
      "isLikelyThread": true/false
    }}
  ]
}}

Bookmarks to analyze:
{bookmarks}"""


def build_classification_prompt(records: list[dict[str, Any]]) -> str:
    """Render the classification request for one batch.

    Args:
        records: Shaped bookmark records ({id, text, author, replies}).

    Returns:
        Prompt text for a single user message.
    """
    return CLASSIFICATION_INSTRUCTIONS.format(
        count=len(records),
        bookmarks=json.dumps(records, ensure_ascii=False),
    )
