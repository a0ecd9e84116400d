"""
Stub response generator for offline/development mode.

When no Gemini key is configured and stub mode is enabled, extraction returns
a fixed payload instead of calling the API. Every identifier character is a
placeholder so the rows show up as low confidence and can never be mistaken
for real readings.
"""

import json


def generate_stub_response(image_count: int) -> str:
    """
    Build a JSON array with one placeholder row per image.

    Args:
        image_count: Number of images that were submitted

    Returns:
        JSON string shaped like a real model response
    """
    rows = [
        {
            "scNo": "?" * 13,
            "dtrCode": "?",
            "feederName": "STUB FEEDER",
            "location": f"Stub page {page}",
        }
        for page in range(1, max(1, image_count) + 1)
    ]
    return json.dumps(rows)
