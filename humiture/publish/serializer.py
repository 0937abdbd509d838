# humiture/publish/serializer.py
from __future__ import annotations

import json


def encode(reading) -> str:
    """Reading -> '{"ts": ..., "value": ...}'"""
    payload = reading.to_payload()
    return json.dumps({"ts": int(payload["ts"]), "value": float(payload["value"])})
