"""Shared fixtures for testimony-audit tests."""

import json

import pytest


@pytest.fixture
def clip_documents():
    """Clip documents as stored, covering each kind of problem."""
    return [
        {"id": "ok1", "title": "Healed", "episode": "1084", "startTimeSeconds": 600, "endTimeSeconds": 780},
        {"id": "swap", "title": "Restored", "episode": "1084", "startTimeSeconds": 120, "endTimeSeconds": 60},
        {"id": "zero", "episode": "1084", "startTimeSeconds": 100, "endTimeSeconds": 100},
        {"id": "short", "episode": "1085", "startSec": 0, "endSec": 3},
        {"id": "long", "episode": "1085", "startTimeSeconds": 0, "endTimeSeconds": 4000},
        {"id": "late", "episode": "1085", "startTimeSeconds": 15000, "endTimeSeconds": 15090},
        {
            "id": "approved",
            "episode": "1085",
            "startTimeSeconds": 50,
            "endTimeSeconds": 10,
            "validationStatus": "approved",
            "manuallyReviewed": True,
        },
        {
            "id": "recut",
            "episode": "1085",
            "startTimeSeconds": 0,
            "endTimeSeconds": 2,
            "reprocessingStatus": "completed",
            "processedClipUrl": "https://storage.example/clips/recut.mp4",
        },
    ]


@pytest.fixture
def clips_file(tmp_path, clip_documents):
    """Clip store file in a temporary directory."""
    path = tmp_path / "clips.json"
    path.write_text(json.dumps(clip_documents), encoding="utf-8")
    return path
