"""
Shared fixtures: isolated settings, a scripted fake studio and a fake
google-genai client. No test touches the network.
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest

# before any cinematch import so the cached settings log into a temp dir
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="cinematch-logs-"))

from cinematch.api.schemas.simulation import AnalysisPayload, ShotDraft  # noqa: E402
from cinematch.core.config import Settings  # noqa: E402
from cinematch.services.simulator import SimulationStore, Simulator  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    return Settings(
        GEMINI_API_KEY="test-key",
        VIDEO_POLL_SEC=0,
        VIDEO_TIMEOUT_SEC=0,
        LOG_DIR=tmp_path / "logs",
    )


@pytest.fixture
def genai_client():
    """MagicMock standing in for google.genai.Client (async surface only)."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.operations.get = AsyncMock()
    return client


class FakeStudio:
    """Scripted stand-in for GeminiStudio."""

    def __init__(self, shots=3, casting=3):
        self.analysis_error = None
        self.analysis_gate = None
        self.failing_shots = set()
        self.video_error = None
        self.image_gate = None
        self.video_gate = None
        self.analyzed = []
        self.image_prompts = []
        self.videos_requested = 0
        self.analysis = AnalysisPayload(
            score="7",
            genre="Thriller",
            audience="Young adults",
            strengths=["Pace"],
            weaknesses=["Ending"],
            casting=[{"name": f"Actor {i}", "match": 90 - i} for i in range(casting)],
        )
        self.shots = [
            ShotDraft(
                scene_header=f"INT. ROOM {i} - NIGHT",
                action=f"Action {i}",
                camera_angle="Close-up",
                visual_description=f"Visual {i}",
            )
            for i in range(shots)
        ]

    async def analyze_script(self, script):
        self.analyzed.append(script)
        if self.analysis_gate is not None:
            await self.analysis_gate.wait()
        if self.analysis_error:
            raise self.analysis_error
        return self.analysis, list(self.shots)

    async def generate_shot_image(self, shot):
        if self.image_gate is not None:
            await self.image_gate.wait()
        self.image_prompts.append(shot.visual_description)
        if shot.visual_description in self.failing_shots:
            raise RuntimeError("Image model returned no image data.")
        return "data:image/png;base64,UE5H"

    async def generate_video(self, script):
        self.videos_requested += 1
        if self.video_gate is not None:
            await self.video_gate.wait()
        if self.video_error:
            raise self.video_error
        return b"MP4-BYTES", "video/mp4"


@pytest.fixture
def fake_studio():
    return FakeStudio()


@pytest.fixture
def store():
    return SimulationStore(capacity=10)


@pytest.fixture
def simulator(fake_studio, store):
    return Simulator(fake_studio, store)
