from __future__ import annotations

import asyncio
import base64
import json
import time
from typing import Any, List, Optional, Tuple

import httpx
from google import genai
from google.genai import types

from cinematch.api.schemas.simulation import AnalysisPayload, ShotDraft
from cinematch.api.utils.text import clip, safe_text, strip_code_fences
from cinematch.core.config import Settings
from cinematch.core.logger import log_info

# =========================================================
# Prompts / schema
# =========================================================
ANALYSIS_PROMPT = """Analyze the following movie script.

Part 1: General Analysis
- Score (1-10)
- Genre
- Target Audience
- 3 Key Strengths
- 3 Key Weaknesses
- 3 Casting Suggestions (Name + Match %)

Part 2: Visual Breakdown
Break the script down into a sequence of 3-4 key visual shots for a storyboard.
For each shot provide: Scene Header, Action, Camera Angle, Visual Description (optimized for image gen).

Script:
{script}"""

IMAGE_PROMPT = "Cinematic storyboard sketch, loose charcoal style. {description}. Angle: {angle}"

VIDEO_PROMPT = "Cinematic movie scene based on this script: {excerpt}..."

_STR = types.Schema(type=types.Type.STRING)
_STR_LIST = types.Schema(type=types.Type.ARRAY, items=_STR)
SHOT_FIELDS = ["sceneHeader", "action", "cameraAngle", "visualDescription"]

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "analysis": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "score": _STR,
                "genre": _STR,
                "audience": _STR,
                "strengths": _STR_LIST,
                "weaknesses": _STR_LIST,
                "casting": types.Schema(
                    type=types.Type.ARRAY,
                    items=types.Schema(
                        type=types.Type.OBJECT,
                        properties={
                            "name": _STR,
                            "match": types.Schema(type=types.Type.NUMBER),
                        },
                    ),
                ),
            },
        ),
        "shots": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={name: _STR for name in SHOT_FIELDS},
                required=SHOT_FIELDS,
            ),
        ),
    },
)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def parse_analysis(raw: str) -> Tuple[AnalysisPayload, List[ShotDraft]]:
    """Turn the model's JSON text into an analysis record and its shot list."""
    txt = strip_code_fences(raw) or "{}"
    try:
        data = json.loads(txt)
    except ValueError as e:
        raise ValueError(f"Analysis is not valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("analysis"), dict):
        raise ValueError("Analysis response has no 'analysis' object.")

    analysis = AnalysisPayload.model_validate(data["analysis"])
    shots = [ShotDraft.model_validate(s) for s in (data.get("shots") or [])]
    return analysis, shots


def image_data_url(resp: Any) -> Optional[str]:
    """First inline image of the first candidate as a data: URL."""
    cands = getattr(resp, "candidates", None) or []
    if not cands:
        return None
    content = getattr(cands[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            data = inline.data
            if isinstance(data, (bytes, bytearray)):
                data = base64.b64encode(data).decode("ascii")
            return f"data:{inline.mime_type or 'image/png'};base64,{data}"
    return None


class GeminiStudio:
    """
    All calls into the Gemini / Veo API: script analysis, storyboard
    images and the concept video.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[genai.Client] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._client = client
        self._http_transport = http_transport

    @property
    def client(self) -> genai.Client:
        # created lazily so a missing key only fails the first provider call
        if self._client is None:
            self._client = genai.Client(api_key=self.settings.GEMINI_API_KEY or None)
        return self._client

    # ---------------- analysis ----------------
    async def analyze_script(self, script: str) -> Tuple[AnalysisPayload, List[ShotDraft]]:
        script = safe_text(script)
        if not script:
            raise ValueError("Script is empty.")

        model = self.settings.GEMINI_MODEL_TEXT
        start = time.monotonic()
        resp = await self.client.aio.models.generate_content(
            model=model,
            contents=ANALYSIS_PROMPT.format(script=script),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=ANALYSIS_SCHEMA,
            ),
        )
        analysis, shots = parse_analysis(resp.text or "")
        log_info(f"ANALYZE ok model={model} shots={len(shots)} dt_ms={_elapsed_ms(start)}")
        return analysis, shots

    # ---------------- storyboard images ----------------
    async def generate_shot_image(self, shot: ShotDraft) -> str:
        model = self.settings.GEMINI_MODEL_IMAGE
        prompt = IMAGE_PROMPT.format(description=shot.visual_description, angle=shot.camera_angle)
        start = time.monotonic()
        resp = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
        )
        url = image_data_url(resp)
        if not url:
            raise RuntimeError("Image model returned no image data.")
        log_info(f"IMAGE ok model={model} dt_ms={_elapsed_ms(start)}")
        return url

    # ---------------- video ----------------
    async def generate_video(self, script: str) -> Tuple[bytes, str]:
        s = self.settings
        prompt = VIDEO_PROMPT.format(excerpt=clip(script, s.VIDEO_PROMPT_CHARS))
        start = time.monotonic()

        op = await self.client.aio.models.generate_videos(
            model=s.GEMINI_MODEL_VIDEO,
            prompt=prompt,
            config=types.GenerateVideosConfig(
                number_of_videos=1,
                resolution=s.VIDEO_RESOLUTION,
                aspect_ratio=s.VIDEO_ASPECT_RATIO,
            ),
        )
        log_info(f"VIDEO started model={s.GEMINI_MODEL_VIDEO} op={getattr(op, 'name', None)}")

        # fixed-interval poll, no backoff
        while not getattr(op, "done", False):
            if s.VIDEO_TIMEOUT_SEC > 0 and time.monotonic() - start > s.VIDEO_TIMEOUT_SEC:
                raise TimeoutError(f"Video operation still running after {s.VIDEO_TIMEOUT_SEC}s.")
            await asyncio.sleep(s.VIDEO_POLL_SEC)
            op = await self.client.aio.operations.get(op)

        error = getattr(op, "error", None)
        if error:
            raise RuntimeError(f"Video operation failed: {error}")

        resp = getattr(op, "response", None)
        videos = getattr(resp, "generated_videos", None) or []
        video = getattr(videos[0], "video", None) if videos else None
        uri = getattr(video, "uri", None)
        if not uri:
            raise RuntimeError("Video operation finished without a video URI.")

        data, mime = await self._download(uri)
        log_info(f"VIDEO ok model={s.GEMINI_MODEL_VIDEO} bytes={len(data)} dt_ms={_elapsed_ms(start)}")
        return data, mime

    async def _download(self, uri: str) -> Tuple[bytes, str]:
        headers = {"x-goog-api-key": self.settings.GEMINI_API_KEY}
        async with httpx.AsyncClient(
            timeout=self.settings.OUTBOUND_TIMEOUT_SEC,
            follow_redirects=True,
            transport=self._http_transport,
        ) as client:
            r = await client.get(uri, headers=headers)
        if r.status_code >= 400:
            raise RuntimeError(f"Video download error {r.status_code}: {r.text[:300]}")
        mime = (r.headers.get("content-type") or "").split(";")[0].strip()
        if not mime.startswith("video/"):
            mime = "video/mp4"
        return r.content, mime
