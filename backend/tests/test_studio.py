"""
Unit tests for GeminiStudio.

The google-genai client is replaced by AsyncMocks and the media download
goes through an httpx.MockTransport.
"""

import base64
from types import SimpleNamespace

import httpx
import pytest

from cinematch.api.schemas.simulation import ShotDraft
from cinematch.services.studio import (
    ANALYSIS_SCHEMA,
    GeminiStudio,
    image_data_url,
    parse_analysis,
)


ANALYSIS_JSON = """{
  "analysis": {
    "score": "8",
    "genre": "Romantic drama",
    "audience": "Adults 25-45",
    "strengths": ["Atmosphere", "Tension", "Economy"],
    "weaknesses": ["Thin dialogue", "Familiar setup", "Short"],
    "casting": [
      {"name": "Actor A", "match": 92},
      {"name": "Actor B", "match": 87.5}
    ]
  },
  "shots": [
    {"sceneHeader": "INT. COFFEE SHOP - DAY", "action": "Jamie stares at his coffee",
     "cameraAngle": "Close-up", "visualDescription": "Rain on the window, cold coffee"},
    {"sceneHeader": "INT. COFFEE SHOP - DAY", "action": "A woman enters",
     "cameraAngle": "Wide shot", "visualDescription": "Red trench coat in the doorway"}
  ]
}"""

VIDEO_URI = "https://media.example.test/v1beta/files/abc:download?alt=media"


def _image_response(parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


def _operation(done, uri=VIDEO_URI, error=None):
    videos = [SimpleNamespace(video=SimpleNamespace(uri=uri))] if uri else []
    return SimpleNamespace(
        name="operations/veo-1",
        done=done,
        error=error,
        response=SimpleNamespace(generated_videos=videos) if done else None,
    )


def _shot():
    return ShotDraft(
        scene_header="EXT. PIER - NIGHT",
        action="She throws the ring into the sea",
        camera_angle="Over the shoulder",
        visual_description="Moonlit pier, fog",
    )


# ============================================================================
# parse_analysis
# ============================================================================


class TestParseAnalysis:
    def test_parses_analysis_and_shots(self):
        analysis, shots = parse_analysis(ANALYSIS_JSON)

        assert analysis.score == "8"
        assert analysis.genre == "Romantic drama"
        assert len(analysis.strengths) == 3
        assert [c.name for c in analysis.casting] == ["Actor A", "Actor B"]
        assert analysis.casting[1].match == 87.5
        assert len(shots) == 2
        assert shots[0].scene_header == "INT. COFFEE SHOP - DAY"
        assert shots[1].camera_angle == "Wide shot"

    def test_strips_code_fences(self):
        analysis, shots = parse_analysis("```json\n" + ANALYSIS_JSON + "\n```")
        assert analysis.audience == "Adults 25-45"
        assert len(shots) == 2

    def test_missing_shots_gives_empty_list(self):
        analysis, shots = parse_analysis('{"analysis": {"score": "5"}}')
        assert analysis.score == "5"
        assert analysis.casting == []
        assert shots == []

    def test_numeric_score_and_percent_match_are_coerced(self):
        analysis, _ = parse_analysis(
            '{"analysis": {"score": 8, "genre": "Drama", '
            '"casting": [{"name": "Actor A", "match": "92%"}, {"name": "Actor B", "match": 75}]}}'
        )

        assert analysis.score == "8"
        assert analysis.genre == "Drama"
        assert [c.match for c in analysis.casting] == [92.0, 75.0]

    def test_empty_text_has_no_analysis(self):
        with pytest.raises(ValueError, match="analysis"):
            parse_analysis("")

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="not valid JSON"):
            parse_analysis("{not json")


# ============================================================================
# image_data_url
# ============================================================================


def test_image_data_url_encodes_first_inline_part():
    resp = _image_response([
        SimpleNamespace(text="caption", inline_data=None),
        SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/jpeg", data=b"JPEG")),
        SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/png", data=b"PNG")),
    ])

    url = image_data_url(resp)

    assert url == "data:image/jpeg;base64," + base64.b64encode(b"JPEG").decode()


def test_image_data_url_without_candidates():
    assert image_data_url(SimpleNamespace(candidates=[])) is None
    assert image_data_url(_image_response([SimpleNamespace(text="no image", inline_data=None)])) is None


# ============================================================================
# GeminiStudio
# ============================================================================


@pytest.mark.asyncio
class TestAnalyzeScript:
    async def test_sends_prompt_and_schema(self, settings, genai_client):
        genai_client.aio.models.generate_content.return_value = SimpleNamespace(text=ANALYSIS_JSON)
        studio = GeminiStudio(settings, client=genai_client)

        analysis, shots = await studio.analyze_script("INT. ROOM - DAY\nHe waits.")

        assert analysis.score == "8"
        assert len(shots) == 2
        kwargs = genai_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["contents"].endswith("INT. ROOM - DAY\nHe waits.")
        assert "3-4 key visual shots" in kwargs["contents"]
        assert kwargs["config"].response_mime_type == "application/json"
        assert kwargs["config"].response_schema == ANALYSIS_SCHEMA

    async def test_blank_script_is_rejected(self, settings, genai_client):
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(ValueError, match="empty"):
            await studio.analyze_script("   \n")
        genai_client.aio.models.generate_content.assert_not_called()

    async def test_provider_error_propagates(self, settings, genai_client):
        genai_client.aio.models.generate_content.side_effect = RuntimeError("quota exceeded")
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(RuntimeError, match="quota"):
            await studio.analyze_script("INT. ROOM - DAY")

    async def test_none_text_is_treated_as_empty_object(self, settings, genai_client):
        genai_client.aio.models.generate_content.return_value = SimpleNamespace(text=None)
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(ValueError):
            await studio.analyze_script("INT. ROOM - DAY")


@pytest.mark.asyncio
class TestGenerateShotImage:
    async def test_returns_data_url(self, settings, genai_client):
        genai_client.aio.models.generate_content.return_value = _image_response([
            SimpleNamespace(inline_data=SimpleNamespace(mime_type="image/png", data=b"PNG")),
        ])
        studio = GeminiStudio(settings, client=genai_client)

        url = await studio.generate_shot_image(_shot())

        assert url == "data:image/png;base64,UE5H"
        kwargs = genai_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-image"
        assert kwargs["contents"] == (
            "Cinematic storyboard sketch, loose charcoal style. Moonlit pier, fog. Angle: Over the shoulder"
        )

    async def test_no_image_part_raises(self, settings, genai_client):
        genai_client.aio.models.generate_content.return_value = _image_response([
            SimpleNamespace(text="I cannot draw that", inline_data=None),
        ])
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(RuntimeError, match="no image"):
            await studio.generate_shot_image(_shot())


@pytest.mark.asyncio
class TestGenerateVideo:
    async def test_polls_until_done_and_downloads(self, settings, genai_client):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            return httpx.Response(200, content=b"MP4", headers={"content-type": "video/mp4"})

        genai_client.aio.models.generate_videos.return_value = _operation(done=False)
        genai_client.aio.operations.get.side_effect = [_operation(done=False), _operation(done=True)]
        studio = GeminiStudio(settings, client=genai_client, http_transport=httpx.MockTransport(handler))

        data, mime = await studio.generate_video("INT. COFFEE SHOP - DAY " + "x" * 500)

        assert data == b"MP4"
        assert mime == "video/mp4"
        assert genai_client.aio.operations.get.await_count == 2
        assert seen["url"] == VIDEO_URI
        assert seen["key"] == "test-key"

        kwargs = genai_client.aio.models.generate_videos.call_args.kwargs
        assert kwargs["model"] == "veo-3.1-fast-generate-preview"
        assert kwargs["prompt"].startswith("Cinematic movie scene based on this script: INT. COFFEE SHOP")
        assert kwargs["prompt"].endswith("...")
        assert len(kwargs["prompt"]) == len("Cinematic movie scene based on this script: ") + 300 + 3
        assert kwargs["config"].number_of_videos == 1
        assert kwargs["config"].resolution == "720p"
        assert kwargs["config"].aspect_ratio == "16:9"

    async def test_operation_error(self, settings, genai_client):
        genai_client.aio.models.generate_videos.return_value = _operation(
            done=True, uri=None, error={"code": 3, "message": "prompt rejected"}
        )
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(RuntimeError, match="prompt rejected"):
            await studio.generate_video("script")

    async def test_missing_uri(self, settings, genai_client):
        genai_client.aio.models.generate_videos.return_value = _operation(done=True, uri=None)
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(RuntimeError, match="without a video URI"):
            await studio.generate_video("script")

    async def test_download_failure(self, settings, genai_client):
        transport = httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden"))
        genai_client.aio.models.generate_videos.return_value = _operation(done=True)
        studio = GeminiStudio(settings, client=genai_client, http_transport=transport)

        with pytest.raises(RuntimeError, match="403"):
            await studio.generate_video("script")

    async def test_poll_timeout(self, genai_client):
        from cinematch.core.config import Settings

        settings = Settings(GEMINI_API_KEY="k", VIDEO_POLL_SEC=0.02, VIDEO_TIMEOUT_SEC=0.01)
        genai_client.aio.models.generate_videos.return_value = _operation(done=False)
        genai_client.aio.operations.get.return_value = _operation(done=False)
        studio = GeminiStudio(settings, client=genai_client)

        with pytest.raises(TimeoutError):
            await studio.generate_video("script")


@pytest.mark.asyncio
async def test_video_polls_without_limit_by_default(genai_client):
    from cinematch.core.config import Settings

    settings = Settings(GEMINI_API_KEY="k", VIDEO_POLL_SEC=0)
    assert settings.VIDEO_TIMEOUT_SEC == 0

    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"MP4"))
    genai_client.aio.models.generate_videos.return_value = _operation(done=False)
    genai_client.aio.operations.get.side_effect = [_operation(done=False)] * 25 + [_operation(done=True)]
    studio = GeminiStudio(settings, client=genai_client, http_transport=transport)

    data, mime = await studio.generate_video("script")

    assert data == b"MP4"
    assert mime == "video/mp4"
    assert genai_client.aio.operations.get.await_count == 26
