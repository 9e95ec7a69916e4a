"""
Luma keyframe adapter tests.
"""

import pytest

from core.config import KeyframeConfig
from core.errors import ConfigurationError, SubmissionError
from services.video_generation.luma import (
    LumaAdapter,
    build_generation,
    build_prompt,
    build_segments,
    extract_error_message,
)

from conftest import IMAGES, make_response


class TestSegments:

    def test_consecutive_pairs(self):
        segments = build_segments(IMAGES)

        assert len(segments) == len(IMAGES) - 1
        for i, segment in enumerate(segments):
            assert segment.start_frame == IMAGES[i]
            assert segment.end_frame == IMAGES[i + 1]

    def test_framing_by_position(self):
        segments = build_segments(IMAGES)
        assert [s.framing for s in segments] == ["Opening", "Middle", "Middle", "Middle", "Closing"]

    def test_camera_move_alternates_by_parity(self):
        config = KeyframeConfig()
        prompts = [build_prompt(s, "modern", config) for s in build_segments(IMAGES)]

        even, odd = config.camera_moves
        assert all(even in p for p in prompts[0::2])
        assert all(odd in p for p in prompts[1::2])

    def test_prompt_is_deterministic(self):
        segment = build_segments(IMAGES)[0]
        first = build_prompt(segment, "luxury", KeyframeConfig())
        assert first == build_prompt(segment, "luxury", KeyframeConfig())
        assert first.startswith("Opening shot of a luxury property walkthrough")

    def test_generation_payload(self):
        segment = build_segments(IMAGES)[2]
        payload = build_generation(segment, "modern", KeyframeConfig())

        assert payload["aspect_ratio"] == "9:16"
        assert payload["keyframes"] == {
            "frame0": {"type": "image", "url": IMAGES[2]},
            "frame1": {"type": "image", "url": IMAGES[3]},
        }
        assert payload["prompt"].startswith("Middle shot")


class TestErrorExtraction:

    @pytest.mark.parametrize("body,expected", [
        ('{"detail": "Insufficient credits"}', "Insufficient credits"),
        ('{"message": "Invalid keyframe url"}', "Invalid keyframe url"),
        ('{"error": "Unauthorized"}', "Unauthorized"),
        ('{"detail": [{"loc": ["body", "prompt"], "msg": "required"}]}', "required"),
    ])
    def test_known_fields(self, body, expected):
        assert expected in extract_error_message(body)

    def test_raw_body_truncated(self):
        body = "Gateway Timeout " * 50
        message = extract_error_message(body)
        assert len(message) == 200
        assert message.startswith("Gateway Timeout")


class TestSubmit:

    @pytest.mark.asyncio
    async def test_submits_first_segment_only(self, config, http_client, generation_request):
        http_client.request.return_value = make_response(201, {"id": "gen-abc", "state": "queued"})
        adapter = LumaAdapter(config, http_client)

        result = await adapter.submit(generation_request)

        assert http_client.request.call_count == 1
        method, url = http_client.request.call_args.args
        kwargs = http_client.request.call_args.kwargs
        assert method == "POST"
        assert url == "https://api.lumalabs.ai/dream-machine/v1/generations"
        assert kwargs["headers"]["Authorization"] == "Bearer luma-test-key"
        assert kwargs["json"]["keyframes"]["frame0"]["url"] == generation_request.images[0]
        assert kwargs["json"]["keyframes"]["frame1"]["url"] == generation_request.images[1]
        assert "luxury" in kwargs["json"]["prompt"]

        assert result.job.provider_job_id == "gen-abc"

    @pytest.mark.asyncio
    async def test_estimates_scale_with_segments(self, config, http_client, generation_request):
        http_client.request.return_value = make_response(201, {"id": "gen-abc"})
        adapter = LumaAdapter(config, http_client)

        body = (await adapter.submit(generation_request)).to_response()

        segments = len(generation_request.images) - 1
        assert body["provider"] == "luma"
        assert body["totalSegments"] == segments
        assert body["estimatedTimeSeconds"] == config.keyframe.segment_render_seconds * segments
        assert body["estimatedDurationSeconds"] == config.keyframe.segment_duration_seconds * segments
        assert "totalImages" not in body

    @pytest.mark.asyncio
    async def test_rejection_uses_detail(self, config, http_client, generation_request):
        http_client.request.return_value = make_response(402, {"detail": "Insufficient credits"})
        adapter = LumaAdapter(config, http_client)

        with pytest.raises(SubmissionError) as exc:
            await adapter.submit(generation_request)

        assert "Insufficient credits" in exc.value.message
        assert exc.value.error_code == "HTTP_402"

    @pytest.mark.asyncio
    async def test_rejection_with_plain_text(self, config, http_client, generation_request):
        http_client.request.return_value = make_response(503, text="upstream unavailable")
        adapter = LumaAdapter(config, http_client)

        with pytest.raises(SubmissionError) as exc:
            await adapter.submit(generation_request)
        assert "upstream unavailable" in exc.value.message

    @pytest.mark.asyncio
    async def test_missing_generation_id(self, config, http_client, generation_request):
        http_client.request.return_value = make_response(201, {"state": "queued"})
        adapter = LumaAdapter(config, http_client)

        with pytest.raises(SubmissionError) as exc:
            await adapter.submit(generation_request)
        assert exc.value.error_code == "NO_JOB_ID"

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_call(self, unconfigured, http_client, generation_request):
        adapter = LumaAdapter(unconfigured, http_client)

        with pytest.raises(ConfigurationError) as exc:
            await adapter.submit(generation_request)

        assert "LUMA_API_KEY" in exc.value.message
        http_client.request.assert_not_called()
