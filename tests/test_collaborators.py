"""
Tests for the outbound collaborator clients: OpenRouter (llm_client),
Google Vision (vision_client) and report delivery (report_client).
requests.post is patched in every test.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import requests

import lovescan.llm.llm_client as llm_client
import lovescan.vision.vision_client as vision_client
from lovescan.core.aggregator import aggregate
from lovescan.core.report import assemble
from lovescan.reporting import report_client
from lovescan.schemas import ExtractedEntity, ScreenshotRole

MESSAGES = [{"role": "user", "content": "hi"}]


def _response(status_code: int = 200, body: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.json.return_value = body or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return response


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


# ---------- OPENROUTER ----------

def test_openrouter_without_key_makes_no_request():
    with patch("lovescan.llm.llm_client.requests.post") as post:
        assert llm_client.call_openrouter(MESSAGES) is None
    post.assert_not_called()


def test_openrouter_returns_reply_text(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    with patch("lovescan.llm.llm_client.requests.post",
               return_value=_response(body=_completion('  {"riskScore": 40}  '))) as post:
        assert llm_client.call_openrouter(MESSAGES) == '{"riskScore": 40}'

    kwargs = post.call_args.kwargs
    assert kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert kwargs["json"]["messages"] == MESSAGES
    assert kwargs["json"]["model"] == llm_client.OPENROUTER_MODEL


def test_openrouter_rate_limit_and_server_errors(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    for status in (429, 500, 503):
        with patch("lovescan.llm.llm_client.requests.post", return_value=_response(status)):
            assert llm_client.call_openrouter(MESSAGES) is None


def test_openrouter_timeout(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    with patch("lovescan.llm.llm_client.requests.post", side_effect=requests.exceptions.Timeout()):
        assert llm_client.call_openrouter(MESSAGES) is None


def test_openrouter_refusal_and_empty_reply(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    for content in ("I'm sorry, I cannot assist with that request.", "   "):
        with patch("lovescan.llm.llm_client.requests.post",
                   return_value=_response(body=_completion(content))):
            assert llm_client.call_openrouter(MESSAGES) is None


def test_openrouter_malformed_body(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    with patch("lovescan.llm.llm_client.requests.post", return_value=_response(body={"choices": []})):
        assert llm_client.call_openrouter(MESSAGES) is None


def test_openrouter_rejected_key(monkeypatch):
    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "test-key")
    with patch("lovescan.llm.llm_client.requests.post", return_value=_response(401)) as post:
        assert llm_client.call_openrouter(MESSAGES, timeout=2.5) is None
    post.assert_called_once()
    assert post.call_args.kwargs["timeout"] == 2.5


# ---------- GOOGLE VISION ----------

WEB_ANNOTATION = {
    "labelAnnotations": [{"description": "Smile"}, {"description": "Uniform"}],
    "webDetection": {
        "bestGuessLabels": [{"label": "army officer"}],
        "fullMatchingImages": [{"url": "https://www.romance-scam-alerts.org/a.jpg"}],
        "pagesWithMatchingImages": [
            {"url": "https://www.romance-scam-alerts.org/a.jpg"},
            {"url": "https://facebook.com/p/1", "pageTitle": "John Smith | Facebook"},
        ],
        "visuallySimilarImages": [{"url": "https://www.shutterstock.com/x.jpg"}],
    },
}


def test_parse_web_detection():
    matches = vision_client.parse_web_detection(WEB_ANNOTATION)

    assert [m.domain for m in matches] == ["romance-scam-alerts.org", "facebook.com", "shutterstock.com"]
    assert [m.score for m in matches] == [98.0, 93.0, 85.0]
    assert matches[0].labels == ["Smile", "Uniform", "army officer"]
    assert matches[1].labels[-1] == "John Smith | Facebook"
    assert matches[1].source_url == "https://facebook.com/p/1"


def test_parse_web_detection_caps_matches():
    annotation = {"webDetection": {
        "visuallySimilarImages": [{"url": f"https://site{i}.com/img.jpg"} for i in range(25)],
    }}
    matches = vision_client.parse_web_detection(annotation)
    assert len(matches) == vision_client.MAX_MATCHES
    assert all(m.score >= 0 for m in matches)


def test_parse_text_annotation():
    annotation = {
        "fullTextAnnotation": {"text": "anna.travels\n2.1K followers"},
        "labelAnnotations": [{"description": "Screenshot"}],
        "logoAnnotations": [{"description": "Instagram"}],
    }
    assert vision_client.parse_text_annotation(annotation) == (
        "anna.travels\n2.1K followers", ["Screenshot", "Instagram"]
    )


def test_parse_text_annotation_falls_back_to_text_annotations():
    annotation = {"textAnnotations": [{"description": "Followers 120"}, {"description": "Followers"}]}
    assert vision_client.parse_text_annotation(annotation) == ("Followers 120", [])
    assert vision_client.parse_text_annotation({}) == ("", [])


def test_annotate_without_key_makes_no_request():
    with patch("lovescan.vision.vision_client.requests.post") as post:
        assert vision_client.reverse_image_search("aGVsbG8=") is None
    post.assert_not_called()


def test_annotate_error_payload_is_absent(monkeypatch):
    monkeypatch.setattr(vision_client, "GOOGLE_VISION_API_KEY", "vision-key")
    body = {"responses": [{"error": {"message": "Bad image data."}}]}
    with patch("lovescan.vision.vision_client.requests.post", return_value=_response(body=body)):
        assert vision_client.screenshot_to_evidence("aGVsbG8=") is None


def test_annotate_http_failure_is_absent(monkeypatch):
    monkeypatch.setattr(vision_client, "GOOGLE_VISION_API_KEY", "vision-key")
    with patch("lovescan.vision.vision_client.requests.post", return_value=_response(403)):
        assert vision_client.reverse_image_search("aGVsbG8=") is None


def test_reverse_image_search(monkeypatch):
    monkeypatch.setattr(vision_client, "GOOGLE_VISION_API_KEY", "vision-key")
    with patch("lovescan.vision.vision_client.requests.post",
               return_value=_response(body={"responses": [WEB_ANNOTATION]})) as post:
        matches = vision_client.reverse_image_search("aGVsbG8=")

    assert len(matches) == 3
    kwargs = post.call_args.kwargs
    assert kwargs["params"] == {"key": "vision-key"}
    assert kwargs["json"]["requests"][0]["image"] == {"content": "aGVsbG8="}


def test_screenshot_to_evidence(monkeypatch):
    monkeypatch.setattr(vision_client, "GOOGLE_VISION_API_KEY", "vision-key")
    body = {"responses": [{"fullTextAnnotation": {"text": "14.5M followers"}}]}
    with patch("lovescan.vision.vision_client.requests.post", return_value=_response(body=body)):
        evidence = vision_client.screenshot_to_evidence("aGVsbG8=", ScreenshotRole.POST)

    assert evidence.text == "14.5M followers"
    assert evidence.role == ScreenshotRole.POST


# ---------- REPORT DELIVERY ----------

def _report():
    return assemble(aggregate([]), ExtractedEntity(candidate_name="David"), [])


def test_report_without_webhook_is_not_sent():
    with patch("lovescan.reporting.report_client.requests.post") as post:
        assert report_client.submit_report(_report()) is False
    post.assert_not_called()


def test_report_delivered_first_try():
    with patch("lovescan.reporting.report_client.requests.post", return_value=_response()) as post:
        assert report_client.submit_report(_report(), url="https://reports.example/hook") is True

    post.assert_called_once()
    body = post.call_args.kwargs["json"]
    assert body["reportedName"] == "David"
    assert body["verdict"] == "no evidence provided"


def test_report_retries_then_gives_up():
    with patch("lovescan.reporting.report_client.requests.post",
               side_effect=requests.exceptions.ConnectionError()) as post, \
            patch("lovescan.reporting.report_client.time.sleep") as sleep:
        assert report_client.submit_report(_report(), url="https://reports.example/hook") is False

    assert post.call_count == report_client.MAX_RETRIES
    assert sleep.call_count == report_client.MAX_RETRIES - 1


def test_report_recovers_after_server_error():
    responses = [_response(502), _response()]
    with patch("lovescan.reporting.report_client.requests.post", side_effect=responses) as post, \
            patch("lovescan.reporting.report_client.time.sleep"):
        assert report_client.submit_report(_report(), url="https://reports.example/hook") is True

    assert post.call_count == 2
