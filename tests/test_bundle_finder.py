"""Tests for the bundle-finder connector — request payload, response
parsing, error messages and retry behaviour.

HTTP is served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

API_URL = "http://finder.test/api/analyze"

SAMPLE_RESPONSE = {
    "steps": [
        {"name": "fetch_tokens", "status": "done", "message": "10 tokens", "ts": 1700000000},
        {"name": "score", "status": "done", "message": "ok", "ts": 1700000005},
    ],
    "suspects": [
        {"address": "0xsus1", "score": 0.91, "count": 7, "totalAnalyzed": 10},
        {"address": "", "score": 0.5, "count": 1, "totalAnalyzed": 10},
        {"address": "0xsus2", "score": "0.4", "count": "2", "totalAnalyzed": 10},
    ],
    "hasBundle": True,
    "fromCache": True,
}


def _client(handler, **overrides):
    from polydash.config import BundleFinderConfig
    from polydash.connectors.bundle_finder import BundleFinderClient
    config = BundleFinderConfig(api_url=API_URL, retry_backoff_secs=0, **overrides)
    return BundleFinderClient(config, transport=httpx.MockTransport(handler))


def _analyze(client, *args, **kwargs):
    async def go():
        try:
            return await client.analyze(*args, **kwargs)
        finally:
            await client.close()
    return asyncio.run(go())


# ═══════════════════════════════════════════════════════════════════
#  REQUEST
# ═══════════════════════════════════════════════════════════════════

class TestRequest:

    def test_payload_uses_config_defaults(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"steps": [], "suspects": [], "hasBundle": False})

        _analyze(_client(handler), "0xtarget")
        assert seen["url"] == API_URL
        assert seen["method"] == "POST"
        assert seen["body"] == {
            "address": "0xtarget",
            "chainId": "56",
            "desiredTokenCount": 10,
            "historyLimit": 100,
            "scope": "middle",
            "precision": "precise",
        }

    def test_payload_overrides(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        _analyze(_client(handler), "0xt", "1", 5, 0, scope="wide", precision="fast")
        assert seen["body"]["chainId"] == "1"
        assert seen["body"]["desiredTokenCount"] == 5
        assert seen["body"]["historyLimit"] == 0
        assert seen["body"]["scope"] == "wide"
        assert seen["body"]["precision"] == "fast"


# ═══════════════════════════════════════════════════════════════════
#  RESPONSE PARSING
# ═══════════════════════════════════════════════════════════════════

class TestResponse:

    def test_parses_full_response(self):
        analysis = _analyze(_client(lambda r: httpx.Response(200, json=SAMPLE_RESPONSE)), "0xt")
        assert [s.name for s in analysis.steps] == ["fetch_tokens", "score"]
        assert [s.address for s in analysis.suspects] == ["0xsus1", "0xsus2"]
        assert analysis.suspects[0].total_analyzed == 10
        assert analysis.suspects[0].hit_ratio == pytest.approx(0.7)
        assert analysis.suspects[1].score == pytest.approx(0.4)
        assert analysis.has_bundle is True
        assert analysis.from_cache is True

    def test_missing_fields_default(self):
        analysis = _analyze(_client(lambda r: httpx.Response(200, json={})), "0xt")
        assert analysis.steps == []
        assert analysis.suspects == []
        assert analysis.has_bundle is False
        assert analysis.from_cache is False

    def test_to_dict(self):
        analysis = _analyze(_client(lambda r: httpx.Response(200, json=SAMPLE_RESPONSE)), "0xt")
        d = analysis.to_dict()
        assert d["has_bundle"] is True
        assert d["suspects"][0] == {"address": "0xsus1", "score": 0.91, "count": 7, "total_analyzed": 10}

    def test_hit_ratio_zero_denominator(self):
        from polydash.connectors.bundle_finder import BundleSuspect
        assert BundleSuspect(address="0x", count=3, total_analyzed=0).hit_ratio == 0.0


# ═══════════════════════════════════════════════════════════════════
#  ERRORS
# ═══════════════════════════════════════════════════════════════════

class TestErrors:

    def test_server_error_message_from_body(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        client = _client(lambda r: httpx.Response(400, json={"error": "Invalid address"}))
        with pytest.raises(BundleFinderError, match="Invalid address") as exc:
            _analyze(client, "bad")
        assert exc.value.status_code == 400

    def test_server_error_without_body(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        client = _client(lambda r: httpx.Response(502, text="<html>bad gateway</html>"))
        with pytest.raises(BundleFinderError) as exc:
            _analyze(client, "0xt")
        assert str(exc.value) == "Server error: 502"
        assert exc.value.status_code == 502

    def test_http_errors_not_retried(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={})

        with pytest.raises(BundleFinderError, match="Server error: 500"):
            _analyze(_client(handler), "0xt")
        assert len(calls) == 1

    def test_invalid_json(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        client = _client(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(BundleFinderError, match="Invalid response"):
            _analyze(client, "0xt")

    def test_non_object_json(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        client = _client(lambda r: httpx.Response(200, json=[1, 2]))
        with pytest.raises(BundleFinderError, match="expected an object"):
            _analyze(client, "0xt")

    def test_connect_failure_retried_then_raised(self):
        from polydash.connectors.bundle_finder import BundleFinderError
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BundleFinderError, match="Failed to connect to analysis server") as exc:
            _analyze(_client(handler, max_retries=3), "0xt")
        assert len(calls) == 3
        assert exc.value.status_code is None

    def test_transient_failure_recovers(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"hasBundle": False})

        analysis = _analyze(_client(handler), "0xt")
        assert analysis.has_bundle is False
        assert len(calls) == 2
