"""Tests for the contact submission endpoint."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx

from contact_widget.services.rate_limiter import RateLimiter

SUBMIT_URL = "/api/contact/submit-contact"

VALID_PAYLOAD = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "message": "Hello there",
}


class TestMethodGating:
    def test_options_returns_empty_200(self, client):
        resp = client.options(SUBMIT_URL)
        assert resp.status_code == 200
        assert resp.text == ""
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"

    def test_get_is_not_allowed(self, client, upstream):
        resp = client.get(SUBMIT_URL)
        assert resp.status_code == 405
        assert resp.json() == {"error": "Method not allowed"}
        assert upstream.requests == []

    def test_put_is_not_allowed(self, client):
        assert client.put(SUBMIT_URL, json=VALID_PAYLOAD).status_code == 405


class TestConfiguration:
    def test_missing_credentials_returns_500_without_external_call(self, use_settings, client, upstream):
        use_settings(notion_api_key=None)
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)

        assert resp.status_code == 500
        assert "NOTION_API_KEY" in resp.json()["error"]
        assert upstream.requests == []

    def test_missing_database_id_does_not_count_against_rate_limit(self, app, use_settings, client):
        use_settings(notion_database_id="")
        for _ in range(3):
            assert client.post(SUBMIT_URL, json=VALID_PAYLOAD).status_code == 500
        assert app.state.rate_limiter.tracked_clients() == 0


class TestSubmission:
    def test_valid_submission_creates_notion_page(self, client, upstream):
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["id"] == "page-123"
        assert body["message"] == "Contact form submitted successfully"

        request = upstream.notion_requests[0]
        assert request.headers["authorization"] == "Bearer secret_test_key"
        assert request.headers["notion-version"] == "2022-06-28"

        payload = upstream.last_notion_payload()
        assert payload["parent"] == {"database_id": "db-123"}
        properties = payload["properties"]
        assert properties["Status"] == {"select": {"name": "New"}}
        assert properties["Date Received"]["date"]["start"]
        assert properties["Name"]["title"][0]["text"]["content"] == "Ada Lovelace"
        assert properties["Email"] == {"email": "ada@example.com"}

    def test_empty_values_are_omitted(self, client, upstream):
        payload = dict(VALID_PAYLOAD, company="", phone="   ")
        assert client.post(SUBMIT_URL, json=payload).status_code == 200

        properties = upstream.last_notion_payload()["properties"]
        assert "Company" not in properties
        assert "Phone" not in properties

    def test_script_content_is_stripped_before_write(self, client, upstream):
        payload = dict(VALID_PAYLOAD, message="<script>alert(1)</script>Hi <b onclick=x()>there</b>")
        assert client.post(SUBMIT_URL, json=payload).status_code == 200

        message = upstream.last_notion_payload()["properties"]["Message"]
        assert message["rich_text"][0]["text"]["content"] == "Hi <b x()>there</b>"

    def test_empty_body_is_rejected(self, client, upstream):
        resp = client.post(SUBMIT_URL, content=b"", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "No form data received."}
        assert upstream.requests == []

    def test_empty_object_is_rejected(self, client):
        assert client.post(SUBMIT_URL, json={}).status_code == 400

    def test_malformed_json_is_rejected(self, client):
        resp = client.post(SUBMIT_URL, content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_json_array_is_rejected(self, client):
        assert client.post(SUBMIT_URL, json=["a", "b"]).status_code == 400

    def test_invalid_email_is_rejected(self, client, upstream):
        resp = client.post(SUBMIT_URL, json=dict(VALID_PAYLOAD, email="not-an-email"))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid email format."}
        assert upstream.notion_requests == []

    def test_notion_error_status_is_mirrored(self, client, upstream):
        upstream.notion_response = httpx.Response(
            404, json={"object": "error", "message": "Could not find database"}
        )
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Could not find database"}

    def test_notion_non_json_error_is_mirrored(self, client, upstream):
        upstream.notion_response = httpx.Response(502, text="Bad Gateway")
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)
        assert resp.status_code == 502
        assert resp.json() == {"error": "Bad Gateway"}

    def test_notion_error_without_message_gets_generic_text(self, client, upstream):
        upstream.notion_response = httpx.Response(503, json={})
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)
        assert resp.status_code == 503
        assert resp.json() == {"error": "Notion API error: 503"}

    def test_unexpected_failure_returns_500(self, client, upstream):
        upstream.notion_response = httpx.Response(200, json={"object": "page"})
        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD)
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Internal server error"
        assert "id" in body["details"]


class TestCaptcha:
    def test_captcha_skipped_without_secret(self, client, upstream):
        payload = dict(VALID_PAYLOAD, captchaToken="token-abc")
        assert client.post(SUBMIT_URL, json=payload).status_code == 200
        assert upstream.captcha_requests == []
        assert "CaptchaToken" not in upstream.last_notion_payload()["properties"]

    def test_captcha_verified_with_secret(self, use_settings, client, upstream):
        use_settings(recaptcha_secret_key="shh")
        payload = dict(VALID_PAYLOAD, captchaToken="token-abc")

        assert client.post(SUBMIT_URL, json=payload).status_code == 200
        sent = parse_qs(upstream.captcha_requests[0].content.decode())
        assert sent == {"secret": ["shh"], "response": ["token-abc"]}

    def test_failed_captcha_is_rejected(self, use_settings, client, upstream):
        use_settings(recaptcha_secret_key="shh")
        upstream.captcha_response = httpx.Response(200, json={"success": False})

        resp = client.post(SUBMIT_URL, json=dict(VALID_PAYLOAD, captchaToken="bad"))
        assert resp.status_code == 400
        assert resp.json() == {"error": "CAPTCHA verification failed. Please try again."}
        assert upstream.notion_requests == []

    def test_non_object_verify_body_is_rejected(self, use_settings, client, upstream):
        use_settings(recaptcha_secret_key="shh")
        upstream.captcha_response = httpx.Response(200, json=["nope"])

        resp = client.post(SUBMIT_URL, json=dict(VALID_PAYLOAD, captchaToken="token-abc"))
        assert resp.status_code == 400
        assert resp.json() == {"error": "CAPTCHA verification failed. Please try again."}
        assert upstream.notion_requests == []

    def test_captcha_skipped_without_token(self, use_settings, client, upstream):
        use_settings(recaptcha_secret_key="shh")
        assert client.post(SUBMIT_URL, json=VALID_PAYLOAD).status_code == 200
        assert upstream.captcha_requests == []


class TestRateLimit:
    def test_sixth_request_in_window_is_rejected(self, client):
        headers = {"X-Forwarded-For": "203.0.113.7"}
        for _ in range(5):
            assert client.post(SUBMIT_URL, json=VALID_PAYLOAD, headers=headers).status_code == 200

        resp = client.post(SUBMIT_URL, json=VALID_PAYLOAD, headers=headers)
        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests. Please wait before submitting again."}

    def test_clients_are_limited_independently(self, app, client):
        app.state.rate_limiter = RateLimiter(window_seconds=60, max_requests=1)

        assert client.post(SUBMIT_URL, json=VALID_PAYLOAD, headers={"X-Real-IP": "10.0.0.1"}).status_code == 200
        assert client.post(SUBMIT_URL, json=VALID_PAYLOAD, headers={"X-Real-IP": "10.0.0.2"}).status_code == 200
        assert client.post(SUBMIT_URL, json=VALID_PAYLOAD, headers={"X-Real-IP": "10.0.0.1"}).status_code == 429

    def test_rate_limit_applies_before_parsing(self, app, client, upstream):
        app.state.rate_limiter = RateLimiter(window_seconds=60, max_requests=1)

        assert client.post(SUBMIT_URL, json={}).status_code == 400
        assert client.post(SUBMIT_URL, json=VALID_PAYLOAD).status_code == 429
        assert upstream.notion_requests == []
