from urllib.parse import quote

import pytest

BODY = {"markdown": "# Rome\n\n- one\n- two", "prompt": "Hello, World!", "audience": "High School"}


@pytest.mark.parametrize(
    "fmt,ext,media",
    [
        ("pdf", "pdf", "application/pdf"),
        ("docx", "docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("json", "json", "application/json"),
        ("json-structured", "json", "application/json"),
        ("markdown", "md", "text/markdown"),
    ],
)
def test_export_formats(client, fmt, ext, media):
    resp = client.post(f"/api/export/{fmt}", json=BODY)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(media)
    disposition = resp.headers["content-disposition"]
    name = f"content-finder-hello-world-high-school.{ext}"
    assert disposition == f"attachment; filename=\"{name}\"; filename*=UTF-8''{name}"
    assert resp.content


def test_export_custom_filename(client):
    resp = client.post("/api/export/markdown", json={**BODY, "filename": "notes.md"})
    assert 'filename="notes.md"' in resp.headers["content-disposition"]
    assert resp.text == BODY["markdown"]


def test_export_structured_json_body(client):
    data = client.post("/api/export/json-structured", json=BODY).json()
    assert data["prompt"] == "Hello, World!"
    assert [n["type"] for n in data["content"]] == ["heading", "list"]


def test_export_unknown_format(client):
    assert client.post("/api/export/rtf", json=BODY).status_code == 404


def test_export_empty_markdown(client):
    assert client.post("/api/export/pdf", json={**BODY, "markdown": "  "}).status_code == 400


def test_export_unterminated_fence_is_422(client):
    resp = client.post("/api/export/docx", json={**BODY, "markdown": "```\nopen"})
    assert resp.status_code == 422
    assert "Unterminated code fence" in resp.json()["detail"]


def test_export_non_latin_prompt_uses_utf8_filename(client):
    resp = client.post("/api/export/markdown", json={**BODY, "prompt": "罗马历史"})
    assert resp.status_code == 200
    disposition = resp.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="content-finder--high-school.md"')
    assert f"filename*=UTF-8''{quote('content-finder-罗马历史-high-school.md', safe='')}" in disposition


def test_export_filename_cannot_inject_headers(client):
    resp = client.post("/api/export/markdown", json={**BODY, "filename": 'a"b\r\nX-Evil: 1\\c.md'})
    assert resp.status_code == 200
    assert "x-evil" not in resp.headers
    assert resp.headers["content-disposition"].startswith('attachment; filename="abX-Evil: 1c.md"')
