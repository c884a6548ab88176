import json

from src.api.generate_openapi import generate_openapi
from src.api.main import openapi_tags


def test_generate_openapi_writes_schema(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    written = generate_openapi(str(out))
    assert written == str(out)

    schema = json.loads(out.read_text(encoding="utf-8"))
    assert {"/auth/register", "/auth/login", "/auth/logout", "/me", "/tasks", "/tasks/{task_id}"} <= set(
        schema["paths"]
    )
    assert {t["name"] for t in schema["tags"]} >= {t["name"] for t in openapi_tags}
