from fastapi.testclient import TestClient
from inline_snapshot import snapshot

from tests.conftest import HELLO_PY
from tests.fakes import StaticTextGenerator

HELLO_FILE = {"filename": "hello.py", "language": "py", "content": HELLO_PY}


class TestSummaries:
    def test_generate_summaries(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        response = authenticated_client.post("/api/testcases/summaries", json={"files": [HELLO_FILE]})

        assert response.status_code == 200

        body = response.json()
        assert len(body["summaries"]) == 3
        assert body["summaries"][0].startswith("* **Test Case 1:** Greets a name")
        assert body["rawText"].startswith("Here are the test cases:")
        assert len(text_generator.prompts) == 1

    def test_generate_summaries_without_files(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        response = authenticated_client.post("/api/testcases/summaries", json={"files": []})

        assert response.status_code == 400
        assert response.json() == {"error": "No files provided"}
        assert text_generator.prompts == []

    def test_generate_summaries_with_empty_reply(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        text_generator.replies = [""]

        response = authenticated_client.post("/api/testcases/summaries", json={"files": [HELLO_FILE]})

        assert response.status_code == 200
        assert response.json() == {"summaries": [], "rawText": ""}

    def test_generate_summaries_model_failure(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        text_generator.error = RuntimeError("quota exceeded")

        response = authenticated_client.post("/api/testcases/summaries", json={"files": [HELLO_FILE]})

        assert response.status_code == 500
        assert response.json() == snapshot(
            {"error": "Failed to generate test summaries", "details": "Failed to generate test summaries (message: quota exceeded)"}
        )

    def test_generate_summaries_with_invalid_body(self, authenticated_client: TestClient):
        response = authenticated_client.post("/api/testcases/summaries", json={"files": "hello.py"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"


class TestCode:
    def test_generate_code(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        text_generator.replies = text_generator.replies[1:]

        response = authenticated_client.post(
            "/api/testcases/code", json={"summary": "* **Test Case 1:** Greets a name", "files": [HELLO_FILE]}
        )

        assert response.status_code == 200
        assert response.json()["testCode"].startswith("# Test Case 1: Greets a name")

    def test_generate_code_without_summary(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        response = authenticated_client.post("/api/testcases/code", json={"files": [HELLO_FILE]})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required data", "details": "Missing required data (missing: summary)"}
        assert text_generator.prompts == []

    def test_generate_code_with_empty_reply(self, authenticated_client: TestClient, text_generator: StaticTextGenerator):
        text_generator.replies = ["  "]

        response = authenticated_client.post("/api/testcases/code", json={"summary": "* Test Case 1: works", "files": [HELLO_FILE]})

        assert response.status_code == 200
        assert response.json()["testCode"].strip() == ""
