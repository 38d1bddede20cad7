"""Tests for answer-engine probes."""

import httpx
import pytest

from split.services.llm_client import ChatClient, ChatResponse, VisibilityServiceError
from split.services.question_generator import Question
from split.services.visibility_checker import (
    NO_ANSWER_SNIPPET,
    VisibilityChecker,
    citation_snippet,
    extract_hostname,
    locate_target,
    parse_name_list,
)

QUESTION = Question("Best invoicing tools for startups", "indirect", 2)


class StubClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = 0

    def complete(self, messages, max_tokens=None, temperature=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.response


def test_extract_hostname():
    assert extract_hostname("https://www.Acme.com/page") == "acme.com"
    assert extract_hostname("blog.acme.com/post") == "blog.acme.com"
    assert extract_hostname(None) is None
    assert extract_hostname(42) is None


def test_citation_snippet():
    answer = "Acme is an invoicing platform. It is popular with startups! Short. Another sentence here."
    assert citation_snippet(answer) == "Acme is an invoicing platform. It is popular with startups."
    assert citation_snippet("") == NO_ANSWER_SNIPPET
    assert len(citation_snippet("word " * 200 + ".")) == 400


def test_locate_target_prefers_brand_mention():
    assert locate_target("Acme leads the market", [{"url": "https://globex.com"}], "acme.com") == 1


def test_locate_target_uses_citation_rank():
    citations = [{"url": "https://globex.com"}, {"url": "https://www.acme.com/pricing"}]
    assert locate_target("Globex leads the market", citations, "acme.com") == 2


def test_locate_target_absent():
    assert locate_target("Globex leads", [{"url": "https://globex.com"}, {"title": "no url"}], "acme.com") is None


def test_parse_name_list():
    assert parse_name_list('```json\n["Globex", "Initech"]\n```') == ["Globex", "Initech"]
    assert parse_name_list("not json") == []
    assert parse_name_list('{"a": 1}') == []
    assert len(parse_name_list(str([f"n{i}" for i in range(15)]).replace("'", '"'))) == 10


def test_check_found_with_competitors():
    search = StubClient(ChatResponse(
        content="Top picks are Globex and Initech. Acme is also worth a look for small teams.",
        search_results=[
            {"url": "https://globex.com", "title": "Globex"},
            {"url": "https://acme.com", "title": "Acme"},
        ],
        duration_ms=120,
    ))
    extraction = StubClient(ChatResponse(content='["Globex", "Initech"]'))

    check = VisibilityChecker(search, extraction).check(QUESTION, "www.acme.com")

    assert check.target_found
    assert check.position == 1
    assert check.cited_domains == ["globex.com", "acme.com"]
    assert check.competitor_domains == ["globex.com"]
    assert check.competitor_names == ["Globex", "Initech"]
    assert check.reasoning.startswith("Target found at position 1")
    assert check.top_citations[0] == {"url": "https://globex.com", "title": "Globex", "rank": 1}
    assert check.duration_ms == 120
    assert check.error is None


def test_check_not_found():
    search = StubClient(ChatResponse(content="Globex is the best choice for most teams.", search_results=[]))
    extraction = StubClient(ChatResponse(content='["Globex"]'))

    check = VisibilityChecker(search, extraction).check(QUESTION, "acme.com")

    assert not check.target_found
    assert check.position is None
    assert check.reasoning == "Target not found in search results. AI identified competitors: Globex"


def test_search_failure_is_not_found_result():
    search = StubClient(error=VisibilityServiceError("sonar request failed: timeout"))
    extraction = StubClient()

    check = VisibilityChecker(search, extraction).check(QUESTION, "acme.com")

    assert not check.target_found
    assert check.error == "sonar request failed: timeout"
    assert check.reasoning == "Search failed: sonar request failed: timeout"
    assert extraction.calls == 0


def test_extraction_failure_yields_no_names():
    search = StubClient(ChatResponse(content="Globex is the best choice for most teams."))
    extraction = StubClient(error=VisibilityServiceError("gpt-4o request failed"))

    check = VisibilityChecker(search, extraction).check(QUESTION, "acme.com")

    assert check.competitor_names == []


def test_check_all_preserves_order_across_batches():
    class EchoClient:
        def complete(self, messages, max_tokens=None, temperature=None):
            return ChatResponse(content=messages[-1]["content"])

    questions = [Question(f"question number {i}", "indirect", 2) for i in range(7)]
    checker = VisibilityChecker(EchoClient(), StubClient(ChatResponse(content="[]")), batch_size=3)

    checks = checker.check_all(questions, "acme.com")

    assert [c.question.text for c in checks] == [q.text for q in questions]


def test_chat_client_parses_search_results_and_citations():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer pplx-key"
        return httpx.Response(200, json={
            "choices": [{"message": {"content": "Answer"}}],
            "citations": ["https://acme.com", "https://globex.com"],
        })

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = ChatClient("https://api.example/chat", "pplx-key", "sonar", http_client=http)

    resp = client.complete([{"role": "user", "content": "q"}])

    assert resp.content == "Answer"
    assert resp.search_results == [{"url": "https://acme.com"}, {"url": "https://globex.com"}]


def test_chat_client_wraps_http_errors():
    http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    client = ChatClient("https://api.example/chat", "key", "sonar", http_client=http)

    with pytest.raises(VisibilityServiceError):
        client.complete([{"role": "user", "content": "q"}])
