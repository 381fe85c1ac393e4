"""Unit tests for action parsing, the handler registry and ActionRouter."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from artaka.config.schema import KnowledgeConfig, RetryConfig
from artaka.core.dedup import DuplicateChecker
from artaka.core.prompts import ROUTER_PROMPT
from artaka.core.text import sanitize
from artaka.entities import OperationResult
from artaka.pipelines import KnowledgePipeline, QueryPipeline, TaggingPipeline, UpdatePipeline
from artaka.providers.base import ProviderConfig, ProviderError
from artaka.providers.http import ResilientClient
from artaka.providers.openai_llm import OpenAILLMProvider
from artaka.router import (
    ActionHandler,
    ActionRouter,
    HandlerRegistry,
    MalformedModelOutputError,
    RouterState,
    UnknownActionError,
    build_registry,
    parse_action,
)
from artaka.router.actions import SaveKnowledgeAction, TagFilesAction, UpdateKnowledgeAction


class RecordingHandler(ActionHandler):
    def __init__(self, action_name, result=None, error=None):
        self.action_name = action_name
        self.result = result
        self.error = error
        self.actions = []

    async def execute(self, action):
        self.actions.append(action)
        if self.error:
            raise self.error
        return self.result


class TestSanitize:
    def test_strips_fences_with_language(self):
        assert sanitize('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_think_blocks(self):
        assert sanitize('<think>\nlet me see\n</think>\n {"a": 1} ') == '{"a": 1}'

    def test_plain_text_is_trimmed(self):
        assert sanitize("  hello  ") == "hello"


class TestParseAction:
    def test_tag_files(self):
        action = parse_action('{"action": "tag_files", "target": "C:\\\\DH", "description": "photos"}')

        assert isinstance(action, TagFilesAction)
        assert action.target == "C:\\DH"
        assert action.description == "photos"

    def test_tag_files_accepts_list_target(self):
        action = parse_action('{"action": "tag_files", "target": ["/a.txt", "/b.txt"]}')

        assert action.target == ["/a.txt", "/b.txt"]

    def test_save_knowledge_with_partial_entry(self):
        action = parse_action('{"action": "save_knowledge", "entry": {"content": "remember this"}}')

        assert isinstance(action, SaveKnowledgeAction)
        assert action.entry.content == "remember this"
        assert action.entry.missing_fields() == ["title", "description", "tags"]

    def test_update_knowledge(self):
        action = parse_action(
            '{"action": "update_knowledge", "title": "Wifi", "updates": {"tags": "a, b"}}'
        )

        assert isinstance(action, UpdateKnowledgeAction)
        assert action.updates.tags == ["a", "b"]

    @pytest.mark.parametrize(
        "raw",
        [
            "Sure! I will tag that file.",
            '["tag_files"]',
            '{"target": "/a.txt"}',
            '{"action": null}',
            '{"action": "search_knowledge"}',
        ],
    )
    def test_malformed_output(self, raw):
        with pytest.raises(MalformedModelOutputError):
            parse_action(raw)

    def test_unknown_action(self):
        with pytest.raises(UnknownActionError) as exc_info:
            parse_action('{"action": "format_disk"}')

        assert exc_info.value.action == "format_disk"


class TestHandlerRegistry:
    def test_get_unknown_raises(self):
        registry = HandlerRegistry([RecordingHandler("tag_files")])

        assert "tag_files" in registry
        with pytest.raises(UnknownActionError):
            registry.get("search_knowledge")

    def test_build_registry_covers_every_action(self, memory_store, embedder, make_llm):
        llm = make_llm()
        tagging = TaggingPipeline(KnowledgeConfig(), memory_store, llm, embedder)
        registry = build_registry(
            tagging,
            QueryPipeline(memory_store, embedder),
            KnowledgePipeline(memory_store, llm, embedder, DuplicateChecker(memory_store)),
            UpdatePipeline(memory_store, tagging, embedder),
        )

        assert registry.names() == [
            "save_knowledge",
            "search_knowledge",
            "tag_files",
            "update_file",
            "update_knowledge",
        ]


@pytest.mark.asyncio
class TestActionRouter:
    """Test the route() state machine."""

    @pytest.fixture
    def handlers(self):
        return {
            name: RecordingHandler(name, result=OperationResult.ok(name))
            for name in ("tag_files", "search_knowledge", "save_knowledge", "update_file", "update_knowledge")
        }

    @pytest.fixture
    def router_for(self, handlers):
        def build(llm, model="qwen3-0.6b"):
            return ActionRouter(llm, HandlerRegistry(list(handlers.values())), model)

        return build

    async def test_dispatches_one_handler(self, router_for, make_llm, handlers):
        llm = make_llm(['```json\n{"action": "search_knowledge", "query": "wifi"}\n```'])

        outcome = await router_for(llm).route("find my wifi password")

        assert outcome.action == "search_knowledge"
        assert outcome.error is None
        assert outcome.result.success is True
        assert outcome.states == [
            RouterState.IDLE,
            RouterState.AWAITING_ROUTER_RESPONSE,
            RouterState.DISPATCHING,
            RouterState.HANDLER_RUNNING,
            RouterState.DONE,
        ]
        assert [a.query for a in handlers["search_knowledge"].actions] == ["wifi"]
        assert sum(len(h.actions) for h in handlers.values()) == 1

    async def test_router_call_shape(self, router_for, make_llm):
        llm = make_llm(['{"action": "search_knowledge", "query": "x"}'])

        await router_for(llm).route("find x")

        call = llm.calls[0]
        assert call["system_prompt"] == ROUTER_PROMPT
        assert call["temperature"] == 0
        assert call["prompt"].startswith("find x\n\n")

    async def test_no_think_removed_for_non_qwen_models(self, router_for, make_llm):
        llm = make_llm(['{"action": "search_knowledge", "query": "x"}'])

        await router_for(llm, model="gemma3-1b").route("Tag this: C:\\DH /no_think")

        assert "no_think" not in llm.calls[0]["prompt"]
        assert llm.calls[0]["prompt"].startswith("Tag this: C:\\DH\n\n")

    async def test_no_think_kept_for_qwen_models(self, router_for, make_llm):
        llm = make_llm(['{"action": "search_knowledge", "query": "x"}'])

        await router_for(llm).route("Tag this /no_think")

        assert "/no_think" in llm.calls[0]["prompt"]

    async def test_malformed_output_never_dispatches(self, router_for, make_llm, handlers):
        outcome = await router_for(make_llm(["I think you want to tag a file."])).route("tag stuff")

        assert outcome.state == RouterState.DONE
        assert RouterState.PARSE_FAILED in outcome.states
        assert outcome.dispatched is False
        assert outcome.raw_output == "I think you want to tag a file."
        assert all(not h.actions for h in handlers.values())

    async def test_unknown_action_never_dispatches(self, router_for, make_llm, handlers):
        outcome = await router_for(make_llm(['{"action": "delete_everything"}'])).route("wipe it")

        assert outcome.action == "delete_everything"
        assert RouterState.PARSE_FAILED in outcome.states
        assert all(not h.actions for h in handlers.values())

    async def test_empty_router_output(self, router_for, make_llm, handlers):
        outcome = await router_for(make_llm([])).route("hello")

        assert outcome.raw_output is None
        assert RouterState.PARSE_FAILED in outcome.states
        assert all(not h.actions for h in handlers.values())

    async def test_router_provider_error(self, router_for, make_llm, handlers):
        llm = make_llm([ProviderError("Failed after 3 attempts: 500", provider="openai")])

        outcome = await router_for(llm).route("hello")

        assert outcome.dispatched is False
        assert outcome.error is not None

    async def test_undecodable_router_response(self, router_for, handlers):
        def handler(request):
            raise httpx.DecodingError("bad gzip")

        client = ResilientClient(
            RetryConfig(max_retries=2, base_delay_ms=1),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            sleep=AsyncMock(),
        )
        llm = OpenAILLMProvider(
            ProviderConfig(provider_type="openai", model_name="qwen3-0.6b", endpoint="http://llm.test/v1/chat/completions"),
            client,
        )

        outcome = await router_for(llm).route("hello")

        assert outcome.states[-2:] == [RouterState.PARSE_FAILED, RouterState.DONE]
        assert outcome.error == "No output from router model"
        assert all(not h.actions for h in handlers.values())

    async def test_handler_exception_is_recorded(self, make_llm):
        handler = RecordingHandler("tag_files", error=RuntimeError("disk on fire"))
        router = ActionRouter(
            make_llm(['{"action": "tag_files", "target": "/a.txt"}']),
            HandlerRegistry([handler]),
            "qwen3-0.6b",
        )

        outcome = await router.route("tag /a.txt")

        assert outcome.dispatched is True
        assert outcome.error == "disk on fire"
        assert outcome.state == RouterState.DONE

    async def test_malformed_save_leaves_store_untouched(self, make_llm, memory_store, embedder):
        llm = make_llm(['{"action": "save_knowledge", "entry": "not an object"}'])
        tagging = TaggingPipeline(KnowledgeConfig(), memory_store, llm, embedder)
        registry = build_registry(
            tagging,
            QueryPipeline(memory_store, embedder),
            KnowledgePipeline(memory_store, llm, embedder, DuplicateChecker(memory_store)),
            UpdatePipeline(memory_store, tagging, embedder),
        )

        outcome = await ActionRouter(llm, registry, "qwen3-0.6b").route("save this")

        assert outcome.dispatched is False
        assert await memory_store.count() == 0

    async def test_save_through_router(self, make_llm, memory_store, embedder):
        entry = {"title": "Wifi", "description": "Home wifi", "tags": ["net"], "content": "hunter2"}
        llm = make_llm([json.dumps({"action": "save_knowledge", "entry": entry})])
        tagging = TaggingPipeline(KnowledgeConfig(), memory_store, llm, embedder)
        registry = build_registry(
            tagging,
            QueryPipeline(memory_store, embedder),
            KnowledgePipeline(memory_store, llm, embedder, DuplicateChecker(memory_store)),
            UpdatePipeline(memory_store, tagging, embedder),
        )

        outcome = await ActionRouter(llm, registry, "qwen3-0.6b").route("remember my wifi password")

        assert outcome.result.success is True
        assert (await memory_store.get_by_title("wifi")).content == "hunter2"
