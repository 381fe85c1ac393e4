"""Unit tests for TaggingPipeline."""

import json
import os

import pytest

from artaka.config.schema import KnowledgeConfig
from artaka.entities import ItemType, Reason
from artaka.pipelines.tagging import TaggingPipeline, TagStatus, resolve_targets
from artaka.providers.base import ProviderError

TAGS = json.dumps({"tags": ["todo", "personal"], "description": "A todo list"})


def _write(directory, name, content="hello world"):
    path = os.path.join(directory, name)
    mode = "wb" if isinstance(content, bytes) else "w"
    with open(path, mode) as f:
        f.write(content)
    return path


class TestResolveTargets:
    def test_missing_target(self, temp_dir):
        assert resolve_targets(os.path.join(temp_dir, "nope")) is None

    def test_directory_is_not_recursive(self, temp_dir):
        a = _write(temp_dir, "a.txt")
        b = _write(temp_dir, "b.md")
        os.mkdir(os.path.join(temp_dir, "sub"))
        _write(os.path.join(temp_dir, "sub"), "c.txt")

        assert resolve_targets(temp_dir) == [a, b]

    def test_list_drops_missing_paths(self, temp_dir):
        a = _write(temp_dir, "a.txt")

        assert resolve_targets([a, os.path.join(temp_dir, "missing.txt")]) == [a]


@pytest.mark.asyncio
class TestTaggingPipeline:
    """Test tagging against the in-memory store and scripted providers."""

    @pytest.fixture
    def pipeline_for(self, memory_store, embedder):
        def build(llm):
            return TaggingPipeline(KnowledgeConfig(), memory_store, llm, embedder, vision_model="vl-model")

        return build

    async def test_tags_a_text_file(self, pipeline_for, make_llm, memory_store, embedder, temp_dir):
        path = _write(temp_dir, "todo.txt", "buy milk")
        llm = make_llm([TAGS])

        result = await pipeline_for(llm).tag_item(path)

        assert result.success is True
        assert result.tagged == [path]
        item = await memory_store.get_by_path(path)
        assert item.type == ItemType.FILE
        assert item.title == "todo.txt"
        assert item.tags == ["todo", "personal"]
        assert item.description == "A todo list"
        assert item.content == "buy milk"
        assert item.embedding == [1.0, 0.0, 0.0]
        assert embedder.texts == ["todo.txt\nA todo list"]
        assert "Generate 5 short tags" in llm.calls[0]["prompt"]
        assert "buy milk" in llm.calls[0]["prompt"]

    async def test_tagging_twice_skips_second_time(self, pipeline_for, make_llm, memory_store, temp_dir):
        path = _write(temp_dir, "todo.txt")
        llm = make_llm([TAGS, TAGS])
        pipeline = pipeline_for(llm)

        first = await pipeline.tag_item(path)
        second = await pipeline.tag_item(path)

        assert first.tagged == [path]
        assert second.tagged == []
        assert second.skipped == [path]
        assert await memory_store.count() == 1
        assert len(llm.calls) == 1

    async def test_directory_tags_top_level_files_only(self, pipeline_for, make_llm, memory_store, temp_dir):
        _write(temp_dir, "a.txt")
        _write(temp_dir, "b.md")
        os.mkdir(os.path.join(temp_dir, "sub"))
        _write(os.path.join(temp_dir, "sub"), "c.txt")

        result = await pipeline_for(make_llm([TAGS, TAGS])).tag_item(temp_dir)

        assert len(result.tagged) == 2
        assert await memory_store.count() == 2

    async def test_missing_target_is_not_found(self, pipeline_for, make_llm, temp_dir):
        result = await pipeline_for(make_llm()).tag_item(os.path.join(temp_dir, "missing"))

        assert result.success is False
        assert result.reason == Reason.NOT_FOUND

    async def test_user_description_wins(self, pipeline_for, make_llm, memory_store, temp_dir):
        path = _write(temp_dir, "report.txt")
        llm = make_llm([TAGS])

        await pipeline_for(llm).tag_item(path, description="Quarterly report")

        item = await memory_store.get_by_path(path)
        assert item.description == "Quarterly report"
        assert "Quarterly report" in llm.calls[0]["prompt"]

    async def test_filename_only_prompt_for_unreadable_format(self, pipeline_for, make_llm, memory_store, temp_dir):
        path = _write(temp_dir, "archive.bin", b"\x00\x01")
        llm = make_llm([TAGS])

        await pipeline_for(llm).tag_item(path)

        assert "Generate 3 short tags" in llm.calls[0]["prompt"]
        assert (await memory_store.get_by_path(path)).content is None

    async def test_image_goes_to_vision_model(self, pipeline_for, make_llm, temp_dir):
        path = _write(temp_dir, "cat.png", b"\x89PNG\r\n")
        llm = make_llm([TAGS])

        result = await pipeline_for(llm).tag_item(path)

        assert result.tagged == [path]
        assert llm.calls[0]["model"] == "vl-model"
        assert llm.calls[0]["image_data_url"].startswith("data:image/png;base64,")

    async def test_code_fenced_output_is_accepted(self, pipeline_for, make_llm, memory_store, temp_dir):
        path = _write(temp_dir, "todo.txt")
        llm = make_llm([f"<think>hmm</think>\n```json\n{TAGS}\n```"])

        result = await pipeline_for(llm).tag_item(path)

        assert result.tagged == [path]

    async def test_failures_do_not_stop_the_run(self, pipeline_for, make_llm, memory_store, temp_dir):
        a = _write(temp_dir, "a.txt")
        b = _write(temp_dir, "b.txt")
        c = _write(temp_dir, "c.txt")
        llm = make_llm(["not json", ProviderError("boom", provider="fake"), TAGS])

        result = await pipeline_for(llm).tag_item(temp_dir)

        assert result.failed == [a, b]
        assert result.tagged == [c]
        assert await memory_store.count() == 1

    async def test_embedding_failure_skips_insert(self, pipeline_for, make_llm, memory_store, embedder, temp_dir):
        path = _write(temp_dir, "todo.txt")
        embedder.fail = True

        status = await pipeline_for(make_llm([TAGS])).tag_single_file(path)

        assert status == TagStatus.FAILED
        assert await memory_store.count() == 0

    async def test_empty_model_output_fails(self, pipeline_for, make_llm, memory_store, temp_dir):
        path = _write(temp_dir, "todo.txt")

        status = await pipeline_for(make_llm([])).tag_single_file(path)

        assert status == TagStatus.FAILED
        assert await memory_store.count() == 0

    async def test_missing_description_fails(self, pipeline_for, make_llm, memory_store, embedder, temp_dir):
        path = _write(temp_dir, "todo.txt")
        llm = make_llm([json.dumps({"tags": ["todo"]}), json.dumps({"tags": ["todo"], "description": "  "})])
        pipeline = pipeline_for(llm)

        assert await pipeline.tag_single_file(path) == TagStatus.FAILED
        assert await pipeline.tag_single_file(path) == TagStatus.FAILED
        assert await memory_store.count() == 0
        assert embedder.texts == []
