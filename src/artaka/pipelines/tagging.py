"""Tagging pipeline: extract, tag, embed and store files.

Why this exists:
- Turns a file (or every file directly inside a folder) into a file item
- Idempotent by path: files already in the store are skipped
- Files are processed one at a time; one failure never stops the run

How to use:
    from artaka.pipelines.tagging import TaggingPipeline

    pipeline = TaggingPipeline(config.knowledge, store, tagger_llm, embedding_provider)
    result = await pipeline.tag_item("~/notes")
"""

import asyncio
import base64
import mimetypes
import os
from enum import Enum
from typing import Optional, Union

from artaka.config.schema import KnowledgeConfig
from artaka.core.extraction import extract_file_content
from artaka.core.prompts import NO_CODE_FENCE, NO_THINK, TAGGER_PROMPT
from artaka.core.text import is_image, parse_json_object
from artaka.entities import ItemType, KnowledgeItem, Reason, TagResult
from artaka.observability.logging import get_logger
from artaka.providers.base import EmbeddingProvider, LLMProvider, ProviderError
from artaka.storage.base import KnowledgeStore, StorageError

logger = get_logger(__name__)


class TagStatus(str, Enum):
    """Outcome of tagging one file."""

    TAGGED = "tagged"
    SKIPPED = "skipped"
    FAILED = "failed"


def resolve_targets(target: Union[str, list[str]]) -> Optional[list[str]]:
    """Expand a tagging target into file paths.

    A list is filtered to existing paths. A directory yields its regular
    files (not recursive). A missing target yields None.
    """
    if isinstance(target, list):
        return [path for path in target if os.path.isfile(path)]
    if os.path.isdir(target):
        return sorted(
            os.path.join(target, entry)
            for entry in os.listdir(target)
            if os.path.isfile(os.path.join(target, entry))
        )
    if os.path.isfile(target):
        return [target]
    return None


def _read_image_data_url(file_path: str) -> str:
    mime_type = mimetypes.guess_type(file_path)[0] or "image/jpeg"
    with open(file_path, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class TaggingPipeline:
    """Pipeline for tagging files into the knowledge store."""

    def __init__(
        self,
        config: KnowledgeConfig,
        store: KnowledgeStore,
        llm: LLMProvider,
        embedding_provider: EmbeddingProvider,
        vision_model: Optional[str] = None,
    ):
        """Initialize the tagging pipeline.

        Args:
            config: Tag counts and excerpt size
            store: Knowledge store
            llm: Chat provider for the tagging model
            embedding_provider: Provider for description embeddings
            vision_model: Model used for image files (falls back to the tagger model)
        """
        self.config = config
        self.store = store
        self.llm = llm
        self.embedding_provider = embedding_provider
        self.vision_model = vision_model

    async def tag_item(
        self, target: Union[str, list[str]], description: Optional[str] = None
    ) -> TagResult:
        """Tag a single file, a list of files, or every file in a directory.

        The description hint is only used when the target is a single file.
        """
        files = resolve_targets(target)
        if files is None:
            logger.warning("tag_target_not_found", target=target)
            return TagResult(success=False, reason=Reason.NOT_FOUND)

        single_file = isinstance(target, str) and len(files) == 1 and files[0] == target
        logger.info("tagging_started", target=target, file_count=len(files))

        result = TagResult()
        for file_path in files:
            status = await self.tag_single_file(file_path, description if single_file else None)
            if status == TagStatus.TAGGED:
                result.tagged.append(file_path)
            elif status == TagStatus.SKIPPED:
                result.skipped.append(file_path)
            else:
                result.failed.append(file_path)

        logger.info(
            "tagging_completed",
            tagged=len(result.tagged),
            skipped=len(result.skipped),
            failed=len(result.failed),
        )
        return result

    def _build_prompt(self, file_path: str, content: Optional[str], user_description: Optional[str]) -> str:
        if content:
            prompt = (
                f"File path: {file_path}\n\n"
                f"Here is part of its content:\n{content}\n\n"
                f"Based on above content:\n"
                f"- Generate {self.config.tags_with_content} short tags"
            )
        else:
            prompt = f"File path: {file_path}\n\n- Generate {self.config.tags_name_only} short tags"

        if user_description:
            return f'{prompt}\n- Include {user_description} as the "description"'
        return f"{prompt}\n- Generate a short description of what this file is about."

    async def tag_single_file(self, file_path: str, user_description: Optional[str] = None) -> TagStatus:
        """Tag one file unless its path is already stored."""
        try:
            if await self.store.get_by_path(file_path):
                logger.info("skipped_already_indexed", path=file_path)
                return TagStatus.SKIPPED
        except StorageError as e:
            logger.error("tag_lookup_failed", path=file_path, error=e.message)
            return TagStatus.FAILED

        logger.info("generating_tags", path=file_path)

        content = await extract_file_content(file_path, self.config.excerpt_chars)
        prompt = self._build_prompt(file_path, content, user_description)

        image_data_url = None
        model = None
        if is_image(file_path):
            try:
                image_data_url = await asyncio.to_thread(_read_image_data_url, file_path)
            except OSError as e:
                logger.error("image_read_failed", path=file_path, error=str(e))
                return TagStatus.FAILED
            model = self.vision_model

        try:
            output = await self.llm.generate(
                f"{prompt}\n\n{NO_CODE_FENCE} {NO_THINK}",
                system_prompt=TAGGER_PROMPT,
                image_data_url=image_data_url,
                model=model,
            )
        except ProviderError as e:
            logger.error("tagging_request_failed", path=file_path, error=e.message)
            return TagStatus.FAILED

        if not output:
            logger.warning("no_tags_returned", path=file_path)
            return TagStatus.FAILED

        try:
            parsed = parse_json_object(output)
            title = os.path.basename(file_path)
            description = (user_description or str(parsed.get("description") or "")).strip()
            if not description:
                raise ValueError("tagger output has no description")
            item = KnowledgeItem(
                title=title,
                type=ItemType.FILE,
                path=file_path,
                tags=parsed.get("tags") or [],
                description=description,
                content=content,
            )
        except ValueError as e:
            logger.error("invalid_tagger_output", path=file_path, error=str(e), raw_output=output)
            return TagStatus.FAILED

        embedding = await self.embedding_provider.embed(f"{item.title}\n{item.description}")
        if embedding is None:
            logger.error("embedding_unavailable_skipping_insert", path=file_path)
            return TagStatus.FAILED
        item.embedding = embedding

        try:
            item_id = await self.store.add_item(item)
        except StorageError as e:
            logger.error("tag_insert_failed", path=file_path, error=e.message)
            return TagStatus.FAILED

        logger.info("file_tagged", path=file_path, item_id=item_id, tags=item.tags)
        return TagStatus.TAGGED
