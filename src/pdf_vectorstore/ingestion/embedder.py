"""Embedding provider selection and the per-chunk embedding call."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pdf_vectorstore.config import Settings, settings
from pdf_vectorstore.errors import ConfigurationError, EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(config: Settings = settings) -> Embeddings:
    """Return the embedding function configured in *config*.

    ``openai`` uses the hosted OpenAI embeddings API; ``huggingface`` runs a
    sentence-transformer locally. Both are imported lazily.
    """
    if config.embedding_provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(model=config.embedding_model, api_key=config.openai_api_key)
    if config.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=config.embedding_model)
    raise ConfigurationError(f"Unsupported embedding_provider: {config.embedding_provider!r}")


class ChunkEmbedder:
    """Issues one embedding request per text.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    model_name:
        Identifier recorded as ``model_version`` on stored chunks.
    """

    def __init__(self, embeddings: Embeddings, model_name: str) -> None:
        self._embeddings = embeddings
        self.model_name = model_name

    async def embed(self, text: str) -> list[float]:
        """Embed a single *text*; any provider failure becomes :class:`EmbeddingError`."""
        try:
            return await self._embeddings.aembed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* concurrently; the first failure cancels the rest and propagates."""
        tasks = [asyncio.ensure_future(self.embed(text)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    def embed_query(self, text: str) -> list[float]:
        """Synchronous variant used on the search path."""
        try:
            return self._embeddings.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
