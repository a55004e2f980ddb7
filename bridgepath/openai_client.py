from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import numpy as np
from openai import OpenAI

from .util import chunked, stable_hash

logger = logging.getLogger(__name__)

EMBED_BATCH_SIZE = 128


class OpenAIConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class OpenAIModels:
    embedding: str = "text-embedding-3-small"

    @classmethod
    def from_env(cls) -> "OpenAIModels":
        return cls(embedding=os.getenv("BRIDGEPATH_EMBEDDING_MODEL") or cls.embedding)


def embedding_key(model: str, text: str) -> str:
    return stable_hash(f"{model}::{text}")


class OpenAIClient:
    """Embeddings-only wrapper over the OpenAI SDK, used by the semantic scorer."""

    def __init__(self, models: OpenAIModels | None = None, *, batch_size: int = EMBED_BATCH_SIZE):
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise OpenAIConfigError("OPENAI_API_KEY is not set; semantic scoring needs it (export it and re-run)")
        self._client = OpenAI(api_key=api_key)
        self.models = models or OpenAIModels.from_env()
        self.batch_size = batch_size

    def embed_texts(self, texts: list[str], *, model: str | None = None) -> tuple[list[str], np.ndarray]:
        """Embed ``texts`` in order; keys are ``embedding_key(model, text)``."""
        m = model or self.models.embedding
        keys = [embedding_key(m, t) for t in texts]
        rows: list[np.ndarray] = []
        for batch in chunked(texts, self.batch_size):
            resp = self._client.embeddings.create(model=m, input=batch)
            rows.extend(np.asarray(item.embedding, dtype=np.float32) for item in resp.data)
        logger.debug(f"Embedded {len(texts)} profile texts with {m}")
        return keys, np.stack(rows, axis=0)
