from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

from .openai_client import OpenAIClient, OpenAIConfigError, embedding_key
from .profile import ActorProfile
from .util import EmbeddingCache, cosine_sim_matrix, normalize_text

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    def embed_texts(self, texts: list[str], *, model: str | None = None) -> tuple[list[str], np.ndarray]: ...


def profile_text(p: ActorProfile) -> str:
    parts = [p.headline]
    parts += [f"{e.title} at {e.company} ({e.industry})".strip() for e in p.work_experience[:3]]
    if p.skills:
        parts.append("Skills: " + ", ".join(s.name for s in p.skills))
    if p.metadata.domains:
        parts.append("Domains: " + ", ".join(p.metadata.domains))
    return "\n".join(x for x in parts if x).strip()


class SemanticScorer:
    """Embedding similarity between two profiles' headline/role/skill text.

    Used as a last resort when the structured dimensions find little in
    common. Without an OpenAI key it reports ``None`` for every pair.
    """

    def __init__(
        self,
        *,
        cache: EmbeddingCache | None = None,
        openai: Embedder | None = None,
        model: str | None = None,
    ):
        self.cache = cache
        self.openai = openai
        self.model = model
        self._embeddings: dict[str, np.ndarray] = {}
        self._disabled = False
        if self.cache:
            loaded = self.cache.load()
            if loaded:
                self._embeddings.update(loaded)

    def _client(self) -> Embedder | None:
        if self.openai is not None:
            return self.openai
        if self._disabled:
            return None
        try:
            self.openai = OpenAIClient()
        except OpenAIConfigError as e:
            logger.debug(f"Semantic scoring unavailable: {e}")
            self._disabled = True
            return None
        return self.openai

    def _model_name(self, client: Embedder) -> str:
        if self.model:
            return self.model
        models = getattr(client, "models", None)
        return getattr(models, "embedding", "default")

    def _vectors(self, texts: list[str]) -> np.ndarray | None:
        client = self._client()
        if client is None:
            return None
        model = self._model_name(client)
        hashed = [embedding_key(model, t) for t in texts]
        missing = [t for t, h in zip(texts, hashed, strict=True) if h not in self._embeddings]
        if missing:
            keys, vecs = client.embed_texts(missing, model=model)
            for k, v in zip(keys, vecs, strict=True):
                self._embeddings[k] = v
            if self.cache:
                self.cache.save(self._embeddings)
        return np.stack([self._embeddings[h] for h in hashed], axis=0)

    def similarity(self, a: ActorProfile, b: ActorProfile) -> float | None:
        ta, tb = profile_text(a), profile_text(b)
        if not normalize_text(ta) or not normalize_text(tb):
            return None
        vecs = self._vectors([ta, tb])
        if vecs is None:
            return None
        cos = float(cosine_sim_matrix(vecs[0], vecs[1:])[0])
        # normalize [-1,1] -> [0,1]
        return (cos + 1) / 2
