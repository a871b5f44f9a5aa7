"""Vector embeddings for the knowledge store."""

from .generator import (
    PLACEHOLDER_SOURCE,
    Embedding,
    EmbeddingGenerator,
    cosine_similarity,
    fit_dimension,
    from_pg_vector,
    placeholder_embedding,
    string_hash,
    to_pg_vector,
)

__all__ = [
    "PLACEHOLDER_SOURCE",
    "Embedding",
    "EmbeddingGenerator",
    "cosine_similarity",
    "fit_dimension",
    "from_pg_vector",
    "placeholder_embedding",
    "string_hash",
    "to_pg_vector",
]
