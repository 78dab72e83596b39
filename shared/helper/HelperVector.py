"""Vector math and the local hashing embedding."""

import math
import re

from shared.helper.HelperHash import rolling_hash

LOCAL_EMBEDDING_DIM = 300
LOCAL_EMBEDDING_PROBES = 5
LOCAL_EMBEDDING_STRIDE = 997


def local_embedding(text: str) -> list[float]:
    """Bag-of-words hashing embedding that works without any backend.

    The lower-cased text is split on whitespace runs and every token
    increments five slots of a 300-dimensional accumulator; the result is
    L2-normalised. Leading or trailing whitespace produces an empty token
    (hash 0), as does an empty text.

    Args:
        text (str): The text to embed.

    Returns:
        list[float]: A vector of length LOCAL_EMBEDDING_DIM.
    """
    embedding = [0.0] * LOCAL_EMBEDDING_DIM
    for word in re.split(r"\s+", text.lower()):
        token_hash = rolling_hash(word)
        for i in range(LOCAL_EMBEDDING_PROBES):
            index = abs(token_hash + i * LOCAL_EMBEDDING_STRIDE) % LOCAL_EMBEDDING_DIM
            embedding[index] += 1.0

    magnitude = math.sqrt(sum(val * val for val in embedding))
    if magnitude > 0:
        embedding = [val / magnitude for val in embedding]
    return embedding


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors of equal length.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)}).")

    dot_product = 0.0
    magnitude_a = 0.0
    magnitude_b = 0.0
    for x, y in zip(a, b):
        dot_product += x * y
        magnitude_a += x * x
        magnitude_b += y * y

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return dot_product / (math.sqrt(magnitude_a) * math.sqrt(magnitude_b))
