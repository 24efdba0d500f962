"""
Similarity utilities: cosine similarity over sparse weight maps.
"""

from typing import Mapping

import numpy as np


def cosine_similarity(v1: Mapping[str, float], v2: Mapping[str, float]) -> float:
    """Cosine similarity between two sparse vectors keyed by feature name (0.0 if either is zero)."""
    if not v1 or not v2:
        return 0.0
    keys = sorted(set(v1) | set(v2))
    a = np.array([v1.get(k, 0.0) for k in keys], dtype=float)
    b = np.array([v2.get(k, 0.0) for k in keys], dtype=float)
    norm_product = np.linalg.norm(a) * np.linalg.norm(b)
    if norm_product <= 0:
        return 0.0
    return float(np.dot(a, b) / norm_product)
