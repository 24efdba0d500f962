"""
Collaborative filtering (user-user similarity over interest vectors).

Only "mature" peers (old and active enough) are eligible as neighbours, so
cold-start users never learn from other cold-start users. Peer vectors are
fetched lazily through a caller-supplied lookup (the stable vector cache).
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.user import PeerSummary, SimilarityEdge
from ..models.vector import InterestVector
from ..signals.similarity import cosine_similarity
from ..utils.clock import days_since, utc_now

logger = logging.getLogger(__name__)

VectorLookup = Callable[[str], Awaitable[Optional[InterestVector]]]
WeightLookup = Callable[[str, str], Awaitable[Optional[float]]]


class CollaborativeFilter:
    def __init__(self, config: RankingConfig = DEFAULT_CONFIG):
        self.config = config

    def is_mature_peer(
        self,
        peer: PeerSummary,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> bool:
        if peer.id == user_id:
            return False
        if days_since(peer.created_at, now) < self.config.peer_min_account_age_days:
            return False
        return peer.total_interactions >= self.config.peer_min_interactions

    def user_similarity(self, target: InterestVector, candidate: InterestVector) -> float:
        """Blend of subject cosine (0.7) and grade cosine (0.3)."""
        cfg = self.config
        subject_sim = cosine_similarity(target.subjects, candidate.subjects)
        grade_sim = cosine_similarity(target.grades, candidate.grades)
        return cfg.peer_subject_weight * subject_sim + cfg.peer_grade_weight * grade_sim

    async def find_similar_users(
        self,
        user_id: str,
        target_vector: InterestVector,
        peers: Iterable[PeerSummary],
        get_vector: VectorLookup,
        now: Optional[datetime] = None,
    ) -> List[SimilarityEdge]:
        """
        Top neighbours above the similarity threshold, most similar first.

        Peers whose vector is missing or cannot be fetched are skipped.
        """
        now = now or utc_now()
        if target_vector.is_empty():
            return []
        mature = [p for p in peers if self.is_mature_peer(p, user_id, now)]
        if not mature:
            return []

        vectors = await asyncio.gather(
            *(get_vector(p.id) for p in mature), return_exceptions=True
        )
        edges: List[SimilarityEdge] = []
        for peer, vector in zip(mature, vectors):
            if isinstance(vector, Exception):
                logger.warning("[collab] PEER_VECTOR_FAILED peer=%s error=%s", peer.id, vector)
                continue
            if vector is None:
                continue
            similarity = self.user_similarity(target_vector, vector)
            if similarity > self.config.peer_similarity_threshold:
                edges.append(SimilarityEdge(user_id=user_id, peer_id=peer.id, similarity=similarity))

        edges.sort(key=lambda e: (-e.similarity, e.peer_id))
        kept = edges[: self.config.max_similar_users]
        logger.debug(
            "[collab] NEIGHBOURS user=%s mature=%d kept=%d", user_id, len(mature), len(kept)
        )
        return kept

    async def predict_score(
        self,
        content_id: str,
        similar_users: List[SimilarityEdge],
        get_weight: WeightLookup,
    ) -> float:
        """
        Similarity-weighted mean of neighbours' latest interaction weight with content_id.

        Neighbours that never touched the content are left out of the average; 0.0
        when none did.
        """
        if not similar_users:
            return 0.0
        weights = await asyncio.gather(*(get_weight(e.peer_id, content_id) for e in similar_users))
        weighted_sum = 0.0
        total_similarity = 0.0
        for edge, weight in zip(similar_users, weights):
            if weight is None:
                continue
            weighted_sum += weight * edge.similarity
            total_similarity += edge.similarity
        return weighted_sum / total_similarity if total_similarity > 0 else 0.0

    async def predict_scores(
        self,
        content_ids: Iterable[str],
        similar_users: List[SimilarityEdge],
        get_weight: WeightLookup,
    ) -> Dict[str, float]:
        ids = list(content_ids)
        if not similar_users:
            return {cid: 0.0 for cid in ids}
        scores = await asyncio.gather(
            *(self.predict_score(cid, similar_users, get_weight) for cid in ids)
        )
        return dict(zip(ids, scores))
