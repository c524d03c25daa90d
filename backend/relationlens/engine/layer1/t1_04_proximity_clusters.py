"""T1.04: Proximity Clusters.

DBSCAN on element centers (normalized space), min_samples=2.
A cluster that swallows every element says nothing and is dropped.
"""

from __future__ import annotations

import numpy as np
from sklearn.cluster import DBSCAN

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import ProximityCluster
from relationlens.tree.elements import NormalizedBounds, NormalizedElement
from relationlens.utils.geometry import union_box
from relationlens.utils.math_helpers import clamp


def detect_proximity_clusters(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> list[ProximityCluster]:
    n = len(elements)
    if n < 2:
        return []

    centers = np.array([e.center for e in elements], dtype=np.float64)
    labels = DBSCAN(eps=config.proximity_eps, min_samples=config.proximity_min_samples).fit(centers).labels_
    n_clusters = int(labels.max()) + 1 if labels.max() >= 0 else 0

    clusters: list[ProximityCluster] = []
    for cid in range(n_clusters):
        members = [i for i in range(n) if labels[i] == cid]
        if len(members) < 2 or len(members) == n:
            continue

        member_centers = centers[members]
        center = member_centers.mean(axis=0)
        mean_dist = float(np.mean(np.sqrt(np.sum((member_centers - center) ** 2, axis=1))))
        cohesion = clamp(1.0 - mean_dist / config.proximity_eps)
        confidence = 0.6 * cohesion + 0.4 * min(1.0, len(members) / 4)
        if confidence < config.confidence_threshold:
            continue

        left, top, right, bottom = union_box([elements[m].box for m in members])
        clusters.append(
            ProximityCluster(
                cluster_id=cid,
                element_ids=tuple(elements[m].id for m in members),
                cluster_bounds=NormalizedBounds(left=left, top=top, right=right, bottom=bottom),
                cohesion=cohesion,
                confidence=confidence,
            )
        )

    return clusters


@transform(
    id="T1.04",
    layer=Layer.SPATIAL,
    description="DBSCAN clustering of elements by center proximity",
)
def proximity_clusters(ctx: AnalysisContext) -> None:
    ctx.spatial.extend(detect_proximity_clusters(ctx.elements, ctx.config))
