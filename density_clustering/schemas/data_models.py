"""
data_models.py

Pydantic data models for clustering output.
Defines the records handed to result consumers: an ordered list of clusters
plus one noise list, with run metadata.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from density_clustering.core.base_clustering import ClusteringResult


# =============================================================================
# CLUSTER MODELS
# =============================================================================


class ClusterRecord(BaseModel):
    """A single cluster in discovery order."""

    cluster_index: int = Field(..., ge=0, description="Position of the cluster in discovery order")
    size: int = Field(..., ge=1, description="Number of members")
    members: List[Any] = Field(default_factory=list, description="Member object ids")


class PartitionRecord(BaseModel):
    """Clusters plus noise produced by one clustering run."""

    run_id: str = Field(default_factory=lambda: uuid4().hex, description="Unique run identifier")
    algorithm: str = Field(..., description="Algorithm used for clustering")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Resolved algorithm parameters")
    total_objects: int = Field(..., ge=0, description="Number of clustered objects")
    n_clusters: int = Field(..., ge=0, description="Number of clusters")
    noise_count: int = Field(..., ge=0, description="Number of noise objects")
    clusters: List[ClusterRecord] = Field(default_factory=list, description="Clusters in discovery order")
    noise: List[Any] = Field(default_factory=list, description="Noise object ids")
    quality_metrics: Dict[str, float] = Field(default_factory=dict, description="Clustering quality metrics")
    execution_time_ms: float = Field(default=0.0, ge=0.0, description="Clustering time in milliseconds")
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Creation timestamp",
    )

    @classmethod
    def from_result(
        cls,
        result: ClusteringResult,
        algorithm: str = "dbscan",
        parameters: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> "PartitionRecord":
        """
        Build a record from a clustering result.

        Args:
            result: Result of a clustering run
            algorithm: Algorithm name
            parameters: Parameters the run used
            run_id: Optional run id (generated if omitted)
        """
        partition = result.partition
        extra = {"run_id": run_id} if run_id else {}

        return cls(
            algorithm=algorithm,
            parameters=parameters or {},
            total_objects=partition.total,
            n_clusters=partition.n_clusters,
            noise_count=partition.noise_count,
            clusters=[
                ClusterRecord(cluster_index=index, size=len(members), members=list(members))
                for index, members in enumerate(partition.clusters)
            ],
            noise=list(partition.noise),
            quality_metrics=result.quality_metrics,
            execution_time_ms=round(result.execution_time * 1000, 3),
            **extra,
        )
