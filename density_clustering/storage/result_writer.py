"""
Result Writer

Persists partition records to the file system:
- JSON: one document per run
- JSONL: one line per cluster, followed by one noise line
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from density_clustering.schemas.data_models import PartitionRecord
from density_clustering.utils.advanced_logging import get_logger
from density_clustering.utils.error_handling import FileStorageError


logger = get_logger(__name__)


class ResultWriter:
    """Writes clustering results to JSON or JSONL files."""

    def __init__(
        self,
        output_dir: Union[str, Path] = "data/clusters",
        pretty_print: bool = False,
        file_pattern: str = "clusters_{run_id}.{ext}",
    ):
        """
        Initialize result writer.

        Args:
            output_dir: Directory for result files
            pretty_print: Indent JSON output
            file_pattern: File name pattern; supports {run_id}, {algorithm}, {ext}
        """
        self.output_dir = Path(output_dir)
        self.pretty_print = pretty_print
        self.file_pattern = file_pattern

    def write(self, record: PartitionRecord, format: str = "json") -> Path:
        """Write a record in the given format ("json" or "jsonl")."""
        if format == "jsonl":
            return self.write_jsonl(record)
        return self.write_json(record)

    def write_json(self, record: PartitionRecord) -> Path:
        """
        Write the whole record as one JSON document.

        Returns:
            Path of the written file
        """
        path = self._get_filename(record, "json")
        indent = 2 if self.pretty_print else None
        content = json.dumps(record.model_dump(mode="json"), indent=indent, default=str)
        self._write(path, content + "\n")
        return path

    def write_jsonl(self, record: PartitionRecord) -> Path:
        """
        Write one line per cluster followed by a single noise line.

        Returns:
            Path of the written file
        """
        path = self._get_filename(record, "jsonl")
        lines = []
        for cluster in record.clusters:
            lines.append(self._line(record, {
                "type": "cluster",
                "cluster_index": cluster.cluster_index,
                "size": cluster.size,
                "members": cluster.members,
            }))
        lines.append(self._line(record, {
            "type": "noise",
            "size": record.noise_count,
            "members": record.noise,
        }))
        self._write(path, "\n".join(lines) + "\n")
        return path

    def _line(self, record: PartitionRecord, payload: Dict[str, Any]) -> str:
        return json.dumps({"run_id": record.run_id, **payload}, default=str)

    def _get_filename(self, record: PartitionRecord, ext: str) -> Path:
        filename = self.file_pattern.format(
            run_id=record.run_id,
            algorithm=record.algorithm,
            ext=ext,
        )
        return self.output_dir / filename

    def _write(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                f.write(content)
        except OSError as e:
            logger.error("result_write_failed", path=str(path), error=str(e))
            raise FileStorageError(
                f"Failed to write results to {path}: {e}",
                details={"path": str(path)},
            ) from e

        logger.info("results_written", path=str(path), bytes=len(content))
