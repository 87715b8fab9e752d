"""
Unit tests for the command-line interface.
"""

import json

import numpy as np
import pytest

import cli


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the CLI from an empty directory so no settings file is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    return tmp_path


@pytest.fixture
def vectors_file(workdir, small_vectors):
    path = workdir / "vectors.npy"
    np.save(path, small_vectors)
    return path


@pytest.mark.unit
class TestCLI:
    """Test suite for the CLI entry point."""

    def test_cluster(self, workdir, vectors_file, capsys):
        """Test clustering a vector file."""
        exit_code = cli.main([
            "cluster", str(vectors_file),
            "--epsilon", "0.6", "--min-pts", "2",
            "--output-dir", str(workdir / "out"), "--quiet",
        ])

        assert exit_code == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "Clusters: 1" in out
        assert "Noise: 2" in out

        files = list((workdir / "out").glob("clusters_*.json"))
        assert len(files) == 1
        data = json.loads(files[0].read_text())
        assert data["clusters"][0]["members"] == [0, 1, 2]
        assert data["noise"] == [3, 4]
        assert data["parameters"]["epsilon"] == 0.6
        assert data["parameters"]["min_pts"] == 2

    def test_cluster_jsonl(self, workdir, vectors_file):
        """Test JSONL output format."""
        exit_code = cli.main([
            "cluster", str(vectors_file), "-e", "0.6", "-m", "2",
            "-o", str(workdir / "out"), "--format", "jsonl", "-q",
        ])

        assert exit_code == cli.EXIT_OK
        files = list((workdir / "out").glob("*.jsonl"))
        lines = files[0].read_text().splitlines()
        assert [json.loads(line)["type"] for line in lines] == ["cluster", "noise"]

    def test_cluster_with_ids(self, workdir):
        """Test text input with an id column."""
        path = workdir / "points.csv"
        path.write_text("a,0.0\nb,0.5\nc,1.0\nd,9.0\n")

        exit_code = cli.main([
            "cluster", str(path), "--ids", "-e", "0.6", "-m", "2",
            "-o", str(workdir / "out"), "-q",
        ])

        assert exit_code == cli.EXIT_OK
        data = json.loads(next((workdir / "out").glob("*.json")).read_text())
        assert data["clusters"][0]["members"] == ["a", "b", "c"]
        assert data["noise"] == ["d"]

    def test_config_file(self, workdir, vectors_file, settings_file):
        """Test values from a configuration file."""
        config = settings_file(
            "dbscan:\n"
            "  epsilon: 0.6\n"
            "  min_pts: 2\n"
            "output:\n"
            f"  output_dir: {workdir / 'configured'}\n"
            "progress:\n"
            "  enabled: false\n"
        )

        exit_code = cli.main(["cluster", str(vectors_file), "--config", str(config)])

        assert exit_code == cli.EXIT_OK
        assert list((workdir / "configured").glob("*.json"))

    def test_flags_override_config(self, workdir, vectors_file, settings_file):
        """Test command-line flags win over the configuration file."""
        config = settings_file("dbscan:\n  epsilon: 100.0\n  min_pts: 2\n")

        exit_code = cli.main([
            "cluster", str(vectors_file), "--config", str(config),
            "-e", "0.6", "-o", str(workdir / "out"), "-q",
        ])

        assert exit_code == cli.EXIT_OK
        data = json.loads(next((workdir / "out").glob("*.json")).read_text())
        assert data["n_clusters"] == 1

    @pytest.mark.parametrize(
        "flags,parameter",
        [
            (["-e", "abc"], "epsilon"),
            (["-e", "-1"], "epsilon"),
            (["-e", "0.5", "-m", "0"], "min_pts"),
            (["-e", "0.5", "-d", "nope"], "distance_function"),
            (["-e", "5", "-d", "cosine"], "epsilon"),
            (["-e", "0.5", "--index", "faiss"], "index"),
        ],
    )
    def test_invalid_configuration(self, workdir, vectors_file, capsys, flags, parameter):
        """Test configuration errors exit with code 2 naming the parameter."""
        exit_code = cli.main(["cluster", str(vectors_file), *flags, "-q"])

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert f"Invalid {parameter}" in capsys.readouterr().err

    def test_missing_config_file(self, workdir, vectors_file, capsys):
        """Test an explicit missing configuration file."""
        exit_code = cli.main(["cluster", str(vectors_file), "--config", "missing.yaml"])

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert "Invalid config" in capsys.readouterr().err

    def test_missing_input(self, workdir, capsys):
        """Test storage errors exit with code 1 and the error message."""
        exit_code = cli.main(["cluster", str(workdir / "missing.npy"), "-e", "0.5", "-q"])

        assert exit_code == cli.EXIT_FAILURE
        assert "Vector file not found" in capsys.readouterr().err

    def test_estimate_eps(self, workdir, blob_vectors, capsys):
        """Test epsilon estimation command."""
        vectors, _ = blob_vectors
        path = workdir / "blobs.npy"
        np.save(path, vectors)

        exit_code = cli.main(["estimate-eps", str(path), "--min-pts", "5"])

        assert exit_code == cli.EXIT_OK
        assert "Estimated epsilon" in capsys.readouterr().out

    def test_estimate_eps_invalid_quantile(self, workdir, vectors_file, capsys):
        """Test invalid quantile is a configuration error."""
        exit_code = cli.main(["estimate-eps", str(vectors_file), "--min-pts", "2", "--quantile", "2"])

        assert exit_code == cli.EXIT_CONFIG_ERROR
        assert "Invalid quantile" in capsys.readouterr().err

    def test_requires_command(self):
        """Test a command is mandatory."""
        with pytest.raises(SystemExit):
            cli.main([])
